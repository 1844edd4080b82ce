"""Configuration for the tiered force layout."""

from dataclasses import dataclass
from typing import Literal

from contextdojo.config import Settings

EdgeStyle = Literal["curve", "straight"]


@dataclass
class LayoutConfig:
    """Constants and switches for the force simulation."""

    # Container
    width: float = 800.0
    min_height: float = 400.0
    padding_top: float = 60.0
    padding_bottom: float = 60.0
    clamp_padding: float = 20.0

    # Tiers
    tier_spacing: float = 120.0  # Vertical distance between depths
    tier_lock: bool = True  # Pin y to the depth tier
    tier_strength: float = 2.5  # High enough that depth decides y

    # Forces
    link_distance: float = 100.0
    charge_strength: float = -300.0  # Negative = repulsion
    charge_distance_min: float = 1.0
    center_strength: float = 0.08  # Gentle pull toward horizontal center
    collide_iterations: int = 2
    collide_padding: float = 10.0

    # Node pill geometry (width follows label length)
    min_node_width: float = 100.0
    char_width: float = 7.0
    label_padding: float = 24.0
    node_height: float = 36.0

    # Cooling
    alpha_min: float = 0.001
    alpha_target: float = 0.0
    velocity_decay: float = 0.4
    cooling_ticks: int = 300  # Ticks for alpha to fall from 1 to alpha_min

    # Rendering
    edge_style: EdgeStyle = "curve"

    # Runner
    tick_interval: float = 1 / 60
    seed: int = 42

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError(f"Layout width must be positive, got {self.width}")
        if self.tier_spacing <= 0:
            raise ValueError(f"Tier spacing must be positive, got {self.tier_spacing}")
        if not 0.0 <= self.velocity_decay <= 1.0:
            raise ValueError(f"velocity_decay must be within [0, 1], got {self.velocity_decay}")
        if self.edge_style not in ("curve", "straight"):
            raise ValueError(f"Unknown edge style: {self.edge_style}")

    @property
    def alpha_decay(self) -> float:
        return 1 - self.alpha_min ** (1 / self.cooling_ticks)

    def tier_y(self, depth: int) -> float:
        """Target vertical coordinate for a depth tier."""
        return depth * self.tier_spacing + self.padding_top

    def canvas_height(self, max_depth: int) -> float:
        """Container height needed to show every tier."""
        return max(
            self.min_height,
            max_depth * self.tier_spacing + self.padding_top + self.padding_bottom,
        )

    def node_width(self, label: str) -> float:
        return max(self.min_node_width, len(label) * self.char_width + self.label_padding)

    def collide_radius(self, label: str) -> float:
        return self.node_width(label) / 2 + self.collide_padding

    @classmethod
    def from_settings(cls, settings: Settings) -> "LayoutConfig":
        """Build layout configuration from application settings."""
        return cls(
            width=settings.layout_width,
            min_height=settings.layout_min_height,
            padding_top=settings.layout_padding_top,
            padding_bottom=settings.layout_padding_bottom,
            tier_spacing=settings.layout_tier_spacing,
            tier_lock=settings.layout_tier_lock,
            edge_style=settings.layout_edge_style,
            tick_interval=settings.layout_tick_interval,
            seed=settings.layout_seed,
        )
