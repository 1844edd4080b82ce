"""Tiered force-directed layout for the conversation map.

Forces (applied each tick, scaled by the cooling alpha):
- link: springs pulling parent and child toward a target distance
- charge: pairwise repulsion, inverse to squared distance
- collide: minimum clearance of each node's pill radius (not alpha-scaled)
- tier: strong pull of y toward depth * tier_spacing + padding_top
- center: weak pull of x toward the container's horizontal center

Positions are cached per node id across graph changes, so nodes that were
already placed keep their place when new nodes arrive.
"""

import asyncio
import contextlib
import logging
import math
from dataclasses import dataclass

import numpy as np

from contextdojo.graph.config import LayoutConfig
from contextdojo.graph.depth import compute_depths
from contextdojo.models import NodePosition, TopicGraph, TopicLink

logger = logging.getLogger(__name__)

JIGGLE_SCALE = 1e-6


@dataclass
class LayoutNode:
    """Render record for one placed node."""

    id: str
    label: str
    depth: int
    x: float
    y: float
    vx: float
    vy: float
    width: float
    height: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "depth": self.depth,
            "x": self.x,
            "y": self.y,
            "vx": self.vx,
            "vy": self.vy,
            "width": self.width,
            "height": self.height,
        }


class LayoutEngine:
    """
    Force simulation over node positions, constrained by depth tiers.

    One engine instance owns the position cache for a session. load()
    prepares a simulation for a graph, step() advances it by one tick, and
    restart() runs it as a background task, stopping any previous run
    first so only one simulation writes to the cache.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()
        self.positions: dict[str, NodePosition] = {}

        self.alpha = 0.0
        self.tick_count = 0
        self.depths: dict[str, int] = {}
        self.max_depth = 0

        self._rng = np.random.default_rng(self.config.seed)
        self._task: asyncio.Task | None = None
        self._reset_arrays()

    def _reset_arrays(self) -> None:
        self._ids: list[str] = []
        self._labels: list[str] = []
        self._index: dict[str, int] = {}
        self._links: list[tuple[int, int]] = []
        self._link_strength = np.zeros(0)
        self._link_bias = np.zeros(0)
        self._x = np.zeros(0)
        self._y = np.zeros(0)
        self._vx = np.zeros(0)
        self._vy = np.zeros(0)
        self._target_y = np.zeros(0)
        self._width = np.zeros(0)
        self._radius = np.zeros(0)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def load(self, graph: TopicGraph) -> None:
        """Prepare a fresh simulation for a graph, warm-started from the cache."""
        cfg = self.config
        self.depths, self.max_depth = compute_depths(graph.nodes, graph.links, graph.root_id)
        self._reset_arrays()
        self.tick_count = 0

        n = len(graph.nodes)
        if n == 0:
            self.alpha = 0.0
            return

        self._ids = [node.id for node in graph.nodes]
        self._labels = [node.label for node in graph.nodes]
        self._index = {node_id: i for i, node_id in enumerate(self._ids)}

        self._target_y = np.array(
            [cfg.tier_y(self.depths[node_id]) for node_id in self._ids], dtype=float
        )
        self._width = np.array([cfg.node_width(label) for label in self._labels], dtype=float)
        self._radius = np.array([cfg.collide_radius(label) for label in self._labels], dtype=float)

        self._x = np.empty(n)
        self._y = np.empty(n)
        self._vx = np.zeros(n)
        self._vy = np.zeros(n)
        warm = 0
        for i, node_id in enumerate(self._ids):
            cached = self.positions.get(node_id)
            if cached is not None:
                self._x[i], self._y[i] = cached.x, cached.y
                self._vx[i], self._vy[i] = cached.vx, cached.vy
                warm += 1
            else:
                # New nodes start at their tier so they settle in place
                self._x[i] = cfg.width / 2
                self._y[i] = self._target_y[i]

        degree = np.zeros(n)
        for link in graph.links:
            s = self._index.get(link.source)
            t = self._index.get(link.target)
            if s is None or t is None or s == t:
                continue
            self._links.append((s, t))
            degree[s] += 1
            degree[t] += 1

        self._link_strength = np.array(
            [1.0 / min(degree[s], degree[t]) for s, t in self._links], dtype=float
        )
        self._link_bias = np.array(
            [degree[s] / (degree[s] + degree[t]) for s, t in self._links], dtype=float
        )

        self.alpha = 1.0
        logger.debug(
            f"Layout loaded: {n} nodes ({warm} cached), {len(self._links)} links, "
            f"max depth {self.max_depth}"
        )

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    @property
    def settled(self) -> bool:
        return self.alpha < self.config.alpha_min

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def step(self) -> float:
        """Advance the simulation by one tick and refresh the position cache.

        Returns:
            The alpha used for this tick (0.0 when there is nothing to lay out)
        """
        if not self._ids:
            return 0.0

        cfg = self.config
        self.alpha += (cfg.alpha_target - self.alpha) * cfg.alpha_decay
        alpha = self.alpha

        self._apply_links(alpha)
        self._apply_charge(alpha)
        self._apply_collide()
        if cfg.tier_lock:
            self._vy += (self._target_y - self._y) * cfg.tier_strength * alpha
        self._vx += (cfg.width / 2 - self._x) * cfg.center_strength * alpha

        damping = 1.0 - cfg.velocity_decay
        self._vx *= damping
        self._vy *= damping
        self._x += self._vx
        self._y += self._vy

        self._clamp()
        self._write_cache()
        self.tick_count += 1
        return alpha

    def run_until_settled(self, max_ticks: int | None = None) -> int:
        """Step synchronously until the simulation cools down.

        Returns:
            Number of ticks performed
        """
        ticks = 0
        while self._ids and not self.settled:
            if max_ticks is not None and ticks >= max_ticks:
                break
            self.step()
            ticks += 1
        return ticks

    async def run(self) -> None:
        """Tick until settled, yielding to the event loop between ticks."""
        logger.info(f"Layout simulation started for {len(self._ids)} nodes")
        while self._ids and not self.settled:
            self.step()
            await asyncio.sleep(self.config.tick_interval)
        logger.info(f"Layout settled after {self.tick_count} ticks")

    async def restart(self, graph: TopicGraph) -> None:
        """Replace any running simulation with one for the updated graph."""
        await self.stop()
        self.load(graph)
        if self._ids:
            self._task = asyncio.create_task(self.run(), name="layout-simulation")

    async def stop(self) -> None:
        """Cancel the running simulation, if any, and wait for it to exit."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug(f"Layout simulation stopped at tick {self.tick_count}")

    def _jiggle(self) -> float:
        value = 0.0
        while value == 0.0:
            value = (self._rng.random() - 0.5) * JIGGLE_SCALE
        return value

    def _apply_links(self, alpha: float) -> None:
        distance = self.config.link_distance
        x, y, vx, vy = self._x, self._y, self._vx, self._vy

        for k, (s, t) in enumerate(self._links):
            dx = x[t] + vx[t] - x[s] - vx[s] or self._jiggle()
            dy = y[t] + vy[t] - y[s] - vy[s] or self._jiggle()
            length = math.sqrt(dx * dx + dy * dy)
            length = (length - distance) / length * alpha * self._link_strength[k]
            dx *= length
            dy *= length
            bias = self._link_bias[k]
            vx[t] -= dx * bias
            vy[t] -= dy * bias
            vx[s] += dx * (1 - bias)
            vy[s] += dy * (1 - bias)

    def _apply_charge(self, alpha: float) -> None:
        n = len(self._ids)
        if n < 2:
            return

        # dx[i, j] points from node i to node j
        dx = self._x[np.newaxis, :] - self._x[:, np.newaxis]
        dy = self._y[np.newaxis, :] - self._y[:, np.newaxis]

        off_diagonal = ~np.eye(n, dtype=bool)
        coincident = off_diagonal & (dx == 0) & (dy == 0)
        if coincident.any():
            jiggle = np.triu((self._rng.random((n, n)) - 0.5) * JIGGLE_SCALE, 1)
            dx = np.where(coincident, jiggle - jiggle.T, dx)

        dist2 = dx * dx + dy * dy
        min2 = self.config.charge_distance_min ** 2
        dist2 = np.where(dist2 < min2, np.sqrt(min2 * dist2), dist2)
        dist2 = np.maximum(dist2, np.finfo(float).tiny)
        np.fill_diagonal(dist2, np.inf)

        weight = self.config.charge_strength * alpha / dist2
        self._vx += (dx * weight).sum(axis=1)
        self._vy += (dy * weight).sum(axis=1)

    def _apply_collide(self) -> None:
        x, y, vx, vy, radius = self._x, self._y, self._vx, self._vy, self._radius
        n = len(self._ids)

        for _ in range(self.config.collide_iterations):
            for i in range(n):
                xi = x[i] + vx[i]
                yi = y[i] + vy[i]
                ri2 = radius[i] * radius[i]
                for j in range(i + 1, n):
                    r = radius[i] + radius[j]
                    dx = xi - x[j] - vx[j]
                    dy = yi - y[j] - vy[j]
                    dist2 = dx * dx + dy * dy
                    if dist2 >= r * r:
                        continue
                    if dx == 0:
                        dx = self._jiggle()
                        dist2 += dx * dx
                    if dy == 0:
                        dy = self._jiggle()
                        dist2 += dy * dy
                    dist = math.sqrt(dist2)
                    overlap = (r - dist) / dist
                    dx *= overlap
                    dy *= overlap
                    rj2 = radius[j] * radius[j]
                    share = rj2 / (ri2 + rj2)
                    vx[i] += dx * share
                    vy[i] += dy * share
                    vx[j] -= dx * (1 - share)
                    vy[j] -= dy * (1 - share)

    def _clamp(self) -> None:
        cfg = self.config
        # Horizontal: keep the whole pill inside the container
        half = self._width / 2 + cfg.clamp_padding
        self._x = np.maximum(half, np.minimum(cfg.width - half, self._x))
        # Vertical: top only, deep trees grow downward
        self._y = np.maximum(cfg.node_height / 2 + cfg.clamp_padding, self._y)

    def _write_cache(self) -> None:
        for i, node_id in enumerate(self._ids):
            pos = self.positions.get(node_id)
            if pos is None:
                self.positions[node_id] = NodePosition(
                    x=float(self._x[i]),
                    y=float(self._y[i]),
                    vx=float(self._vx[i]),
                    vy=float(self._vy[i]),
                )
            else:
                pos.x = float(self._x[i])
                pos.y = float(self._y[i])
                pos.vx = float(self._vx[i])
                pos.vy = float(self._vy[i])

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def canvas_height(self) -> float:
        return self.config.canvas_height(self.max_depth)

    def layout_nodes(self) -> list[LayoutNode]:
        """Current placement of every loaded node."""
        return [
            LayoutNode(
                id=node_id,
                label=self._labels[i],
                depth=self.depths.get(node_id, 0),
                x=float(self._x[i]),
                y=float(self._y[i]),
                vx=float(self._vx[i]),
                vy=float(self._vy[i]),
                width=float(self._width[i]),
                height=self.config.node_height,
            )
            for i, node_id in enumerate(self._ids)
        ]

    def edge_path(self, link: TopicLink) -> str | None:
        """SVG path data for a link, or None if an end is not loaded."""
        s = self._index.get(link.source)
        t = self._index.get(link.target)
        if s is None or t is None:
            return None

        sx, sy = float(self._x[s]), float(self._y[s])
        tx, ty = float(self._x[t]), float(self._y[t])

        if self.config.edge_style == "straight":
            return f"M{sx:.1f},{sy:.1f} L{tx:.1f},{ty:.1f}"

        # Cubic Bezier from the bottom of the parent pill to the top of the child
        half = self.config.node_height / 2
        sy += half
        ty -= half
        mid = (sy + ty) / 2
        return f"M{sx:.1f},{sy:.1f} C{sx:.1f},{mid:.1f} {tx:.1f},{mid:.1f} {tx:.1f},{ty:.1f}"
