"""Configuration management using Pydantic Settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # LLM Configuration (remote OpenAI-compatible endpoint)
    llm_base_url: str = "http://localhost:11434/v1"
    llm_model: str = "qwen3:8b"
    llm_api_key: str = "ollama"
    llm_max_concurrent: int = 4
    llm_timeout: float = 60.0
    extraction_temperature: float = Field(
        default=0.3,
        description="Low temperature keeps topic labels stable across turns"
    )

    # Conversation graph
    root_label: str = "Context"
    graph_context_nodes: int = Field(
        default=10,
        description="How many recent active labels are sent to the topic mapper"
    )
    path_max_iterations: int = Field(
        default=100,
        description="Upper bound on parent hops when highlighting a path to the root"
    )

    # Layout simulation
    layout_width: float = 800.0
    layout_tier_spacing: float = 120.0
    layout_padding_top: float = 60.0
    layout_padding_bottom: float = 60.0
    layout_min_height: float = 400.0
    layout_edge_style: Literal["curve", "straight"] = "curve"
    layout_tier_lock: bool = True
    layout_tick_interval: float = Field(
        default=1 / 60,
        description="Seconds between simulation ticks in the background runner"
    )
    layout_seed: int = 42

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False


def get_dev_settings() -> Settings:
    """Get development environment settings."""
    return Settings(api_debug=True)


def get_test_settings() -> Settings:
    """Get test environment settings."""
    return Settings(
        llm_base_url="http://localhost:11434/v1",
        llm_api_key="test",
        layout_tick_interval=0.0,
    )


# Global settings instance
settings = Settings()
