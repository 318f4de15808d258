"""CLI configuration shared by every command."""
from __future__ import annotations

from dataclasses import dataclass

from scene_codegen.config import cfg


@dataclass
class CLIConfig:
    format: str = "text"
    store_path: str | None = None


_config = CLIConfig()


def set_config(format: str = "text", store_path: str | None = None) -> CLIConfig:
    global _config
    _config = CLIConfig(format=format, store_path=store_path or cfg.store_path)
    return _config


def get_config() -> CLIConfig:
    return _config
