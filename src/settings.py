"""
RPI Engine — Settings
======================
Loads config/settings.yaml once and applies environment overrides.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"


@dataclass(frozen=True)
class Settings:
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 4096
    temperature: float = 0.2
    round_decimals: int = 2
    history_size: int = 10
    weight_sum_tolerance: float = 0.05
    rpi_deviation_tolerance: float = 10.0
    api_key: Optional[str] = None

    def with_model(self, model: str) -> "Settings":
        """Per-session model override (sidebar, CLI flag)."""
        return replace(self, model=model) if model else self


_CACHE: dict = {}


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return data


def load_settings(path: Optional[Path] = None, environ: Optional[dict] = None) -> Settings:
    """
    Build Settings from the YAML file plus environment.

    Unknown YAML keys are ignored. The API key never comes from the file.
    Results for the default path and real environment are cached.
    """
    use_cache = path is None and environ is None
    if use_cache and "settings" in _CACHE:
        return _CACHE["settings"]

    env = os.environ if environ is None else environ
    raw = _read_yaml(Path(path) if path else DEFAULT_CONFIG_PATH)

    known = {f.name for f in fields(Settings)} - {"api_key"}
    values = {k: v for k, v in raw.items() if k in known}

    if env.get("RPI_MODEL"):
        values["model"] = env["RPI_MODEL"]
    raw_tokens = env.get("RPI_MAX_TOKENS")
    if raw_tokens:
        try:
            values["max_tokens"] = int(raw_tokens)
        except ValueError as exc:
            raise ValueError(f"RPI_MAX_TOKENS must be an integer, got {raw_tokens!r}") from exc
    values["api_key"] = env.get("ANTHROPIC_API_KEY") or None

    settings = Settings(**values)
    if use_cache:
        _CACHE["settings"] = settings
    return settings


def reset_settings_cache() -> None:
    _CACHE.clear()
