from __future__ import annotations

"""Configuration loading and validation for frettrainer.

This module loads the packaged YAML defaults, layers an optional user file
on top, falls back on unsupported enum values with a warning, and validates
the result into typed models.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..theory.fretboard import TUNINGS
from .settings import AppConfig, deep_merge


ALLOWED_PITCH_CLASS_FILTERS = {"natural", "sharps", "flats", "both", "custom"}
ALLOWED_DISPLAY_PREFERENCES = {"sharps", "flats", "both"}

DEFAULTS_PATH = Path(__file__).with_name("defaults.yml")


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"ERROR: Config file must hold a mapping: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from the package defaults and an optional user file.

    Args:
        path: Optional path to a YAML config. Its values override the defaults.

    Returns:
        A dictionary with configuration values.
    """
    cfg = _load_yaml(DEFAULTS_PATH)
    if path:
        cfg = deep_merge(cfg, _load_yaml(Path(path)))
    return cfg


def validate_config(cfg: Dict[str, Any]) -> AppConfig:
    """Apply defaults, repair unsupported enums and validate.

    Unknown tunings, pitch-class filters and display preferences fall back
    to their defaults with a warning. Out-of-range numbers are not repaired;
    they raise pydantic.ValidationError.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated AppConfig.
    """
    cfg = dict(cfg)
    flow = dict(cfg.get("flow") or {})
    generator = dict(flow.get("generator") or {})

    tuning = cfg.setdefault("tuning", "standard")
    if tuning not in TUNINGS:
        print(f"WARNING: Unsupported tuning '{tuning}', using 'standard'.", file=sys.stderr)
        cfg["tuning"] = "standard"

    pc_filter = generator.setdefault("pitch_class_filter", "sharps")
    if pc_filter not in ALLOWED_PITCH_CLASS_FILTERS:
        print(f"WARNING: Unsupported pitch_class_filter '{pc_filter}', using 'sharps'.", file=sys.stderr)
        generator["pitch_class_filter"] = "sharps"

    display = generator.setdefault("display_preference", "sharps")
    if display not in ALLOWED_DISPLAY_PREFERENCES:
        print(f"WARNING: Unsupported display_preference '{display}', using 'sharps'.", file=sys.stderr)
        generator["display_preference"] = "sharps"

    flow["generator"] = generator
    cfg["flow"] = flow
    cfg.setdefault("progressive", {})
    return AppConfig.model_validate(cfg)
