"""Configuration models for the visual regression engine."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

Color = tuple[int, int, int, int]

DEFAULT_DIFF_COLOR: Color = (255, 0, 0, 255)
DEFAULT_AA_COLOR: Color = (0, 255, 0, 255)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_color(value: str) -> Color:
    """Parse "r,g,b" or "r,g,b,a" into an RGBA tuple."""
    parts = [p.strip() for p in value.split(",") if p.strip()]
    if len(parts) not in (3, 4):
        raise ValueError(f"Expected 'r,g,b' or 'r,g,b,a', got {value!r}")
    channels = [int(p) for p in parts]
    if len(channels) == 3:
        channels.append(255)
    return tuple(channels)  # type: ignore[return-value]


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Expected a boolean value, got {value!r}")


class VisualConfig(BaseModel):
    """Per-comparator tuning.

    ``threshold`` is used twice: as the per-pixel colour distance cutoff and as
    the fraction of differing pixels a screen may have and still pass.
    """

    threshold: float = 0.05
    ignore_antialiasing: bool = True
    alpha: float = 0.1
    diff_color: Color = DEFAULT_DIFF_COLOR
    aa_color: Color = DEFAULT_AA_COLOR
    diff_mask: bool = True  # matching pixels stay transparent in the diff image

    @field_validator("threshold", "alpha")
    @classmethod
    def check_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"must be within [0, 1], got {v}")
        return v

    @field_validator("diff_color", "aa_color", mode="before")
    @classmethod
    def coerce_color(cls, v):
        if isinstance(v, str):
            v = parse_color(v)
        v = tuple(v)
        if len(v) == 3:
            v = (*v, 255)
        if len(v) != 4 or any(not 0 <= int(c) <= 255 for c in v):
            raise ValueError(f"color must be 4 channels in 0..255, got {v}")
        return tuple(int(c) for c in v)


class EngineConfig(BaseModel):
    # Comparison
    visual: VisualConfig = Field(default_factory=VisualConfig)

    # Locations
    output_dir: str = "./visual-results"
    prototypes_dir: str = "./prototypes"

    # Device/OS configuration of the current run
    device_id: str = "unknown"
    device_name: Optional[str] = None
    api_level: str = "unknown"

    # Aggregation
    configurations: list[str] = Field(default_factory=list)  # empty = every results subdirectory
    stale_after_hours: float = 24.0
    history_capacity: int = 30

    # Execution
    max_parallel_comparisons: int = 4

    # Reporting
    report_formats: list[str] = Field(default_factory=lambda: ["html", "json"])

    @field_validator("output_dir", "prototypes_dir", mode="before")
    @classmethod
    def resolve_env_dir(cls, v: str) -> str:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v

    @field_validator("max_parallel_comparisons", "history_capacity")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be at least 1, got {v}")
        return v

    @property
    def configuration_id(self) -> str:
        """Directory name for this run's results, e.g. ``api-31``."""
        if self.api_level != "unknown":
            return f"api-{self.api_level}"
        return self.device_id

    @classmethod
    def load(cls, path: str | Path) -> "EngineConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, base: "EngineConfig | None" = None) -> "EngineConfig":
        """Overlay environment variables on ``base`` (or the defaults)."""
        env = os.environ if environ is None else environ
        data = (base or cls()).model_dump()
        visual = data["visual"]

        if "VISUAL_THRESHOLD" in env:
            visual["threshold"] = float(env["VISUAL_THRESHOLD"])
        if "VISUAL_IGNORE_ANTIALIASING" in env:
            visual["ignore_antialiasing"] = parse_bool(env["VISUAL_IGNORE_ANTIALIASING"])
        if "VISUAL_ALPHA" in env:
            visual["alpha"] = float(env["VISUAL_ALPHA"])
        if "VISUAL_DIFF_COLOR" in env:
            visual["diff_color"] = parse_color(env["VISUAL_DIFF_COLOR"])
        if "VISUAL_OUTPUT_DIR" in env:
            data["output_dir"] = env["VISUAL_OUTPUT_DIR"]
        if "VISUAL_PROTOTYPES_DIR" in env:
            data["prototypes_dir"] = env["VISUAL_PROTOTYPES_DIR"]
        if "VISUAL_MAX_PARALLEL" in env:
            data["max_parallel_comparisons"] = int(env["VISUAL_MAX_PARALLEL"])
        if "API_LEVEL" in env:
            data["api_level"] = env["API_LEVEL"]
        if "DEVICE_NAME" in env:
            data["device_name"] = env["DEVICE_NAME"]
        if "DEVICE_ID" in env:
            data["device_id"] = env["DEVICE_ID"]
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
