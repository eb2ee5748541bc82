r"""
Run configuration and presets.

Presets:
    - quick: 1 verify pass, no warmup, stop at 15% relative margin of error
      or after 1s (fast local iteration, the default)
    - default: 2 verify passes, 10 warmups, at least 25 samples, stop at 5%
      relative margin of error or after 15s

    from client_bench.config import PRESETS, get_preset

    config = get_preset("default")
    print(f"Warmups: {config.warmups}, target: {config.target_relative_margin_of_error}%")
"""

import math
import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

# Look for .env in current dir or the project root
env_file = Path(".env")
if not env_file.exists():
    env_file = Path(__file__).parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file)

__all__ = [
    "Configuration",
    "PRESETS",
    "DEFAULT_PRESET",
    "get_preset",
    "get_env",
    "config_from_env",
    "ENV_PREFIX",
]

ENV_PREFIX = "CLIENT_BENCH_"


@dataclass(frozen=True, slots=True)
class Configuration:
    """Parameters governing a suite run.

    Attributes:
        verify_passes: Passes run with verify() to ferret out bugs.
        warmups: Unmeasured passes run to warm caches.
        min_samples: Samples required before convergence is considered.
        max_duration_ms: Hard ceiling for the iteration phase.
        target_relative_margin_of_error: Convergence threshold, in percent.
    """

    verify_passes: int = 2
    warmups: int = 10
    min_samples: int = 25
    max_duration_ms: float = 15_000
    target_relative_margin_of_error: float = 5.0

    def __post_init__(self) -> None:
        for name in ("verify_passes", "warmups", "min_samples"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"{name} must be an integer, got {value!r}"
                raise ValueError(msg)
        for name in ("max_duration_ms", "target_relative_margin_of_error"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int | float) or not math.isfinite(value):
                msg = f"{name} must be a finite number, got {value!r}"
                raise ValueError(msg)
        if self.verify_passes < 0:
            msg = f"verify_passes must be >= 0, got {self.verify_passes}"
            raise ValueError(msg)
        if self.warmups < 0:
            msg = f"warmups must be >= 0, got {self.warmups}"
            raise ValueError(msg)
        if self.min_samples < 1:
            msg = f"min_samples must be >= 1, got {self.min_samples}"
            raise ValueError(msg)
        if self.max_duration_ms <= 0:
            msg = f"max_duration_ms must be > 0, got {self.max_duration_ms}"
            raise ValueError(msg)
        if self.target_relative_margin_of_error <= 0:
            msg = f"target_relative_margin_of_error must be > 0, got {self.target_relative_margin_of_error}"
            raise ValueError(msg)


PRESETS: dict[str, Configuration] = {
    "default": Configuration(
        verify_passes=2,
        warmups=10,
        min_samples=25,
        max_duration_ms=15 * 1e3,
        target_relative_margin_of_error=5.0,
    ),
    # Tuned for fast local iteration rather than statistical rigor
    "quick": Configuration(
        verify_passes=1,
        warmups=0,
        min_samples=2,
        max_duration_ms=1 * 1e3,
        target_relative_margin_of_error=15.0,
    ),
}

DEFAULT_PRESET = "quick"

# Environment variable (without prefix) -> (field, parser)
_ENV_FIELDS: dict[str, tuple[str, type]] = {
    "VERIFY_PASSES": ("verify_passes", int),
    "WARMUPS": ("warmups", int),
    "MIN_SAMPLES": ("min_samples", int),
    "MAX_DURATION_MS": ("max_duration_ms", float),
    "TARGET_RME": ("target_relative_margin_of_error", float),
}


def get_preset(name: str) -> Configuration:
    """Get a preset configuration by name.

    Args:
        name: Preset name (quick, default).

    Returns:
        Configuration for the preset.

    Raises:
        ValueError: If the preset name is not recognized.
    """
    if name not in PRESETS:
        valid = ", ".join(PRESETS.keys())
        msg = f"Unknown preset '{name}'. Valid presets: {valid}"
        raise ValueError(msg)
    return PRESETS[name]


def get_env(key: str, *, default: str | None = None) -> str | None:
    """Get environment variable with CLIENT_BENCH_ prefix.

    Args:
        key: Variable name without prefix (e.g., "WARMUPS").
        default: Default value if not set.

    Returns:
        Environment variable value or default.
    """
    return os.environ.get(f"{ENV_PREFIX}{key}", default)


def config_from_env(base: Configuration | None = None) -> Configuration:
    """Apply CLIENT_BENCH_* overrides on top of a configuration.

    Args:
        base: Configuration to start from (None = default preset).

    Returns:
        New configuration with any overrides applied.

    Raises:
        ValueError: If an override is not a valid number.
    """
    config = base or get_preset(DEFAULT_PRESET)
    overrides: dict[str, int | float] = {}
    for key, (field_name, parse) in _ENV_FIELDS.items():
        value = get_env(key)
        if value is None:
            continue
        try:
            overrides[field_name] = parse(value)
        except ValueError:
            msg = f"Invalid value for {ENV_PREFIX}{key}: {value!r}"
            raise ValueError(msg) from None
    return replace(config, **overrides) if overrides else config
