"""
Configuration for the RaceRoom toolbox.
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Configuration with environment variable support."""

    # Paths - loaded from .env file
    r3e_data_path: str = field(
        default_factory=lambda: os.getenv("R3E_DATA_PATH", "r3e-data.json")
    )
    aiadaptation_path: str = field(
        default_factory=lambda: os.getenv("R3E_AIADAPTATION_PATH", "aiadaptation.xml")
    )

    # Prediction range
    min_ai: int = field(default_factory=lambda: int(os.getenv("R3E_MIN_AI", "80")))
    max_ai: int = field(default_factory=lambda: int(os.getenv("R3E_MAX_AI", "120")))

    # === FITTING ===

    fit_all: bool = field(default_factory=lambda: _env_bool("R3E_FIT_ALL", "false"))  # Fit every sample instead of level means
    fit_degree: int = field(default_factory=lambda: int(os.getenv("R3E_FIT_DEGREE", "1")))  # 1 = linear, 2 = parabola
    test_min_ai_diffs: int = 2  # Min spread between lowest and highest sampled level
    test_max_time_pct: float = 0.1  # Deviation tolerance, fraction of the slowest level time
    test_max_fails_pct: float = 0.1  # Allowed failure rate before a fit is unreliable

    # Applying generated levels
    ai_num_levels: int = 5  # Levels written around the selected level
    ai_spacing: int = 1  # Step between written levels (1-5)

    # Logging
    save_logs: bool = field(default_factory=lambda: _env_bool("R3E_SAVE_LOGS", "false"))
    log_dir: Path = field(default_factory=lambda: Path("./data/logs"))
    echo_logs: bool = True

    def __post_init__(self):
        """Validate ranges and ensure directories exist."""
        if self.min_ai > self.max_ai:
            raise ValueError(f"min_ai ({self.min_ai}) is above max_ai ({self.max_ai})")
        if not 1 <= self.ai_spacing <= 5:
            raise ValueError(f"ai_spacing must be within 1-5, got {self.ai_spacing}")
        if self.ai_num_levels < 1:
            raise ValueError(f"ai_num_levels must be positive, got {self.ai_num_levels}")
        if self.fit_degree not in (1, 2):
            raise ValueError(f"fit_degree must be 1 or 2, got {self.fit_degree}")
        for name in ("test_max_time_pct", "test_max_fails_pct"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within 0-1, got {value}")
        if self.save_logs:
            Path(self.log_dir).mkdir(parents=True, exist_ok=True)


class Settings:
    """Mutable holder for the current configuration.

    Consumers take a snapshot per operation; the snapshot itself is frozen.
    """

    def __init__(self, config: Optional[Config] = None):
        self._config = config or Config()

    def snapshot(self) -> Config:
        return self._config

    def update(self, **changes) -> Config:
        """Apply a partial update and return the new snapshot."""
        known = {f.name for f in fields(Config)}
        unknown = set(changes) - known
        if unknown:
            raise KeyError(f"Unknown settings: {', '.join(sorted(unknown))}")

        # Spacing is clamped rather than rejected, matching the input widget
        if "ai_spacing" in changes:
            changes["ai_spacing"] = min(5, max(1, int(changes["ai_spacing"])))

        self._config = replace(self._config, **changes)
        return self._config

    def reset(self) -> Config:
        self._config = Config()
        return self._config
