from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from clickerengine.offline import DEFAULT_OFFLINE_CAP_SECONDS


@dataclass
class EngineConfig:
    """Top-level engine configuration."""

    offline_cap_seconds: int = DEFAULT_OFFLINE_CAP_SECONDS
    auto_base_period_ms: int = 1000
    equipment_period_ms: int = 2000
    mining_period_ms: int = 1000
    save_path: Path = field(default_factory=lambda: Path("clicker_save.json"))
    log_level: str = "INFO"
    seed: int | None = None

    def validate(self) -> list[str]:
        """Check for configuration errors. Returns list of error messages."""
        errors: list[str] = []

        if self.offline_cap_seconds < 0:
            errors.append(
                f"offline_cap_seconds must be >= 0, got {self.offline_cap_seconds}"
            )
        for name in ("auto_base_period_ms", "equipment_period_ms", "mining_period_ms"):
            value = getattr(self, name)
            if value <= 0:
                errors.append(f"{name} must be > 0, got {value}")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors.append(f"Unknown log level: {self.log_level!r}")

        return errors
