"""
Run configuration.

The compact date form has no year, so every run needs an explicit assumed
year. Canonical rendering needs a timezone for timestamps that carry one.
Both come from here: defaults, then environment, then explicit overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from reward_doctor.dates import resolve_timezone

DEFAULT_YEAR = 2026
DEFAULT_TIMEZONE = "UTC"
DEFAULT_STRATEGY = "auto"
VALID_STRATEGIES = ("auto", "lookahead", "aligned")

ENV_YEAR = "REWARD_DOCTOR_YEAR"
ENV_TIMEZONE = "REWARD_DOCTOR_TIMEZONE"
ENV_STRATEGY = "REWARD_DOCTOR_STRATEGY"


class ConfigError(ValueError):
    """Raised when configuration validation fails."""


@dataclass(frozen=True)
class PipelineConfig:
    year: int = DEFAULT_YEAR
    timezone: str = DEFAULT_TIMEZONE
    strategy: str = DEFAULT_STRATEGY

    def __post_init__(self) -> None:
        if isinstance(self.year, bool) or not isinstance(self.year, int):
            raise ConfigError(f"Assumed year must be an integer, got {self.year!r}")
        if not 1000 <= self.year <= 9999:
            raise ConfigError(f"Assumed year must be a four-digit year, got {self.year}")
        if self.strategy not in VALID_STRATEGIES:
            raise ConfigError(
                f"Unknown strategy '{self.strategy}'. Expected one of: {', '.join(VALID_STRATEGIES)}"
            )
        try:
            resolve_timezone(self.timezone)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides) -> "PipelineConfig":
        env = os.environ if environ is None else environ
        values: dict = {}
        raw_year = env.get(ENV_YEAR, "").strip()
        if raw_year:
            try:
                values["year"] = int(raw_year)
            except ValueError as exc:
                raise ConfigError(f"{ENV_YEAR} must be an integer, got '{raw_year}'") from exc
        if env.get(ENV_TIMEZONE, "").strip():
            values["timezone"] = env[ENV_TIMEZONE].strip()
        if env.get(ENV_STRATEGY, "").strip():
            values["strategy"] = env[ENV_STRATEGY].strip().lower()
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def with_strategy(self, strategy: str) -> "PipelineConfig":
        return replace(self, strategy=strategy)

    def as_dict(self) -> dict:
        return {"year": self.year, "timezone": self.timezone, "strategy": self.strategy}
