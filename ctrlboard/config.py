"""ctrlboard configuration management.

Loads configuration from environment variables with sensible defaults.
Watchdog and timesheet defaults mirror the dashboard's out-of-the-box settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class WatchdogDefaults:
    """Default parameters for the internal-work watchdog."""

    threshold: float = 0.2
    weeks_back: int = 1
    use_internal_share: bool = True
    use_zero_last_week: bool = True
    use_min_total: bool = False
    min_total_hours: float = 0.0
    combine: str = "or"  # "and" | "or"


@dataclass
class TimesheetDefaults:
    """Default parameters for the timesheet-completeness watchdog."""

    hours_per_day: float = 8.0
    mode: str = "weekly"  # "weekly" | "monthly"


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    log_format: str = "text"  # json or text
    default_unit: str = "ALL"

    # Paths to persisted settings (optional; missing files mean "use defaults")
    classification_mapping_path: Path = field(
        default_factory=lambda: Path("config/internal_mapping.yaml")
    )
    timesheet_exceptions_path: Path = field(
        default_factory=lambda: Path("config/timesheet_exceptions.yaml")
    )

    slow_evaluation_ms: float = 500.0

    watchdog: WatchdogDefaults = field(default_factory=WatchdogDefaults)
    timesheets: TimesheetDefaults = field(default_factory=TimesheetDefaults)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        All settings are optional:
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - LOG_FORMAT: "json" or "text"; JSON_LOGS=true is a shorthand for json
        - CLASSIFICATION_MAPPING_PATH: internal-project mapping (JSON/YAML)
        - TIMESHEET_EXCEPTIONS_PATH: per-employee exception list (JSON/YAML)
        - WATCHDOG_* / TIMESHEET_*: evaluation defaults

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv(
                "LOG_FORMAT", "json" if os.getenv("JSON_LOGS", "false").lower() == "true" else "text"
            ).lower(),
            default_unit=os.getenv("DEFAULT_UNIT", "ALL"),
            classification_mapping_path=Path(
                os.getenv("CLASSIFICATION_MAPPING_PATH", "config/internal_mapping.yaml")
            ),
            timesheet_exceptions_path=Path(
                os.getenv("TIMESHEET_EXCEPTIONS_PATH", "config/timesheet_exceptions.yaml")
            ),
            slow_evaluation_ms=float(os.getenv("SLOW_EVALUATION_MS", "500")),
            watchdog=WatchdogDefaults(
                threshold=float(os.getenv("WATCHDOG_THRESHOLD", "0.2")),
                weeks_back=int(os.getenv("WATCHDOG_WEEKS_BACK", "1")),
                use_internal_share=os.getenv("WATCHDOG_USE_INTERNAL_SHARE", "true").lower()
                == "true",
                use_zero_last_week=os.getenv("WATCHDOG_USE_ZERO_LAST_WEEK", "true").lower()
                == "true",
                use_min_total=os.getenv("WATCHDOG_USE_MIN_TOTAL", "false").lower()
                == "true",
                min_total_hours=float(os.getenv("WATCHDOG_MIN_TOTAL_HOURS", "0")),
                combine=os.getenv("WATCHDOG_COMBINE", "or").lower(),
            ),
            timesheets=TimesheetDefaults(
                hours_per_day=float(os.getenv("TIMESHEET_HOURS_PER_DAY", "8")),
                mode=os.getenv("TIMESHEET_MODE", "weekly").lower(),
            ),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
