"""
Configuration defaults, execution settings and logging settings.
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

# Configuration constants
DEFAULT_MAX_CALL_DEPTH = 1_000_000
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")

ENV_MAX_CALL_DEPTH = "SPACEVM_MAX_CALL_DEPTH"
ENV_LOG_LEVEL = "SPACEVM_LOG_LEVEL"
ENV_LOG_FORMAT = "SPACEVM_LOG_FORMAT"


@dataclass(frozen=True)
class ExecutionConfig:
    """
    Settings for one run of the executor.

    Attributes:
        max_call_depth: Largest number of label invocations that may be active
            at once. Jump-based loops add one per iteration. 0 disables the check.
    """

    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH

    def __post_init__(self):
        if self.max_call_depth < 0:
            raise ValueError(f"max_call_depth must be >= 0, got {self.max_call_depth}")

    @property
    def depth_limit(self) -> Optional[int]:
        return self.max_call_depth or None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ExecutionConfig":
        """Build a config from SPACEVM_MAX_CALL_DEPTH."""
        environ = os.environ if environ is None else environ
        raw_depth = environ.get(ENV_MAX_CALL_DEPTH, str(DEFAULT_MAX_CALL_DEPTH))
        try:
            max_call_depth = int(raw_depth)
        except ValueError:
            raise ValueError(f"{ENV_MAX_CALL_DEPTH} must be an integer, got {raw_depth!r}") from None
        return cls(max_call_depth=max_call_depth)


@dataclass(frozen=True)
class LoggingConfig:
    """Log level name and renderer used by configure_logging."""

    log_level: str = DEFAULT_LOG_LEVEL
    log_format: str = DEFAULT_LOG_FORMAT

    def __post_init__(self):
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {self.log_format}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LoggingConfig":
        environ = os.environ if environ is None else environ
        return cls(
            log_level=environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
            log_format=environ.get(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT).lower(),
        )
