"""Config module exports."""

from covgate.config.loader import load_config, normalize_raw_config
from covgate.config.models import (
    CommentConfig,
    CovGateConfig,
    LoggingConfig,
    PatchStatusConfig,
    ProjectStatusConfig,
    StatusConfig,
)

__all__ = [
    "load_config",
    "normalize_raw_config",
    "CovGateConfig",
    "CommentConfig",
    "LoggingConfig",
    "PatchStatusConfig",
    "ProjectStatusConfig",
    "StatusConfig",
]
