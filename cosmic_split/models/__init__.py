"""Domain models for the COSMIC split engine.

Rows and the session Dataset, session state/results, config and error records.
"""

from .config_models import AppConfig, GeneratorConfig, SessionConfig
from .dataset import Dataset, normalize_key
from .error_record import ErrorRecord
from .row import DISPLAY_FIELDS, MovementKind, Row
from .session_result import RoundStat, SessionResult, SessionState, StopReason

__all__ = [
    # Configuration models
    "AppConfig",
    "GeneratorConfig",
    "SessionConfig",
    # Table models
    "DISPLAY_FIELDS",
    "Dataset",
    "MovementKind",
    "Row",
    "normalize_key",
    # Session models
    "ErrorRecord",
    "RoundStat",
    "SessionResult",
    "SessionState",
    "StopReason",
]
