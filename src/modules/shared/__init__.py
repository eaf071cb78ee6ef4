"""
Habit Garden Shared Module

Domain-level foundations for the garden modules:
- Domain exceptions and error handling
- Base service and repository patterns
- Growth constants and progression formulas
- Input validators

Usage
-----
    from src.modules.shared import (
        BaseService,
        TransientStoreError,
        stage_of,
        parse_day,
    )
"""

from __future__ import annotations

from .base_repository import BaseRepository
from .base_service import BaseService
from .constants import (
    DEFAULT_ACTIVITY_WINDOW_DAYS,
    DEFAULT_PLANT_SPECIES,
    EVENT_ACTIVITY_REFRESH_REQUESTED,
    EVENT_FOCAL_CHANGED,
    EVENT_HABIT_COMPLETED,
    EVENT_PLANT_LEVELLED_UP,
    MAX_XP_REWARD,
    STAGE_XP_UNIT,
)
from .exceptions import (
    ErrorSeverity,
    GardenDomainException,
    InvalidOperationError,
    NotAuthenticatedError,
    NotFoundError,
    PartialLoadError,
    TransientStoreError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)
from .formulas import (
    AwardPreview,
    StageProgress,
    preview_award,
    progress_within_stage,
    stage_of,
)
from .validators import (
    parse_day,
    validate_entity_id,
    validate_title,
    validate_xp_reward,
)

__all__ = [
    # Base patterns
    "BaseService",
    "BaseRepository",
    # Exceptions
    "GardenDomainException",
    "ErrorSeverity",
    "NotFoundError",
    "ValidationError",
    "InvalidOperationError",
    "TransientStoreError",
    "PartialLoadError",
    "NotAuthenticatedError",
    "is_transient_error",
    "get_error_severity",
    "should_alert",
    # Constants
    "STAGE_XP_UNIT",
    "MAX_XP_REWARD",
    "DEFAULT_PLANT_SPECIES",
    "DEFAULT_ACTIVITY_WINDOW_DAYS",
    "EVENT_HABIT_COMPLETED",
    "EVENT_PLANT_LEVELLED_UP",
    "EVENT_ACTIVITY_REFRESH_REQUESTED",
    "EVENT_FOCAL_CHANGED",
    # Formulas
    "StageProgress",
    "AwardPreview",
    "stage_of",
    "progress_within_stage",
    "preview_award",
    # Validators
    "parse_day",
    "validate_entity_id",
    "validate_xp_reward",
    "validate_title",
]
