"""
Garden module: habit completion and plant progression.

Components
----------
- GardenStore: transactional store over SQLAlchemy
- CompletionLedger: per-day completed-habit lookups
- XPTransactor: exactly-once XP award per (habit, day)
- ActivityService: concurrent snapshot loading into activity views
- FocalPlantSelector: persisted "main plant" pointer with fallback
- CompletionWorkflow: guarded submit state machine
"""

from .activity_service import (
    ActivityService,
    ActivityView,
    PlantProgress,
    build_activity_view,
    rolling_window,
)
from .completion_ledger import CompletionLedger, has_completed_today
from .completion_workflow import (
    BlockReason,
    CompletionNotice,
    CompletionWorkflow,
    WorkflowState,
)
from .focal_selector import FocalPlantSelector, focal_preference_key, resolve_focal_plant
from .session import OwnerScope, SessionProvider, StaticSessionProvider, require_scope
from .store import CompletionReceipt, GardenStore
from .xp_transactor import AwardOutcome, AwardResult, XPTransactor

__all__ = [
    "ActivityService",
    "ActivityView",
    "PlantProgress",
    "build_activity_view",
    "rolling_window",
    "CompletionLedger",
    "has_completed_today",
    "BlockReason",
    "CompletionNotice",
    "CompletionWorkflow",
    "WorkflowState",
    "FocalPlantSelector",
    "focal_preference_key",
    "resolve_focal_plant",
    "OwnerScope",
    "SessionProvider",
    "StaticSessionProvider",
    "require_scope",
    "CompletionReceipt",
    "GardenStore",
    "AwardOutcome",
    "AwardResult",
    "XPTransactor",
]
