"""
Habit Garden Domain Constants

Gameplay values for habit rewards and plant growth. Infrastructure limits
(pool sizes, timeouts, log settings) live in ``src.core.config``.

Values are annotated with typing.Final to signal immutability.
"""

from __future__ import annotations

from typing import Final

# ============================================================================
# PLANT GROWTH
# ============================================================================

STAGE_XP_UNIT: Final[int] = 25  # XP per growth stage
INITIAL_PLANT_XP: Final[int] = 0
INITIAL_PLANT_STAGE: Final[int] = 0
DEFAULT_PLANT_SPECIES: Final[str] = "sprout"

# ============================================================================
# HABITS
# ============================================================================

MIN_XP_REWARD: Final[int] = 0
MAX_XP_REWARD: Final[int] = 1000
DEFAULT_XP_REWARD: Final[int] = 10
MAX_HABIT_TITLE_LENGTH: Final[int] = 200

DEFAULT_GARDEN_NAME: Final[str] = "My Garden"

# ============================================================================
# ACTIVITY
# ============================================================================

DEFAULT_ACTIVITY_WINDOW_DAYS: Final[int] = 7
MAX_RETAINED_VIEWS: Final[int] = 128  # latest activity views kept per service
DAY_FORMAT: Final[str] = "%Y-%m-%d"

# ============================================================================
# EVENTS
# ============================================================================

EVENT_HABIT_COMPLETED: Final[str] = "garden.habit.completed"
EVENT_PLANT_LEVELLED_UP: Final[str] = "garden.plant.levelled_up"
EVENT_ACTIVITY_REFRESH_REQUESTED: Final[str] = "garden.activity.refresh_requested"
EVENT_FOCAL_CHANGED: Final[str] = "garden.focal.changed"
