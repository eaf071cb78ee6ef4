"""
Garden domain models: gardens, habits, plants and habit completions.
"""

from .garden import Garden
from .habit import Habit
from .habit_completion import HabitCompletion
from .plant import Plant

__all__ = [
    "Garden",
    "Habit",
    "HabitCompletion",
    "Plant",
]
