"""
Domain modules for Habit Garden.

- shared: exceptions, base service/repository, formulas, validators
- garden: habit completion and plant progression
"""
