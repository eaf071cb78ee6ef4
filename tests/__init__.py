"""
Habit Garden Test Suite
=======================

Test Organization
-----------------
- tests/unit/          : Mocked collaborators, no I/O
- tests/unit/domain/   : Snapshot dataclass invariants
- tests/integration/   : Real SQLite database through DatabaseService

Markers: unit, integration, database, domain. Arrange/Act/Assert.
"""
