"""
XP Transactor - one completion, one atomic XP award.

Purpose
-------
Defines the call contract around ``GardenStore.complete_habit`` and turns
its result into one of three outcomes:

- APPLIED: the completion was recorded and the plant gained the reward
- ALREADY_APPLIED: the (habit, day) completion already existed; not an error
- FAILED: validation or store failure, with a reason and a retry hint

Rules
-----
- Ids and the ``YYYY-MM-DD`` day are validated before any I/O
- A (habit, day) pair seen to settle is answered ALREADY_APPLIED locally
  without another store call
- Never retries on its own; ``retryable`` only tells the user it is safe
- Never patches derived state; callers re-read after settlement

Events
------
- garden.habit.completed   (APPLIED)
- garden.plant.levelled_up (APPLIED with a stage change)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Set, Tuple, Union

from src.modules.shared.base_service import BaseService
from src.modules.shared.constants import (
    EVENT_HABIT_COMPLETED,
    EVENT_PLANT_LEVELLED_UP,
)
from src.modules.shared.exceptions import (
    ErrorSeverity,
    GardenDomainException,
    ValidationError,
    get_error_severity,
)
from src.modules.shared.validators import parse_day, validate_entity_id

if TYPE_CHECKING:
    from logging import Logger

    from src.core.event.bus import EventBus
    from src.modules.garden.session import OwnerScope
    from src.modules.garden.store import CompletionReceipt, GardenStore


class AwardOutcome(str, Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    FAILED = "failed"


@dataclass(frozen=True)
class AwardResult:
    outcome: AwardOutcome
    habit_id: Any
    plant_id: Any
    day: Optional[date]
    reason: Optional[str] = None
    retryable: bool = False
    error_code: Optional[str] = None
    xp_awarded: int = 0
    new_xp: Optional[int] = None
    from_stage: Optional[int] = None
    to_stage: Optional[int] = None

    @property
    def settled(self) -> bool:
        return self.outcome is not AwardOutcome.FAILED

    @property
    def levelled_up(self) -> bool:
        return (
            self.outcome is AwardOutcome.APPLIED
            and self.from_stage is not None
            and self.to_stage is not None
            and self.to_stage > self.from_stage
        )

    @classmethod
    def from_receipt(cls, receipt: CompletionReceipt) -> AwardResult:
        if not receipt.applied:
            return cls(
                outcome=AwardOutcome.ALREADY_APPLIED,
                habit_id=receipt.habit_id,
                plant_id=receipt.plant_id,
                day=receipt.day,
            )
        return cls(
            outcome=AwardOutcome.APPLIED,
            habit_id=receipt.habit_id,
            plant_id=receipt.plant_id,
            day=receipt.day,
            xp_awarded=receipt.xp_awarded,
            new_xp=receipt.to_xp,
            from_stage=receipt.from_stage,
            to_stage=receipt.to_stage,
        )

    @classmethod
    def failed(
        cls, habit_id: Any, plant_id: Any, day: Optional[date], exc: GardenDomainException
    ) -> AwardResult:
        return cls(
            outcome=AwardOutcome.FAILED,
            habit_id=habit_id,
            plant_id=plant_id,
            day=day,
            reason=exc.message,
            retryable=exc.is_retryable,
            error_code=exc.error_code,
        )


class XPTransactor(BaseService):
    """
    Awards a habit's XP to one plant, exactly once per (habit, day).

    Dependencies
    ------------
    - GardenStore: the atomic ``complete_habit`` call
    - EventBus: completion and level-up events
    """

    def __init__(
        self,
        store: GardenStore,
        config: Any,
        event_bus: Optional[EventBus],
        logger: Logger,
    ) -> None:
        super().__init__(config, event_bus, logger)
        self._store = store
        self._settled: Set[Tuple[int, date]] = set()
        self._newest_day: Optional[date] = None

    def _remember(self, key: Tuple[int, date]) -> None:
        # Pairs before the newest award day are dropped; the store still dedupes them
        day = key[1]
        if self._newest_day is None or day > self._newest_day:
            self._newest_day = day
            self._settled = {entry for entry in self._settled if entry[1] >= day}
        self._settled.add(key)

    def is_settled(self, habit_id: int, day: Union[date, str]) -> bool:
        """True if this transactor has seen (habit, day) settle."""
        return (habit_id, parse_day(day)) in self._settled

    async def award(
        self,
        scope: OwnerScope,
        habit_id: int,
        plant_id: int,
        day: Union[date, str],
    ) -> AwardResult:
        """
        Complete ``habit_id`` on ``day``, crediting ``plant_id``.

        Returns:
            AwardResult; domain failures never raise

        Raises:
            Exception: Only for unexpected, non-domain errors (logged first)
        """
        try:
            habit_id = validate_entity_id(habit_id, "habit_id")
            plant_id = validate_entity_id(plant_id, "plant_id")
            award_day = parse_day(day)
        except ValidationError as exc:
            self.log.info(
                "Award rejected before I/O",
                extra={"operation": "award", "error_code": exc.error_code},
            )
            return AwardResult.failed(habit_id, plant_id, None, exc)

        key = (habit_id, award_day)
        if key in self._settled:
            self.log.debug(
                "Award already settled locally",
                extra={"habit_id": habit_id, "day": award_day.isoformat()},
            )
            return AwardResult(
                outcome=AwardOutcome.ALREADY_APPLIED,
                habit_id=habit_id,
                plant_id=plant_id,
                day=award_day,
            )

        self.log_operation(
            "award",
            habit_id=habit_id,
            plant_id=plant_id,
            day=award_day.isoformat(),
        )

        try:
            receipt = await self._store.complete_habit(scope, habit_id, plant_id, award_day)
        except GardenDomainException as exc:
            if get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
                self.log_error("award", exc, habit_id=habit_id, plant_id=plant_id)
            else:
                self.log.warning(
                    f"Award failed: {exc.message}",
                    extra={
                        "operation": "award",
                        "habit_id": habit_id,
                        "plant_id": plant_id,
                        "error_code": exc.error_code,
                        "retryable": exc.is_retryable,
                    },
                )
            return AwardResult.failed(habit_id, plant_id, award_day, exc)
        except Exception as exc:
            self.log_error("award", exc, habit_id=habit_id, plant_id=plant_id)
            raise

        self._remember(key)
        result = AwardResult.from_receipt(receipt)

        if result.outcome is AwardOutcome.APPLIED:
            context = {"user_id": scope.user_id, "garden_id": scope.garden_id}
            await self.emit_event(
                EVENT_HABIT_COMPLETED,
                {
                    "habit_id": habit_id,
                    "plant_id": plant_id,
                    "day": award_day.isoformat(),
                    "xp_awarded": result.xp_awarded,
                    "new_xp": result.new_xp,
                },
                context,
            )
            if result.levelled_up:
                await self.emit_event(
                    EVENT_PLANT_LEVELLED_UP,
                    {
                        "plant_id": plant_id,
                        "from_stage": result.from_stage,
                        "to_stage": result.to_stage,
                    },
                    context,
                )

        return result
