"""
Completion Workflow - the user-facing "complete habit" action.

States
------
IDLE -> SUBMITTING -> {SETTLED_SUCCESS, SETTLED_ALREADY_DONE, SETTLED_ERROR} -> IDLE

- A submission is rejected, with no transition and no store call, when no
  habit is selected, the habit is inactive, there is no target plant, the
  ledger already shows the habit done today, or a submission is in flight.
- Exactly one ``award`` is in flight per workflow instance.
- Success and already-done both request an activity refresh; an error
  publishes nothing. Every path ends back in IDLE.

The presentation layer renders the returned ``CompletionNotice`` and
disables its button whenever ``can_submit`` is False.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union

from src.core.logging.logger import LogContext
from src.modules.garden.session import OwnerScope, require_scope
from src.modules.garden.xp_transactor import AwardOutcome, AwardResult
from src.modules.shared.base_service import BaseService
from src.modules.shared.constants import EVENT_ACTIVITY_REFRESH_REQUESTED
from src.modules.shared.exceptions import NotAuthenticatedError
from src.modules.shared.validators import parse_day

if TYPE_CHECKING:
    from logging import Logger

    from src.core.event.bus import EventBus
    from src.domain.models.garden import Habit, Plant
    from src.modules.garden.completion_ledger import CompletionLedger
    from src.modules.garden.session import SessionProvider
    from src.modules.garden.xp_transactor import XPTransactor


class WorkflowState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SETTLED_SUCCESS = "settled_success"
    SETTLED_ALREADY_DONE = "settled_already_done"
    SETTLED_ERROR = "settled_error"


class BlockReason(str, Enum):
    NO_HABIT = "no_habit"
    HABIT_INACTIVE = "habit_inactive"
    NO_TARGET_PLANT = "no_target_plant"
    ALREADY_COMPLETED = "already_completed"
    SUBMITTING = "submitting"


_BLOCK_MESSAGES = {
    BlockReason.NO_HABIT: ("No habit selected", "Pick a habit to complete."),
    BlockReason.HABIT_INACTIVE: ("Habit archived", "This habit is no longer active."),
    BlockReason.NO_TARGET_PLANT: ("No plant available", "Create a plant first."),
    BlockReason.ALREADY_COMPLETED: ("Already completed", "This habit is done for today."),
    BlockReason.SUBMITTING: ("Please wait", "Completion in progress."),
}


@dataclass(frozen=True)
class CompletionNotice:
    """What the user is told about one submission."""

    state: WorkflowState
    tone: str
    title: str
    message: str
    levelled_up: bool = False
    retryable: bool = False
    blocked: Optional[BlockReason] = None
    result: Optional[AwardResult] = None

    @property
    def accepted(self) -> bool:
        return self.blocked is None


class CompletionWorkflow(BaseService):
    """
    Orchestrates one habit completion at a time.

    Dependencies
    ------------
    - XPTransactor: the single ``award`` call
    - SessionProvider: owner scope for the call
    - EventBus: refresh requests after settlement
    """

    def __init__(
        self,
        transactor: XPTransactor,
        sessions: SessionProvider,
        config: Any,
        event_bus: Optional[EventBus],
        logger: Logger,
    ) -> None:
        super().__init__(config, event_bus, logger)
        self._transactor = transactor
        self._sessions = sessions
        self._state = WorkflowState.IDLE
        self._last_settled: Optional[WorkflowState] = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def last_settled(self) -> Optional[WorkflowState]:
        return self._last_settled

    @property
    def is_submitting(self) -> bool:
        return self._state is WorkflowState.SUBMITTING

    def submission_block_reason(
        self,
        habit: Optional[Habit],
        target_plant: Optional[Plant],
        ledger: CompletionLedger,
        day: Union[date, str],
    ) -> Optional[BlockReason]:
        if self.is_submitting:
            return BlockReason.SUBMITTING
        if habit is None:
            return BlockReason.NO_HABIT
        if not habit.is_active:
            return BlockReason.HABIT_INACTIVE
        if target_plant is None or not target_plant.is_live:
            return BlockReason.NO_TARGET_PLANT
        if ledger.has_completed(habit.id, day):
            return BlockReason.ALREADY_COMPLETED
        return None

    def can_submit(
        self,
        habit: Optional[Habit],
        target_plant: Optional[Plant],
        ledger: CompletionLedger,
        day: Union[date, str],
    ) -> bool:
        return self.submission_block_reason(habit, target_plant, ledger, day) is None

    async def submit(
        self,
        habit: Optional[Habit],
        target_plant: Optional[Plant],
        ledger: CompletionLedger,
        day: Union[date, str],
    ) -> CompletionNotice:
        """
        Complete ``habit`` for ``day``, crediting ``target_plant``.

        Raises:
            ValidationError: If ``day`` is malformed
        """
        award_day = parse_day(day)
        blocked = self.submission_block_reason(habit, target_plant, ledger, award_day)
        if blocked is not None:
            title, message = _BLOCK_MESSAGES[blocked]
            self.log.info(
                "Completion rejected by guard",
                extra={"operation": "submit_completion", "block_reason": blocked.value},
            )
            return CompletionNotice(
                state=self._state,
                tone="info",
                title=title,
                message=message,
                blocked=blocked,
            )

        assert habit is not None and target_plant is not None

        # Set before the first await so overlapping submits hit the guard
        self._state = WorkflowState.SUBMITTING
        try:
            try:
                scope = await require_scope(self._sessions, "complete_habit")
            except NotAuthenticatedError as exc:
                return self._settle_error(exc.message, retryable=False)

            with LogContext(
                user_id=scope.user_id,
                garden_id=scope.garden_id,
                operation="complete_habit",
            ):
                return await self._settle(scope, habit, target_plant, award_day)
        finally:
            self._state = WorkflowState.IDLE

    async def _settle(
        self, scope: OwnerScope, habit: Habit, target_plant: Plant, award_day: date
    ) -> CompletionNotice:
        result = await self._transactor.award(scope, habit.id, target_plant.id, award_day)

        if result.outcome is AwardOutcome.FAILED:
            return self._settle_error(
                result.reason or "Unknown error", result.retryable, result
            )

        await self.emit_event(
            EVENT_ACTIVITY_REFRESH_REQUESTED,
            {
                "day": award_day.isoformat(),
                "habit_id": habit.id,
                "reason": result.outcome.value,
            },
            {"user_id": scope.user_id, "garden_id": scope.garden_id},
        )

        if result.outcome is AwardOutcome.ALREADY_APPLIED:
            self._last_settled = WorkflowState.SETTLED_ALREADY_DONE
            return CompletionNotice(
                state=WorkflowState.SETTLED_ALREADY_DONE,
                tone="success",
                title="Already completed",
                message=f"{habit.title} is already done for today.",
                result=result,
            )

        self._last_settled = WorkflowState.SETTLED_SUCCESS
        message = f"+{result.xp_awarded} XP to {target_plant.name}"
        if result.levelled_up:
            message += f". {target_plant.name} reached stage {result.to_stage}!"
        return CompletionNotice(
            state=WorkflowState.SETTLED_SUCCESS,
            tone="success",
            title="Habit completed",
            message=message,
            levelled_up=result.levelled_up,
            result=result,
        )

    def _settle_error(
        self, reason: str, retryable: bool, result: Optional[AwardResult] = None
    ) -> CompletionNotice:
        self._last_settled = WorkflowState.SETTLED_ERROR
        return CompletionNotice(
            state=WorkflowState.SETTLED_ERROR,
            tone="error",
            title="Complete failed",
            message=reason,
            retryable=retryable,
            result=result,
        )
