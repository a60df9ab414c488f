"""Background task orchestration for slow AI calls.

The interactive loop never awaits AI I/O. Each operation runs as its own
asyncio task and reports into a private single-slot queue, which the loop
checks once per tick with ``poll()``.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)


class TaskSlot(StrEnum):
    """Independent kinds of background operation; one in flight per slot."""

    REWRITE = "rewrite"
    COMMAND = "command"


class TaskBusyError(Exception):
    """Raised when starting an operation in a slot that is already running."""

    pass


@dataclass(frozen=True)
class TaskOutcome:
    """Result of a finished operation: text on success, error message otherwise."""

    slot: TaskSlot
    generation: int
    ok: bool
    value: str


@dataclass
class _RunningTask:
    generation: int
    task: asyncio.Task
    channel: asyncio.Queue


class TaskOrchestrator:
    """Runs at most one operation per slot and hands results back on poll."""

    def __init__(self):
        self._running: dict[TaskSlot, _RunningTask] = {}
        self._generation = 0

    def is_busy(self, slot: TaskSlot) -> bool:
        return slot in self._running

    def current_generation(self, slot: TaskSlot) -> int | None:
        running = self._running.get(slot)
        return running.generation if running else None

    def start(self, slot: TaskSlot, operation: Awaitable[str]) -> int:
        """
        Schedule an operation in a slot.

        Must be called with an event loop running.

        Args:
            slot: Which slot the operation occupies
            operation: Awaitable producing the result text

        Returns:
            Generation number identifying this operation

        Raises:
            TaskBusyError: If the slot already has an operation in flight.
                The running operation is left untouched.
        """
        if slot in self._running:
            if inspect.iscoroutine(operation):
                operation.close()
            raise TaskBusyError(f"{slot} already in progress")

        self._generation += 1
        generation = self._generation
        channel: asyncio.Queue = asyncio.Queue(maxsize=1)
        task = asyncio.create_task(
            self._run(slot, generation, operation, channel),
            name=f"stash-{slot}-{generation}",
        )
        self._running[slot] = _RunningTask(generation, task, channel)
        logger.debug(f"Started {slot} task (generation {generation})")
        return generation

    async def _run(
        self,
        slot: TaskSlot,
        generation: int,
        operation: Awaitable[str],
        channel: asyncio.Queue,
    ) -> None:
        try:
            value = await operation
            outcome = TaskOutcome(slot, generation, True, value)
        except asyncio.CancelledError:
            logger.debug(f"{slot} task cancelled (generation {generation})")
            raise
        except Exception as e:
            logger.warning(f"{slot} task failed: {e}")
            outcome = TaskOutcome(slot, generation, False, str(e) or type(e).__name__)
        channel.put_nowait(outcome)

    def poll(self) -> TaskOutcome | None:
        """
        Non-blocking check for a finished operation.

        Returns:
            At most one outcome per call, consumed once; None if nothing is ready.
            Cancelled or replaced operations never deliver; each has its own channel.
        """
        for slot, running in list(self._running.items()):
            try:
                outcome = running.channel.get_nowait()
            except asyncio.QueueEmpty:
                continue
            del self._running[slot]
            return outcome
        return None

    def cancel(self, slot: TaskSlot) -> bool:
        """
        Forget the operation in a slot and request its cancellation.

        Whatever it produces afterwards is never delivered.

        Returns:
            True if something was running in the slot
        """
        running = self._running.pop(slot, None)
        if running is None:
            return False
        running.task.cancel()
        logger.debug(f"Cancelled {slot} task (generation {running.generation})")
        return True

    def cancel_all(self) -> None:
        for slot in list(self._running):
            self.cancel(slot)
