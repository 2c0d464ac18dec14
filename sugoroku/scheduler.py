"""
Step queue that sequences timed game actions.

Every multi-step sequence (dice spin, token walk, CPU thinking, result display)
is a chain of steps. Each step remembers the phase generation it was scheduled
in; when it comes up after the phase has moved on it is dropped instead of run.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional

from sugoroku.exceptions import SugorokuError

logger = logging.getLogger(__name__)

# Upper bound for run_until_idle so a broken chain cannot spin forever
MAX_STEPS_PER_DRAIN = 100_000


@dataclass
class Step:
    """A deferred game action."""

    delay_ms: int
    label: str
    action: Callable[[], None]
    generation: int


class StepQueue:
    """
    FIFO of pending steps for one game session.

    Steps run strictly one at a time, by whichever driver is attached: the
    synchronous ``run_next``/``run_until_idle`` pair or the async server runner.

    Attributes:
        current_generation: Callable returning the owner's live phase generation
    """

    def __init__(self, current_generation: Callable[[], int], name: str = "game"):
        self.current_generation = current_generation
        self.name = name
        self._steps: Deque[Step] = deque()

    def __len__(self) -> int:
        return len(self._steps)

    def schedule(self, delay_ms: int, label: str, action: Callable[[], None]) -> Step:
        """Append a step bound to the current phase generation."""
        step = Step(max(0, int(delay_ms)), label, action, self.current_generation())
        self._steps.append(step)
        return step

    def peek(self) -> Optional[Step]:
        return self._steps[0] if self._steps else None

    def is_stale(self, step: Step) -> bool:
        return step.generation != self.current_generation()

    def run_next(self) -> bool:
        """
        Pop and run the next step.

        Returns:
            True if a step ran, False if the queue was empty or the step was stale
        """
        if not self._steps:
            return False
        step = self._steps.popleft()
        if self.is_stale(step):
            logger.debug(
                "[%s] dropping stale step %s (generation %d, now %d)",
                self.name,
                step.label,
                step.generation,
                self.current_generation(),
            )
            return False
        step.action()
        return True

    def run_until_idle(self, max_steps: int = MAX_STEPS_PER_DRAIN) -> int:
        """
        Drain the queue, ignoring delays.

        Returns:
            Number of steps that actually ran
        """
        ran = 0
        popped = 0
        while self._steps:
            if popped >= max_steps:
                raise SugorokuError(f"[{self.name}] step queue did not drain after {max_steps} steps")
            popped += 1
            if self.run_next():
                ran += 1
        return ran

    def clear(self) -> None:
        self._steps.clear()
