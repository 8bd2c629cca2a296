"""
Sequential transaction orchestration

Tasks run one at a time in the order given. Each task is submitted once and
its confirmation awaited under a retry policy. The first unrecovered failure
halts the run; confirmed tasks are left as they are.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from .errors import PostDeployError, TransactionFailed, TransactionTimeout
from .retry import Fatal, RetryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionTask:
    description: str
    submit: Callable[[], Any]
    depends_on_prior_tasks: bool = True


@dataclass
class TaskOutcome:
    description: str
    receipt: Any = None
    error: Optional[PostDeployError] = None
    attempts: int = 0

    @property
    def confirmed(self) -> bool:
        return self.error is None


@dataclass
class OrchestrationResult:
    outcomes: List[TaskOutcome] = field(default_factory=list)
    skipped: List[TransactionTask] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(outcome.confirmed for outcome in self.outcomes) and not self.skipped

    @property
    def failure(self) -> Optional[TaskOutcome]:
        for outcome in self.outcomes:
            if not outcome.confirmed:
                return outcome
        return None

    @property
    def receipts(self) -> List[Any]:
        return [outcome.receipt for outcome in self.outcomes if outcome.confirmed]

    def independent_skipped(self) -> List[TransactionTask]:
        """Skipped tasks that did not depend on earlier ones and may be re-run alone"""
        return [task for task in self.skipped if not task.depends_on_prior_tasks]


class TransactionOrchestrator:
    """Runs transaction tasks strictly in order with bounded confirmation retry"""

    def __init__(
        self,
        await_confirmation: Callable[[Any, float], Any],
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            await_confirmation: Called with (handle, timeout); returns a receipt or
                raises TransactionTimeout / TransactionReverted
            policy: Retry policy, defaults to 5 attempts of 30s with 3s backoff
            sleep: Delay function used between attempts
        """
        self.await_confirmation = await_confirmation
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    def run(self, tasks: Sequence[TransactionTask]) -> OrchestrationResult:
        result = OrchestrationResult()
        total = len(tasks)

        for index, task in enumerate(tasks):
            logger.info(f"[{index + 1}/{total}] {task.description}")
            outcome = self._execute(task)
            result.outcomes.append(outcome)

            if not outcome.confirmed:
                result.skipped = list(tasks[index + 1:])
                logger.error(f"Halting after '{task.description}': {outcome.error}")
                if result.skipped:
                    logger.error(f"{len(result.skipped)} remaining tasks were not run")
                break

        if result.succeeded:
            logger.info(f"All {total} tasks confirmed")
        return result

    def _execute(self, task: TransactionTask) -> TaskOutcome:
        outcome = TaskOutcome(description=task.description)

        # Submission failures are fatal, never retried
        try:
            handle = task.submit()
        except PostDeployError as e:
            outcome.error = e
            return outcome

        try:
            outcome.receipt = self._confirm(task, handle, outcome)
        except PostDeployError as e:
            outcome.error = e
        return outcome

    def _confirm(self, task: TransactionTask, handle: Any, outcome: TaskOutcome) -> Any:
        attempt = 0
        while True:
            attempt += 1
            outcome.attempts = attempt
            try:
                return self.await_confirmation(handle, self.policy.timeout)
            except PostDeployError as e:
                decision = self.policy.decide(attempt, e)
                if isinstance(decision, Fatal):
                    if isinstance(e, TransactionTimeout):
                        raise TransactionFailed(task.description, attempt, e) from e
                    raise
                logger.warning(f"  {task.description} - retry {attempt}/{self.policy.max_retries}: {e}")
                self.sleep(decision.delay)
