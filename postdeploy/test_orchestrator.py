#!/usr/bin/env python3
"""
Tests for the retry policy and the transaction orchestrator
"""

from unittest.mock import MagicMock

import pytest

from postdeploy.errors import (
    SubmissionRejected,
    TransactionFailed,
    TransactionReverted,
    TransactionTimeout,
)
from postdeploy.orchestrator import TransactionOrchestrator, TransactionTask
from postdeploy.retry import Fatal, Retry, RetryPolicy


class FakeChain:
    """Records submissions and confirms them according to a script of outcomes"""

    def __init__(self, confirmations=None):
        self.submitted = []
        self.confirmations = list(confirmations or [])
        self.awaited = []
        self.role_members = set()

    def submit(self, name):
        self.submitted.append(name)
        return f"0xhash-{name}"

    def grant_role(self, role, account):
        self.submitted.append(f"grant {role} {account}")
        self.role_members.add((role, account))
        return f"0xhash-grant-{role}-{account}"

    def await_confirmation(self, handle, timeout):
        self.awaited.append((handle, timeout))
        if self.confirmations:
            outcome = self.confirmations.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
        return {"transactionHash": handle, "status": 1}


def task(chain, name, **kwargs):
    return TransactionTask(description=name, submit=lambda: chain.submit(name), **kwargs)


class TestRetryPolicy:
    """Test class for RetryPolicy.decide"""

    def test_timeout_is_retried(self):
        assert RetryPolicy().decide(1, TransactionTimeout()) == Retry(3.0)

    def test_last_attempt_is_fatal(self):
        policy = RetryPolicy(max_retries=5)
        assert isinstance(policy.decide(4, TransactionTimeout()), Retry)
        assert isinstance(policy.decide(5, TransactionTimeout()), Fatal)

    def test_reverted_is_fatal(self):
        assert isinstance(RetryPolicy().decide(1, TransactionReverted("0xabc")), Fatal)

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 5
        assert policy.timeout == 30.0
        assert policy.backoff == 3.0

    def test_invalid_max_retries(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=0)


class TestTransactionOrchestrator:
    """Test class for TransactionOrchestrator.run"""

    def setup_method(self):
        """Set up a sleep recorder for each test"""
        self.sleep = MagicMock()

    def orchestrator(self, chain, **policy):
        return TransactionOrchestrator(chain.await_confirmation, RetryPolicy(**policy), sleep=self.sleep)

    def test_tasks_run_in_order(self):
        chain = FakeChain()
        result = self.orchestrator(chain).run([task(chain, n) for n in ("a", "b", "c")])

        assert result.succeeded
        assert chain.submitted == ["a", "b", "c"]
        assert [h for h, _ in chain.awaited] == ["0xhash-a", "0xhash-b", "0xhash-c"]
        assert len(result.receipts) == 3
        self.sleep.assert_not_called()

    def test_recovers_after_two_timeouts(self):
        """Timeouts on attempts 1-2 and success on 3: three waits, two backoffs"""
        chain = FakeChain([TransactionTimeout(), TransactionTimeout()])
        result = self.orchestrator(chain, max_retries=5).run([task(chain, "grant")])

        assert result.succeeded
        assert len(chain.awaited) == 3
        assert result.outcomes[0].attempts == 3
        assert self.sleep.call_count == 2
        self.sleep.assert_called_with(3.0)
        assert chain.submitted == ["grant"]

    def test_waits_use_policy_timeout(self):
        chain = FakeChain()
        self.orchestrator(chain, timeout=12.5).run([task(chain, "a")])
        assert chain.awaited == [("0xhash-a", 12.5)]

    def test_exhausted_retries_halt_run(self):
        chain = FakeChain([TransactionTimeout()] * 5)
        result = self.orchestrator(chain, max_retries=5).run([task(chain, "a"), task(chain, "b")])

        assert not result.succeeded
        failure = result.failure
        assert isinstance(failure.error, TransactionFailed)
        assert failure.error.attempts == 5
        assert isinstance(failure.error.cause, TransactionTimeout)
        assert failure.attempts == 5
        assert self.sleep.call_count == 4
        assert chain.submitted == ["a"]
        assert [t.description for t in result.skipped] == ["b"]

    def test_submission_rejected_is_not_retried(self):
        chain = FakeChain()

        def rejected():
            raise SubmissionRejected("missing role")

        tasks = [task(chain, "a"), TransactionTask("b", rejected), task(chain, "c")]
        result = self.orchestrator(chain).run(tasks)

        assert not result.succeeded
        assert isinstance(result.failure.error, SubmissionRejected)
        assert result.failure.attempts == 0
        assert chain.submitted == ["a"]
        assert len(chain.awaited) == 1
        self.sleep.assert_not_called()

    def test_revert_is_not_retried(self):
        chain = FakeChain([TransactionReverted("0xhash-a")])
        result = self.orchestrator(chain).run([task(chain, "a"), task(chain, "b")])

        assert isinstance(result.failure.error, TransactionReverted)
        assert result.failure.attempts == 1
        assert len(chain.awaited) == 1
        self.sleep.assert_not_called()
        assert chain.submitted == ["a"]

    def test_confirmed_tasks_kept_after_failure(self):
        """Earlier receipts stay in the result; nothing is rolled back"""
        chain = FakeChain([None, TransactionReverted("0xhash-b")])
        result = self.orchestrator(chain).run([task(chain, "a"), task(chain, "b"), task(chain, "c")])

        assert [o.confirmed for o in result.outcomes] == [True, False]
        assert result.receipts == [{"transactionHash": "0xhash-a", "status": 1}]
        assert [t.description for t in result.skipped] == ["c"]

    def test_independent_skipped(self):
        chain = FakeChain([TransactionReverted("0xhash-a")])
        tasks = [
            task(chain, "a"),
            task(chain, "b"),
            task(chain, "c", depends_on_prior_tasks=False),
        ]
        result = self.orchestrator(chain).run(tasks)
        assert [t.description for t in result.independent_skipped()] == ["c"]

    def test_empty_plan(self):
        chain = FakeChain()
        result = self.orchestrator(chain).run([])
        assert result.succeeded
        assert result.outcomes == []

    def test_role_grant_is_idempotent(self):
        """Running the same grant twice leaves the same authorization state as once"""
        chain = FakeChain()
        grant = TransactionTask("Grant OWNER", lambda: chain.grant_role("OWNER", "0xadmin"))
        orchestrator = self.orchestrator(chain)

        orchestrator.run([grant])
        once = set(chain.role_members)
        orchestrator.run([grant])

        assert chain.role_members == once == {("OWNER", "0xadmin")}
