"""
Durable step execution for multi-step nodes.

Each step(fn) call made by a node takes the next sequential index in that
node's ledger for the current run. A step whose index is already recorded
returns the recorded result without calling fn again, so a node that is
retried or resumed after an interruption replays its completed steps and
continues from the first unrecorded one.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from core.node_interfaces import CircuitEngineError
from core.node_engine.ledger_store import LedgerStore, LedgerStoreError


logger = logging.getLogger(__name__)


class StepLedgerError(CircuitEngineError):
    """The ledger is inconsistent or a step result could not be recorded."""
    pass


class StepAbortedError(CircuitEngineError):
    """Raised by step() once an earlier step failed or the checkpointer was closed."""
    pass


class StepLedger:
    """Recorded step results of one node in one run."""

    def __init__(self, run_id: str, node_id: str, entries: Optional[Dict[int, Any]] = None):
        self.run_id = run_id
        self.node_id = node_id
        self.entries: Dict[int, Any] = dict(entries or {})
        self._check_contiguous()

    def _check_contiguous(self) -> None:
        expected = list(range(len(self.entries)))
        if sorted(self.entries) != expected:
            raise StepLedgerError(
                f"Ledger for node {self.node_id} in run {self.run_id} has non-contiguous "
                f"step indices: {sorted(self.entries)}"
            )

    def has(self, index: int) -> bool:
        return index in self.entries

    def get(self, index: int) -> Any:
        return self.entries[index]

    def __len__(self) -> int:
        return len(self.entries)


class StepCheckpointer:
    """
    Binds the step and sleep primitives to a node's ledger.

    Steps run strictly in call order. The first failing step poisons the
    checkpointer: the exception propagates to the node, and every later
    step() raises StepAbortedError without calling its function, so nothing
    after a failure is executed or recorded.
    """

    def __init__(self, run_id: str, node_id: str, ledger_store: LedgerStore):
        self.run_id = run_id
        self.node_id = node_id
        self.ledger_store = ledger_store
        self._lock = threading.RLock()
        self._closed = threading.Event()
        self._record_lock = threading.Lock()
        self._ledger: Optional[StepLedger] = None
        self._next_index = 0
        self._failure: Optional[BaseException] = None
        self.replayed_steps = 0
        self.executed_steps = 0

    @property
    def failed(self) -> bool:
        return self._failure is not None

    @property
    def failure(self) -> Optional[BaseException]:
        return self._failure

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Stop accepting steps; a pending durable sleep wakes up and aborts."""
        with self._record_lock:
            self._closed.set()

    def _load_ledger(self) -> StepLedger:
        if self._ledger is None:
            try:
                entries = self.ledger_store.load(self.run_id, self.node_id)
            except LedgerStoreError as e:
                raise StepLedgerError(
                    f"Could not load ledger for node {self.node_id}: {e}"
                ) from e
            self._ledger = StepLedger(self.run_id, self.node_id, entries)
            if len(self._ledger):
                logger.info(
                    f"Node {self.node_id} resuming with {len(self._ledger)} recorded step(s)"
                )
        return self._ledger

    def _poison(self, error: BaseException) -> None:
        if self._failure is None:
            self._failure = error

    def _check_usable(self, index: int) -> None:
        if self._closed.is_set():
            raise StepAbortedError(
                f"Step {index} of node {self.node_id} rejected: checkpointer is closed"
            )
        if self._failure is not None:
            raise StepAbortedError(
                f"Step {index} of node {self.node_id} rejected: an earlier step failed "
                f"({self._failure})"
            )

    def _record(self, index: int, result: Any, name: Optional[str]) -> None:
        try:
            self.ledger_store.record(self.run_id, self.node_id, index, result, name=name)
        except LedgerStoreError as e:
            error = StepLedgerError(f"Could not record step {index} of node {self.node_id}: {e}")
            self._poison(error)
            raise error from e
        self._ledger.entries[index] = result

    def step(self, fn: Callable[[], Any], name: Optional[str] = None) -> Any:
        """
        Run fn as the next durable step.

        Args:
            fn: Zero-argument callable producing the step result.
            name: Optional label stored alongside the result.

        Returns:
            The recorded result when this index was completed by an earlier
            attempt, otherwise fn's result after it has been recorded.

        Raises:
            StepAbortedError: If an earlier step failed or the checkpointer is closed.
            StepLedgerError: If the ledger is inconsistent or the result cannot be stored.
        """
        with self._lock:
            index = self._next_index
            self._check_usable(index)
            try:
                ledger = self._load_ledger()
            except StepLedgerError as e:
                self._poison(e)
                raise

            self._next_index += 1
            if ledger.has(index):
                self.replayed_steps += 1
                logger.debug(f"Node {self.node_id} replayed step {index}")
                return ledger.get(index)

            try:
                result = fn()
            except Exception as e:
                self._poison(e)
                logger.debug(f"Node {self.node_id} step {index} failed: {e}")
                raise

            # Closed while fn ran; the run may already have discarded the ledger
            with self._record_lock:
                if self._closed.is_set():
                    error = StepAbortedError(
                        f"Step {index} of node {self.node_id} not recorded: checkpointer was closed"
                    )
                    self._poison(error)
                    raise error
                self._record(index, result, name)

            self.executed_steps += 1
            return result

    def sleep(self, seconds: float, name: Optional[str] = None) -> None:
        """
        Durable sleep. The wake-up time is recorded before sleeping, so a
        replayed sleep only waits for whatever time remains.
        """
        if seconds < 0:
            raise ValueError("Sleep duration must be non-negative")

        wake_at = self.step(lambda: time.time() + seconds, name=name or "sleep")
        remaining = float(wake_at) - time.time()
        if remaining > 0 and self._closed.wait(remaining):
            raise StepAbortedError(f"Sleep of node {self.node_id} interrupted: checkpointer is closed")
