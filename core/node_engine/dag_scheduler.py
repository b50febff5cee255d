"""
DAG execution scheduler for the circuit engine.

This module drives a validated circuit to completion: ready nodes are
submitted together to a thread pool, delivered output values flow along
edges, failures are isolated to the failing node's dependents, and
conditional branches are pruned at run time.
"""

import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

import psutil

from core.node_interfaces import (
    ErrorKind, ExecutableNode, NodeContext, NodeDescription, NodeError, NodeStatus,
    NodeSuccess, SkipReason
)
from core.node_engine.circuit import Circuit, Node
from core.node_engine.ledger_store import InMemoryLedgerStore, LedgerStore, LedgerStoreError
from core.node_engine.registry import NodeRegistry
from core.node_engine.step_ledger import StepCheckpointer, StepLedgerError
from core.node_engine.validator import topological_levels, validate


logger = logging.getLogger(__name__)


class RunStatus(Enum):
    """Overall status of a run."""

    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class NodeRunResult:
    """Result of one node within a run."""
    node_id: str
    status: NodeStatus = NodeStatus.NOT_STARTED
    outputs: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    skip_reason: Optional[SkipReason] = None
    blocked_by: List[str] = field(default_factory=list)
    attempts: int = 0
    duration_ms: Optional[float] = None
    memory_delta_mb: Optional[float] = None

    @property
    def is_failure(self) -> bool:
        """Errored, or skipped because something upstream errored."""
        if self.status is NodeStatus.ERROR:
            return True
        return self.status is NodeStatus.SKIPPED and self.skip_reason is SkipReason.UPSTREAM_FAILURE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status.value, "attempts": self.attempts}
        if self.duration_ms is not None:
            data["durationMs"] = round(self.duration_ms, 3)
        if self.status is NodeStatus.COMPLETED:
            data["outputs"] = dict(self.outputs)
        if self.error is not None:
            data["error"] = self.error
        if self.error_kind is not None:
            data["errorKind"] = self.error_kind.value
        if self.skip_reason is not None:
            data["skipReason"] = self.skip_reason.value
            data["blockedBy"] = list(self.blocked_by)
        return data


@dataclass
class RunResult:
    """Outcome of one execution attempt over a circuit."""
    run_id: str
    status: RunStatus
    nodes: Dict[str, NodeRunResult] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    circuit_id: Optional[str] = None
    duration_ms: Optional[float] = None

    def node(self, node_id: str) -> NodeRunResult:
        return self.nodes[node_id]

    def outputs_of(self, node_id: str) -> Dict[str, Any]:
        return dict(self.nodes[node_id].outputs)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the document returned to hosts."""
        return {
            "runId": self.run_id,
            "circuitId": self.circuit_id,
            "status": self.status.value,
            "durationMs": round(self.duration_ms, 3) if self.duration_ms is not None else None,
            "errors": list(self.errors),
            "nodes": {node_id: result.to_dict() for node_id, result in self.nodes.items()},
        }


class ExecutionListener:
    """
    Receives run and node lifecycle events.

    Subclass and override what you need; every hook is a no-op by default.
    Hooks are called from the scheduler thread and must not block for long.
    """

    def on_run_start(self, run_id: str, circuit: Circuit) -> None:
        pass

    def on_node_start(self, run_id: str, node_id: str) -> None:
        pass

    def on_node_complete(self, run_id: str, node_id: str, result: NodeRunResult) -> None:
        pass

    def on_node_error(self, run_id: str, node_id: str, result: NodeRunResult) -> None:
        pass

    def on_node_skipped(self, run_id: str, node_id: str, result: NodeRunResult) -> None:
        pass

    def on_run_complete(self, result: RunResult) -> None:
        pass


class NodeExecutor:
    """Handles execution of individual nodes with memory monitoring."""

    def __init__(self, max_memory_mb: float = 40.0):
        """
        Initialize the node executor.

        Args:
            max_memory_mb: Resident memory growth per node before warnings.
        """
        self.max_memory_mb = max_memory_mb
        self._process = psutil.Process()

    def _rss_mb(self) -> float:
        return self._process.memory_info().rss / 1024 / 1024

    def execute_node(
        self,
        node: ExecutableNode,
        context: NodeContext,
        declared_outputs: List[str],
    ) -> NodeRunResult:
        """
        Execute a single node, converting anything it raises into an error result.

        Args:
            node: Fresh executable instance.
            context: Invocation context with assembled inputs.
            declared_outputs: Output port names declared on the circuit node.

        Returns:
            A completed or errored NodeRunResult; never raises for node faults.
        """
        result = NodeRunResult(node_id=context.node_id)
        checkpointer = context.checkpointer
        memory_before = self._rss_mb()
        start_time = time.perf_counter()

        try:
            outcome = node.execute(context)
        except Exception as e:
            cause = checkpointer.failure if checkpointer is not None and checkpointer.failed else e
            result.status = NodeStatus.ERROR
            result.error = str(cause) or cause.__class__.__name__
            if isinstance(cause, StepLedgerError):
                result.error_kind = ErrorKind.SYSTEM
                logger.error(f"System error in node {context.node_id}: {result.error}", exc_info=True)
            else:
                result.error_kind = ErrorKind.NODE_EXECUTION
                logger.warning(f"Node {context.node_id} raised {e.__class__.__name__}: {e}", exc_info=True)
        else:
            if checkpointer is not None and checkpointer.failed:
                cause = checkpointer.failure
                result.status = NodeStatus.ERROR
                result.error = str(cause) or cause.__class__.__name__
                result.error_kind = (ErrorKind.SYSTEM if isinstance(cause, StepLedgerError)
                                     else ErrorKind.NODE_EXECUTION)
                logger.warning(f"Node {context.node_id} returned after a failed step: {result.error}")
            elif isinstance(outcome, NodeSuccess):
                result.status = NodeStatus.COMPLETED
                result.outputs = {
                    name: value for name, value in outcome.outputs.items()
                    if name in declared_outputs and value is not None
                }
            elif isinstance(outcome, NodeError):
                result.status = NodeStatus.ERROR
                result.error = outcome.message
                result.error_kind = ErrorKind.NODE_EXECUTION
                logger.warning(f"Node {context.node_id} failed: {outcome.message}")
            else:
                result.status = NodeStatus.ERROR
                result.error = f"Node returned unsupported result type {type(outcome).__name__}"
                result.error_kind = ErrorKind.SYSTEM
                logger.error(f"System error in node {context.node_id}: {result.error}")
        finally:
            result.duration_ms = (time.perf_counter() - start_time) * 1000
            result.memory_delta_mb = self._rss_mb() - memory_before

        if result.memory_delta_mb > self.max_memory_mb:
            logger.warning(
                f"Node {context.node_id} exceeded memory budget: +{result.memory_delta_mb:.1f}MB"
            )
        if result.status is NodeStatus.COMPLETED:
            logger.info(f"Node {context.node_id} completed in {result.duration_ms:.1f}ms")
        return result


class _RunState:
    """Mutable bookkeeping for one run; guarded by its lock."""

    def __init__(self, run_id: str, circuit: Circuit, inputs: Dict[str, Dict[str, Any]],
                 order: List[str]):
        self.run_id = run_id
        self.circuit = circuit
        self.inputs = inputs
        self.order = order
        self.nodes: Dict[str, Node] = {node.id: node for node in circuit.nodes}
        self.results: Dict[str, NodeRunResult] = {
            node_id: NodeRunResult(node_id=node_id) for node_id in order
        }
        self.lock = threading.RLock()
        self.cancel_event = threading.Event()
        self.futures: Dict[Future, str] = {}
        self.deadlines: Dict[str, float] = {}
        self.checkpointers: Dict[str, StepCheckpointer] = {}
        self.abandoned = set()
        self.started = time.perf_counter()

    def snapshot(self, status: RunStatus) -> RunResult:
        with self.lock:
            nodes = {
                node_id: NodeRunResult(**{**vars(result), "outputs": dict(result.outputs),
                                          "blocked_by": list(result.blocked_by)})
                for node_id, result in self.results.items()
            }
        return RunResult(
            run_id=self.run_id,
            status=status,
            nodes=nodes,
            circuit_id=self.circuit.id,
            duration_ms=(time.perf_counter() - self.started) * 1000,
        )


class DAGScheduler:
    """
    DAG execution scheduler with dependency resolution.

    A node starts only after every node it depends on is terminal. Nodes that
    become ready together run concurrently on the worker pool. The scheduler
    is reusable across runs and may serve several runs at once.
    """

    _FINISHED_RUNS_KEPT = 100

    def __init__(
        self,
        registry: NodeRegistry,
        max_workers: int = 4,
        node_timeout: Optional[float] = None,
        max_retries: int = 0,
        ledger_store: Optional[LedgerStore] = None,
        environment: Optional[Dict[str, Any]] = None,
        integrations: Optional[Callable[[str], Any]] = None,
        listener: Optional[ExecutionListener] = None,
        max_memory_mb: float = 40.0,
    ):
        """
        Initialize the DAG scheduler.

        Args:
            registry: Resolves node kinds to executable factories.
            max_workers: Maximum number of concurrent node executions.
            node_timeout: Seconds a node may run (retries included), or None.
            max_retries: Extra attempts for nodes that fail.
            ledger_store: Step ledger storage for multi-step nodes.
            environment: Host capability handles passed to every node.
            integrations: Callback resolving integration names for nodes.
            listener: Receives lifecycle events.
            max_memory_mb: Per-node memory growth that triggers a warning.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if node_timeout is not None and node_timeout <= 0:
            raise ValueError("node_timeout must be positive")

        self.registry = registry
        self.max_workers = max_workers
        self.node_timeout = node_timeout
        self.max_retries = max_retries
        self.ledger_store = ledger_store if ledger_store is not None else InMemoryLedgerStore()
        self.environment = dict(environment or {})
        self.integrations = integrations
        self.listener = listener or ExecutionListener()
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="circuit-node")
        self.node_executor = NodeExecutor(max_memory_mb=max_memory_mb)
        self._active_runs: Dict[str, _RunState] = {}
        self._finished_runs: "OrderedDict[str, RunResult]" = OrderedDict()
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, registry: NodeRegistry, config_manager, **kwargs) -> "DAGScheduler":
        """Build a scheduler from a ConfigManager; keyword arguments take precedence."""
        options = {
            "max_workers": config_manager.get_max_workers(),
            "node_timeout": config_manager.get_node_timeout(),
            "max_retries": config_manager.get_max_retries(),
            "max_memory_mb": config_manager.get_max_memory_mb(),
        }
        options.update(kwargs)
        if "ledger_store" not in options:
            options["ledger_store"] = config_manager.create_ledger_store()
        return cls(registry, **options)

    def __enter__(self) -> "DAGScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool."""
        with self._lock:
            for state in self._active_runs.values():
                state.cancel_event.set()
        self.executor.shutdown(wait=wait)
        logger.info("DAG scheduler stopped")

    def cancel(self, run_id: str) -> bool:
        """
        Request cancellation of an active run.

        No further node is submitted; in-flight nodes run to completion.

        Returns:
            True if the run was active.
        """
        with self._lock:
            state = self._active_runs.get(run_id)
        if state is None:
            return False
        state.cancel_event.set()
        logger.info(f"Cancellation requested for run {run_id}")
        return True

    def get_run_status(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get a snapshot of an active or recently finished run."""
        with self._lock:
            state = self._active_runs.get(run_id)
            finished = self._finished_runs.get(run_id)
        if state is not None:
            return state.snapshot(RunStatus.RUNNING).to_dict()
        if finished is not None:
            return finished.to_dict()
        return None

    def run(
        self,
        circuit: Circuit,
        inputs: Optional[Dict[str, Dict[str, Any]]] = None,
        run_id: Optional[str] = None,
    ) -> RunResult:
        """
        Execute a circuit to completion.

        Args:
            circuit: The circuit to execute.
            inputs: Initial input values keyed by node id, then input name.
            run_id: Reuse a previous run id to replay its recorded steps.

        Returns:
            The run result. Rejected circuits and unknown node kinds produce a
            FAILED result with nothing executed rather than an exception.
        """
        run_id = run_id or create_run_id()
        started = time.perf_counter()

        errors = self._preflight(circuit)
        if errors:
            result = RunResult(
                run_id=run_id,
                status=RunStatus.FAILED,
                nodes={node.id: NodeRunResult(node_id=node.id) for node in circuit.nodes},
                errors=errors,
                circuit_id=circuit.id,
                duration_ms=(time.perf_counter() - started) * 1000,
            )
            self._remember(result)
            self._notify("on_run_complete", result)
            return result

        order = [node_id for level in topological_levels(circuit) for node_id in level]
        inputs = dict(inputs or {})
        for node_id in inputs:
            if circuit.get_node(node_id) is None:
                logger.warning(f"Ignoring initial inputs for unknown node {node_id}")

        state = _RunState(run_id, circuit, inputs, order)
        with self._lock:
            if run_id in self._active_runs:
                raise ValueError(f"Run {run_id} is already in progress")
            self._active_runs[run_id] = state

        logger.info(f"Starting run {run_id} of circuit '{circuit.id}' with {len(order)} nodes")
        self._notify("on_run_start", run_id, circuit)

        try:
            self._drive(state)
        finally:
            with self._lock:
                self._active_runs.pop(run_id, None)

        result = state.snapshot(self._final_status(state))
        # A cancelled run keeps its steps so the same run_id can resume
        if result.status is not RunStatus.CANCELLED:
            self._discard_ledger(run_id)
        self._remember(result)

        logger.info(
            f"Run {run_id} finished with status {result.status.value} "
            f"in {result.duration_ms:.1f}ms"
        )
        self._notify("on_run_complete", result)
        return result

    def _preflight(self, circuit: Circuit) -> List[str]:
        """Reject invalid circuits and unresolvable node kinds before anything executes."""
        report = validate(circuit)
        if not report.valid:
            logger.warning(
                f"Circuit '{circuit.id}' rejected: {len(report.errors)} validation error(s)"
            )
            return list(report.errors)

        errors = [
            f"Unknown node type '{node.kind}' for node {node.id}"
            for node in circuit.nodes if node.kind not in self.registry
        ]
        if errors:
            logger.error(f"System error: circuit '{circuit.id}' uses unregistered node types: "
                         f"{'; '.join(errors)}")
        return errors

    def _drive(self, state: _RunState) -> None:
        """Main scheduling loop; returns once nothing is ready or running."""
        while True:
            with state.lock:
                if not state.cancel_event.is_set():
                    self._submit_ready(state)
                if not state.futures:
                    break
                pending = list(state.futures)
                timeout = self._next_deadline_in(state)

            done, _ = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)

            with state.lock:
                for future in done:
                    node_id = state.futures.pop(future, None)
                    if node_id is None:
                        continue
                    self._finish_node(state, node_id, self._future_result(node_id, future))
                self._expire_deadlines(state)

    def _next_deadline_in(self, state: _RunState) -> Optional[float]:
        if not state.deadlines:
            return None
        return max(0.0, min(state.deadlines.values()) - time.monotonic())

    def _future_result(self, node_id: str, future: Future) -> NodeRunResult:
        try:
            return future.result()
        except Exception as e:
            logger.error(f"System error while executing node {node_id}: {e}", exc_info=True)
            return NodeRunResult(
                node_id=node_id, status=NodeStatus.ERROR,
                error=f"Internal error: {e}", error_kind=ErrorKind.SYSTEM, attempts=1,
            )

    def _submit_ready(self, state: _RunState) -> None:
        """
        Resolve every not-started node whose dependencies are all terminal.

        Topological order guarantees a node skipped here is seen as terminal
        by its dependents later in the same pass.
        """
        circuit = state.circuit
        for node_id in state.order:
            result = state.results[node_id]
            if result.status is not NodeStatus.NOT_STARTED:
                continue

            dependencies = circuit.dependencies(node_id)
            if not all(state.results[dep].status.is_terminal for dep in dependencies):
                continue

            failed = [dep for dep in dependencies if state.results[dep].is_failure]
            if failed:
                self._skip(state, node_id, SkipReason.UPSTREAM_FAILURE, failed)
                continue

            node = state.nodes[node_id]
            node_inputs, blocked_by, missing = self._assemble_inputs(state, node)
            if missing:
                result.status = NodeStatus.ERROR
                result.error_kind = ErrorKind.VALIDATION
                result.error = "; ".join(
                    f"Required input '{name}' missing for node {node_id}" for name in missing
                )
                logger.warning(result.error)
                self._notify("on_node_error", state.run_id, node_id, result)
                continue
            if blocked_by:
                self._skip(state, node_id, SkipReason.CONDITIONAL_BRANCH, blocked_by)
                continue

            self._submit(state, node, node_inputs)

    def _assemble_inputs(
        self, state: _RunState, node: Node
    ) -> Tuple[Dict[str, Any], List[str], List[str]]:
        """
        Build a node's input bag.

        Layers node defaults, then initial inputs, then delivered edge values.
        Edges whose source did not complete or did not produce the output are
        pruned.

        Returns:
            (inputs, sources blocking a required input, required inputs with no source)
        """
        inputs: Dict[str, Any] = {
            port.name: port.value for port in node.inputs if port.value is not None
        }
        inputs.update(state.inputs.get(node.id, {}))

        delivered: Dict[str, List[Any]] = {}
        pruned: Dict[str, List[str]] = {}
        for edge in state.circuit.incoming_edges(node.id):
            source = state.results[edge.source]
            if source.status is NodeStatus.COMPLETED and edge.source_output in source.outputs:
                delivered.setdefault(edge.target_input, []).append(source.outputs[edge.source_output])
            else:
                pruned.setdefault(edge.target_input, []).append(edge.source)

        for name, values in delivered.items():
            port = node.get_input(name)
            if port is not None and port.repeated:
                inputs[name] = list(values)
            else:
                inputs[name] = values[-1]

        blocked_by: List[str] = []
        missing: List[str] = []
        for port in node.inputs:
            if not port.required or inputs.get(port.name) is not None:
                continue
            if port.name in pruned:
                blocked_by.extend(s for s in pruned[port.name] if s not in blocked_by)
            else:
                missing.append(port.name)
        return inputs, blocked_by, missing

    def _skip(self, state: _RunState, node_id: str, reason: SkipReason, blocked_by: List[str]) -> None:
        result = state.results[node_id]
        result.status = NodeStatus.SKIPPED
        result.skip_reason = reason
        result.blocked_by = list(blocked_by)
        logger.info(f"Skipping node {node_id} ({reason.value}; blocked by {', '.join(blocked_by)})")
        self._notify("on_node_skipped", state.run_id, node_id, result)

    def _submit(self, state: _RunState, node: Node, node_inputs: Dict[str, Any]) -> None:
        state.results[node.id].status = NodeStatus.RUNNING
        future = self.executor.submit(self._execute_with_retries, state, node, node_inputs)
        state.futures[future] = node.id
        if self.node_timeout is not None:
            state.deadlines[node.id] = time.monotonic() + self.node_timeout
        logger.debug(f"Submitted node {node.id} ({node.kind}) in run {state.run_id}")
        self._notify("on_node_start", state.run_id, node.id)

    def _execute_with_retries(self, state: _RunState, node: Node, node_inputs: Dict[str, Any]) -> NodeRunResult:
        """Worker-thread entry point: run a node, retrying non-system failures."""
        result = None
        for attempt in range(1, self.max_retries + 2):
            with state.lock:
                if node.id in state.abandoned:
                    break
            result = self._attempt(state, node, node_inputs)
            result.attempts = attempt
            if result.status is NodeStatus.COMPLETED or result.error_kind is ErrorKind.SYSTEM:
                break
            if attempt <= self.max_retries:
                logger.info(f"Retrying node {node.id} (attempt {attempt + 1} of {self.max_retries + 1})")
        return result

    def _attempt(self, state: _RunState, node: Node, node_inputs: Dict[str, Any]) -> NodeRunResult:
        try:
            instance = self.registry.resolve(node.kind).create()
            description: NodeDescription = instance.describe()
        except Exception as e:
            logger.error(
                f"System error: could not instantiate node {node.id} of type '{node.kind}': {e}",
                exc_info=True
            )
            return NodeRunResult(
                node_id=node.id, status=NodeStatus.ERROR,
                error=f"Could not instantiate node type '{node.kind}': {e}",
                error_kind=ErrorKind.SYSTEM,
            )

        checkpointer = None
        if description.multi_step:
            checkpointer = StepCheckpointer(state.run_id, node.id, self.ledger_store)
            with state.lock:
                state.checkpointers[node.id] = checkpointer
                if node.id in state.abandoned:
                    checkpointer.close()

        context = NodeContext(
            node_id=node.id,
            run_id=state.run_id,
            inputs=dict(node_inputs),
            environment=self.environment,
            integration_resolver=self.integrations,
            checkpointer=checkpointer,
        )
        declared_outputs = [port.name for port in node.outputs]
        return self.node_executor.execute_node(instance, context, declared_outputs)

    def _finish_node(self, state: _RunState, node_id: str, outcome: NodeRunResult) -> None:
        state.deadlines.pop(node_id, None)
        state.checkpointers.pop(node_id, None)
        result = state.results[node_id]
        result.status = outcome.status
        result.outputs = dict(outcome.outputs)
        result.error = outcome.error
        result.error_kind = outcome.error_kind
        result.attempts = outcome.attempts
        result.duration_ms = outcome.duration_ms
        result.memory_delta_mb = outcome.memory_delta_mb

        if result.status is NodeStatus.COMPLETED:
            self._notify("on_node_complete", state.run_id, node_id, result)
        else:
            self._notify("on_node_error", state.run_id, node_id, result)

    def _expire_deadlines(self, state: _RunState) -> None:
        """Record a system error for every running node past its deadline."""
        now = time.monotonic()
        for node_id, deadline in list(state.deadlines.items()):
            if now < deadline:
                continue
            for future, future_node in list(state.futures.items()):
                if future_node == node_id:
                    del state.futures[future]
            del state.deadlines[node_id]
            state.abandoned.add(node_id)
            checkpointer = state.checkpointers.pop(node_id, None)
            if checkpointer is not None:
                checkpointer.close()

            result = state.results[node_id]
            result.status = NodeStatus.ERROR
            result.error_kind = ErrorKind.SYSTEM
            result.error = f"Node {node_id} timed out after {self.node_timeout}s"
            result.attempts = max(result.attempts, 1)
            result.duration_ms = self.node_timeout * 1000
            logger.error(f"System error: {result.error}")
            self._notify("on_node_error", state.run_id, node_id, result)

    def _final_status(self, state: _RunState) -> RunStatus:
        if state.cancel_event.is_set():
            return RunStatus.CANCELLED
        if any(result.is_failure for result in state.results.values()):
            return RunStatus.COMPLETED_WITH_ERRORS
        return RunStatus.COMPLETED

    def _discard_ledger(self, run_id: str) -> None:
        try:
            self.ledger_store.discard_run(run_id)
        except LedgerStoreError as e:
            logger.error(f"System error: could not discard step ledger of run {run_id}: {e}")

    def _remember(self, result: RunResult) -> None:
        with self._lock:
            self._finished_runs[result.run_id] = result
            self._finished_runs.move_to_end(result.run_id)
            while len(self._finished_runs) > self._FINISHED_RUNS_KEPT:
                self._finished_runs.popitem(last=False)

    def _notify(self, hook: str, *args: Any) -> None:
        try:
            getattr(self.listener, hook)(*args)
        except Exception as e:
            logger.error(f"Execution listener failed in {hook}: {e}", exc_info=True)


def create_run_id() -> str:
    """Generate a unique run ID."""
    return f"run_{str(uuid4())[:8]}"
