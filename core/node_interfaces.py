"""
Node interfaces and data models for the circuit engine.

This module defines the port type system and the contract every executable
node implements, together with the result and context objects exchanged
between the scheduler and node implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Union
import logging

logger = logging.getLogger(__name__)


class CircuitEngineError(Exception):
    """Base exception for circuit engine failures."""
    pass


class PortType(Enum):
    """Closed set of value kinds a port can carry."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    JSON = "json"
    BLOB = "blob"
    ANY = "any"

    @classmethod
    def from_value(cls, value: Union["PortType", str]) -> "PortType":
        """Coerce a wire string (or an existing member) into a PortType."""
        if isinstance(value, cls):
            return value
        return cls(value)


def is_type_compatible(source: Union[PortType, str], target: Union[PortType, str]) -> bool:
    """Two ports connect when their types match or either side is the wildcard."""
    source_type = PortType.from_value(source)
    target_type = PortType.from_value(target)
    if source_type is PortType.ANY or target_type is PortType.ANY:
        return True
    return source_type is target_type


class NodeStatus(Enum):
    """Status of a node within a run."""

    NOT_STARTED = "not-started"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (NodeStatus.COMPLETED, NodeStatus.ERROR, NodeStatus.SKIPPED)


class ErrorKind(Enum):
    """Classification of failures recorded against a node or a run."""

    VALIDATION = "validation"
    NODE_EXECUTION = "node_execution"
    SYSTEM = "system"


class SkipReason(Enum):
    """Why a node was never invoked."""

    UPSTREAM_FAILURE = "upstream_failure"
    CONDITIONAL_BRANCH = "conditional_branch"


class ValidationSeverity(Enum):
    """Severity levels for validation results."""

    INFO = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass
class ValidationResult:
    """A single finding produced while checking a circuit or a node's inputs."""

    is_valid: bool
    severity: ValidationSeverity
    message: str
    field_name: Optional[str] = None
    error_code: Optional[str] = None
    node_id: Optional[str] = None
    edge_id: Optional[str] = None


@dataclass(frozen=True)
class Port:
    """A named, typed input or output slot on a node."""

    name: str
    type: PortType = PortType.ANY
    required: bool = False
    value: Any = None
    repeated: bool = False


@dataclass
class NodeDescription:
    """Static metadata an executable node reports about itself."""

    kind: str
    name: str
    inputs: List[Port] = field(default_factory=list)
    outputs: List[Port] = field(default_factory=list)
    description: str = ""
    multi_step: bool = False

    @property
    def id(self) -> str:
        return self.kind

    def get_input(self, name: str) -> Optional[Port]:
        for port in self.inputs:
            if port.name == name:
                return port
        return None

    def get_output(self, name: str) -> Optional[Port]:
        for port in self.outputs:
            if port.name == name:
                return port
        return None


@dataclass(frozen=True)
class NodeSuccess:
    """Successful execution carrying the produced output bag."""

    outputs: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NodeError:
    """Failed execution carrying a human-readable message."""

    message: str


NodeResult = Union[NodeSuccess, NodeError]


@dataclass
class NodeContext:
    """
    Per-invocation context handed to ExecutableNode.execute.

    The step and sleep primitives are only available when the node describes
    itself as multi-step; the scheduler then binds a StepCheckpointer to the
    node's ledger for the current run.
    """

    node_id: str
    run_id: str
    inputs: Dict[str, Any] = field(default_factory=dict)
    environment: Dict[str, Any] = field(default_factory=dict)
    integration_resolver: Optional[Callable[[str], Any]] = None
    checkpointer: Optional[Any] = None

    def get_value(self, key: str, default: Any = None) -> Any:
        """Get an input value with optional default."""
        return self.inputs.get(key, default)

    def has_key(self, key: str) -> bool:
        """Check if an input was delivered."""
        return key in self.inputs and self.inputs[key] is not None

    def get_integration(self, name: str) -> Any:
        """Resolve a host integration (credentials, clients) by name."""
        if self.integration_resolver is None:
            raise LookupError(f"No integration resolver configured; cannot resolve '{name}'")
        return self.integration_resolver(name)

    @property
    def logger(self) -> logging.Logger:
        """Logger scoped to this node id."""
        return logger.getChild(self.node_id)

    @property
    def is_multi_step(self) -> bool:
        return self.checkpointer is not None

    def step(self, fn: Callable[[], Any], name: Optional[str] = None) -> Any:
        """Run fn as the next durable step of this node."""
        if self.checkpointer is None:
            raise RuntimeError(f"Node {self.node_id} is not a multi-step node")
        return self.checkpointer.step(fn, name=name)

    def sleep(self, seconds: float, name: Optional[str] = None) -> None:
        """Durable sleep; a replayed sleep only waits for the remaining time."""
        if self.checkpointer is None:
            raise RuntimeError(f"Node {self.node_id} is not a multi-step node")
        self.checkpointer.sleep(seconds, name=name)


class ExecutableNode(ABC):
    """
    Abstract base class for all executable nodes.

    Implementations are opaque to the engine: the scheduler only calls
    describe() and execute(). A fresh instance is created for every invocation
    through the node registry.
    """

    def __init__(self):
        self.logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )

    @abstractmethod
    def describe(self) -> NodeDescription:
        """
        Get the static description of this node type.

        Returns:
            The node's kind, display name, declared ports and whether it
            executes as a durable multi-step node.
        """
        pass

    @abstractmethod
    def execute(self, context: NodeContext) -> NodeResult:
        """
        Execute the node against the assembled inputs.

        Args:
            context: Inputs, host handles and (for multi-step nodes) the step
                primitive for this invocation.

        Returns:
            NodeSuccess with the produced outputs, or NodeError with a message.
        """
        pass

    def _success(self, **outputs: Any) -> NodeSuccess:
        """Helper method to create a NodeSuccess from keyword outputs."""
        return NodeSuccess(outputs=dict(outputs))

    def _error(self, message: str) -> NodeError:
        """Helper method to create a NodeError."""
        return NodeError(message=message)

    def _validate_required_fields(
        self, context: NodeContext, required_fields: List[str]
    ) -> List[ValidationResult]:
        """
        Helper method to validate required inputs in the context.

        Args:
            context: The invocation context to validate.
            required_fields: List of required input names.

        Returns:
            List of validation results for missing inputs.
        """
        results = []
        for field_name in required_fields:
            if not context.has_key(field_name):
                results.append(
                    ValidationResult(
                        is_valid=False,
                        severity=ValidationSeverity.ERROR,
                        message=f"Required input '{field_name}' is missing",
                        field_name=field_name,
                        error_code="MISSING_REQUIRED_FIELD",
                        node_id=context.node_id,
                    )
                )
        return results

    def _validate_numbers(
        self, context: NodeContext, fields: List[str]
    ) -> List[ValidationResult]:
        """Helper method to check that the given inputs hold numbers."""
        results = []
        for field_name in fields:
            value = context.get_value(field_name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                results.append(
                    ValidationResult(
                        is_valid=False,
                        severity=ValidationSeverity.ERROR,
                        message=f"Input '{field_name}' must be a number",
                        field_name=field_name,
                        error_code="INVALID_TYPE",
                        node_id=context.node_id,
                    )
                )
        return results

    def _error_from_validation(self, results: List[ValidationResult]) -> Optional[NodeError]:
        """Collapse error-level validation results into a NodeError, if any."""
        messages = [r.message for r in results if r.severity == ValidationSeverity.ERROR]
        if not messages:
            return None
        return NodeError(message="; ".join(messages))

