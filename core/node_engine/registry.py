"""
Node registry for the circuit engine.

The registry maps a node kind to a factory producing fresh ExecutableNode
instances. Hosts build and pass a registry explicitly; there is no
process-wide instance.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Type

from core.node_interfaces import CircuitEngineError, ExecutableNode, NodeDescription


logger = logging.getLogger(__name__)


class NodeTypeNotFoundError(CircuitEngineError, LookupError):
    """Raised when a node kind has no registered factory."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unknown node type: {kind}")


class NodeFactory(ABC):
    """Produces executable instances for one node kind."""

    @abstractmethod
    def create(self) -> ExecutableNode:
        pass


class ClassNodeFactory(NodeFactory):
    """Factory instantiating an ExecutableNode subclass with no arguments."""

    def __init__(self, node_class: Type[ExecutableNode]):
        if not (isinstance(node_class, type) and issubclass(node_class, ExecutableNode)):
            raise TypeError(f"{node_class!r} is not an ExecutableNode subclass")
        self.node_class = node_class

    def create(self) -> ExecutableNode:
        return self.node_class()

    def __repr__(self) -> str:
        return f"ClassNodeFactory({self.node_class.__name__})"


class NodeRegistry:
    """
    Registry of node factories keyed by kind.

    Registration is expected at start-up; lookups are safe from worker threads
    while a run is in progress.
    """

    def __init__(self):
        self._factories: Dict[str, NodeFactory] = {}
        self._lock = threading.RLock()

    def register(self, kind: str, node_class: Type[ExecutableNode]) -> None:
        """Register a node class under the given kind."""
        self.register_factory(kind, ClassNodeFactory(node_class))

    def register_factory(self, kind: str, factory: NodeFactory) -> None:
        """
        Register a factory for a node kind.

        Args:
            kind: Node-type identifier as it appears in circuits.
            factory: Object whose create() returns a new ExecutableNode.
        """
        if not kind:
            raise ValueError("Node kind must be a non-empty string")
        with self._lock:
            if kind in self._factories:
                logger.warning(f"Replacing registered node type: {kind}")
            self._factories[kind] = factory
        logger.debug(f"Registered node type: {kind}")

    def unregister(self, kind: str) -> bool:
        with self._lock:
            return self._factories.pop(kind, None) is not None

    def resolve(self, kind: str) -> NodeFactory:
        """
        Resolve a node kind to its factory.

        Raises:
            NodeTypeNotFoundError: If nothing is registered for the kind.
        """
        factory = self.get(kind)
        if factory is None:
            raise NodeTypeNotFoundError(kind)
        return factory

    def get(self, kind: str) -> Optional[NodeFactory]:
        with self._lock:
            return self._factories.get(kind)

    def kinds(self) -> List[str]:
        with self._lock:
            return sorted(self._factories)

    def describe_all(self) -> Dict[str, NodeDescription]:
        """Describe every registered kind, e.g. for a node palette."""
        descriptions = {}
        for kind in self.kinds():
            descriptions[kind] = self.resolve(kind).create().describe()
        return descriptions

    def __contains__(self, kind: object) -> bool:
        with self._lock:
            return kind in self._factories

    def __len__(self) -> int:
        with self._lock:
            return len(self._factories)

    def __iter__(self) -> Iterator[str]:
        return iter(self.kinds())
