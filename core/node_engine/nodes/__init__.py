"""
Reference node implementations for the circuit engine.

This package contains small concrete nodes used to compose and exercise
circuits: number input, output, arithmetic and conditional fork/join.
"""

from core.node_engine.nodes.io_nodes import NumberInputNode, OutputNode
from core.node_engine.nodes.logic_nodes import ConditionalForkNode, ConditionalJoinNode
from core.node_engine.nodes.math_nodes import AdditionNode, DivisionNode, MultiStepAdditionNode
from core.node_engine.registry import NodeRegistry

REFERENCE_NODES = [
    NumberInputNode,
    OutputNode,
    AdditionNode,
    DivisionNode,
    MultiStepAdditionNode,
    ConditionalForkNode,
    ConditionalJoinNode,
]


def create_default_registry() -> NodeRegistry:
    """Create a new registry holding every reference node."""
    registry = NodeRegistry()
    for node_class in REFERENCE_NODES:
        registry.register(node_class.KIND, node_class)
    return registry


__all__ = [
    'NumberInputNode',
    'OutputNode',
    'AdditionNode',
    'DivisionNode',
    'MultiStepAdditionNode',
    'ConditionalForkNode',
    'ConditionalJoinNode',
    'REFERENCE_NODES',
    'create_default_registry'
]
