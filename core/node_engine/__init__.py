"""
Node engine package initialization.

This module provides the main entry point for the circuit execution engine,
exposing the graph model, validation, registry, scheduler and step ledger.
"""

from core.node_engine.circuit import (
    Circuit, CircuitFormatError, Edge, Node, circuit_from_dict, circuit_from_json,
    circuit_to_dict, circuit_to_json, create_circuit, create_circuit_id, create_edge,
    create_input_node, create_node_from_description, create_output_node, create_port,
    create_processor_node
)
from core.node_engine.validator import CyclicGraphError, ValidationReport, topological_levels, validate
from core.node_engine.registry import ClassNodeFactory, NodeFactory, NodeRegistry, NodeTypeNotFoundError
from core.node_engine.ledger_store import (
    InMemoryLedgerStore, LedgerStore, LedgerStoreError, SqliteLedgerStore
)
from core.node_engine.step_ledger import StepAbortedError, StepCheckpointer, StepLedger, StepLedgerError
from core.node_engine.dag_scheduler import (
    DAGScheduler, ExecutionListener, NodeExecutor, NodeRunResult, RunResult, RunStatus, create_run_id
)

__all__ = [
    'Circuit',
    'CircuitFormatError',
    'Edge',
    'Node',
    'circuit_from_dict',
    'circuit_from_json',
    'circuit_to_dict',
    'circuit_to_json',
    'create_circuit',
    'create_circuit_id',
    'create_edge',
    'create_input_node',
    'create_node_from_description',
    'create_output_node',
    'create_port',
    'create_processor_node',
    'CyclicGraphError',
    'ValidationReport',
    'topological_levels',
    'validate',
    'ClassNodeFactory',
    'NodeFactory',
    'NodeRegistry',
    'NodeTypeNotFoundError',
    'InMemoryLedgerStore',
    'LedgerStore',
    'LedgerStoreError',
    'SqliteLedgerStore',
    'StepAbortedError',
    'StepCheckpointer',
    'StepLedger',
    'StepLedgerError',
    'DAGScheduler',
    'ExecutionListener',
    'NodeExecutor',
    'NodeRunResult',
    'RunResult',
    'RunStatus',
    'create_run_id'
]
