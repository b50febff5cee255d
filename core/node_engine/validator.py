"""
Structural and type-level validation of circuits.

validate() never raises: it collects every problem it can find so a host can
show all of them at once. Checks run in a fixed order (duplicate node ids,
duplicate edge ids, per-edge references and port types, per-edge cycles) and
none of them short-circuits the others.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Set, Tuple

from core.node_interfaces import (
    CircuitEngineError, ValidationResult, ValidationSeverity, is_type_compatible
)
from core.node_engine.circuit import Circuit, Edge


logger = logging.getLogger(__name__)


class CyclicGraphError(CircuitEngineError):
    """Raised when no execution order can be derived for a circuit."""

    def __init__(self, message: str = "Unable to derive execution order. The graph may contain a cycle."):
        super().__init__(message)


@dataclass
class ValidationReport:
    """Outcome of validating a circuit."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    issues: List[ValidationResult] = field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: List[ValidationResult]) -> "ValidationReport":
        errors = [i.message for i in issues if i.severity == ValidationSeverity.ERROR]
        return cls(valid=not errors, errors=errors, issues=list(issues))

    def codes(self) -> List[str]:
        return [i.error_code for i in self.issues if i.error_code]


def _error(message: str, error_code: str, node_id: str = None, edge_id: str = None,
           field_name: str = None) -> ValidationResult:
    return ValidationResult(
        is_valid=False,
        severity=ValidationSeverity.ERROR,
        message=message,
        field_name=field_name,
        error_code=error_code,
        node_id=node_id,
        edge_id=edge_id,
    )


def _check_duplicate_node_ids(circuit: Circuit) -> List[ValidationResult]:
    results = []
    seen: Set[str] = set()
    for node in circuit.nodes:
        if node.id in seen:
            results.append(_error(
                f"Duplicate node id '{node.id}'", "DUPLICATE_NODE_ID", node_id=node.id
            ))
        seen.add(node.id)
    return results


def _check_duplicate_edge_ids(circuit: Circuit) -> List[ValidationResult]:
    results = []
    seen: Set[str] = set()
    for edge in circuit.edges:
        if edge.id in seen:
            results.append(_error(
                f"Duplicate edge id '{edge.id}'", "DUPLICATE_EDGE_ID", edge_id=edge.id
            ))
        seen.add(edge.id)
    return results


def _check_edge(circuit: Circuit, edge: Edge) -> List[ValidationResult]:
    """At most one finding per edge: the first problem in reference order."""
    source = circuit.get_node(edge.source)
    if source is None:
        return [_error(
            f"Edge '{edge.id}' references missing source node '{edge.source}'",
            "MISSING_SOURCE_NODE", edge_id=edge.id
        )]

    target = circuit.get_node(edge.target)
    if target is None:
        return [_error(
            f"Edge '{edge.id}' references missing target node '{edge.target}'",
            "MISSING_TARGET_NODE", edge_id=edge.id
        )]

    source_port = source.get_output(edge.source_output)
    if source_port is None:
        return [_error(
            f"Edge '{edge.id}' references missing output '{edge.source_output}' on node '{source.id}'",
            "MISSING_SOURCE_OUTPUT", edge_id=edge.id, field_name=edge.source_output
        )]

    target_port = target.get_input(edge.target_input)
    if target_port is None:
        return [_error(
            f"Edge '{edge.id}' references missing input '{edge.target_input}' on node '{target.id}'",
            "MISSING_TARGET_INPUT", edge_id=edge.id, field_name=edge.target_input
        )]

    try:
        compatible = is_type_compatible(source_port.type, target_port.type)
    except ValueError:
        compatible = False
    if not compatible:
        source_type = getattr(source_port.type, "value", source_port.type)
        target_type = getattr(target_port.type, "value", target_port.type)
        return [_error(
            f"Edge '{edge.id}' connects incompatible types: "
            f"'{source.id}.{source_port.name}' ({source_type}) -> "
            f"'{target.id}.{target_port.name}' ({target_type})",
            "TYPE_MISMATCH", edge_id=edge.id
        )]

    return []


def _build_adjacency(circuit: Circuit) -> Dict[str, List[Tuple[int, str]]]:
    adjacency: Dict[str, List[Tuple[int, str]]] = {}
    for index, edge in enumerate(circuit.edges):
        adjacency.setdefault(edge.source, []).append((index, edge.target))
    return adjacency


def _path_exists(
    adjacency: Dict[str, List[Tuple[int, str]]],
    start: str,
    goal: str,
    excluded_edge: int,
) -> bool:
    """Iterative DFS from start looking for goal, ignoring one edge."""
    if start == goal:
        return True

    visited: Set[str] = set()
    in_progress: Set[str] = {start}
    stack: List[Tuple[str, Iterator[Tuple[int, str]]]] = [
        (start, iter(adjacency.get(start, ())))
    ]

    while stack:
        node_id, neighbours = stack[-1]
        descended = False
        for edge_index, next_id in neighbours:
            if edge_index == excluded_edge:
                continue
            if next_id == goal:
                return True
            if next_id in visited or next_id in in_progress:
                continue
            in_progress.add(next_id)
            stack.append((next_id, iter(adjacency.get(next_id, ()))))
            descended = True
            break
        if not descended:
            stack.pop()
            in_progress.discard(node_id)
            visited.add(node_id)

    return False


def _check_cycles(circuit: Circuit) -> List[ValidationResult]:
    """Report every edge that closes a cycle, not only the first one found."""
    results = []
    adjacency = _build_adjacency(circuit)
    for index, edge in enumerate(circuit.edges):
        if _path_exists(adjacency, edge.target, edge.source, excluded_edge=index):
            results.append(_error(
                f"Edge '{edge.id}' creates a cycle: '{edge.target}' already leads back to '{edge.source}'",
                "CYCLE_DETECTED", edge_id=edge.id
            ))
    return results


def validate(circuit: Circuit) -> ValidationReport:
    """
    Validate a circuit's structural and type-level invariants.

    Args:
        circuit: The circuit to check.

    Returns:
        A report with valid == False and every detected problem when the
        circuit is malformed.
    """
    issues: List[ValidationResult] = []
    issues.extend(_check_duplicate_node_ids(circuit))
    issues.extend(_check_duplicate_edge_ids(circuit))
    for edge in circuit.edges:
        issues.extend(_check_edge(circuit, edge))
    issues.extend(_check_cycles(circuit))

    report = ValidationReport.from_issues(issues)
    if not report.valid:
        logger.debug(f"Circuit '{circuit.id}' failed validation with {len(report.errors)} error(s)")
    return report


def topological_levels(circuit: Circuit) -> List[List[str]]:
    """
    Group node ids into execution levels using Kahn's algorithm.

    Level 0 holds nodes without dependencies; level N holds nodes whose
    dependencies all sit in earlier levels. Nodes in one level never depend on
    each other. Edges with a dangling endpoint are ignored.

    Raises:
        CyclicGraphError: If not every node can be placed in a level.
    """
    node_ids = [node.id for node in circuit.nodes]
    known = set(node_ids)
    in_degree: Dict[str, int] = {node_id: 0 for node_id in node_ids}
    adjacency: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}

    for node_id in node_ids:
        for dependency in circuit.dependencies(node_id):
            if dependency in known:
                adjacency[dependency].append(node_id)
                in_degree[node_id] += 1

    current = [node_id for node_id in node_ids if in_degree[node_id] == 0]
    levels: List[List[str]] = []
    processed = 0

    while current:
        levels.append(list(current))
        processed += len(current)
        following: List[str] = []
        for node_id in current:
            for neighbour in adjacency[node_id]:
                in_degree[neighbour] -= 1
                if in_degree[neighbour] == 0:
                    following.append(neighbour)
        current = following

    if processed != len(in_degree):
        raise CyclicGraphError()
    return levels
