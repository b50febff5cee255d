"""
Circuit graph model for the node engine.

A circuit is plain data: nodes declare typed ports, edges connect one node's
output port to another node's input port. Nothing here validates the graph;
structural checks live in the validator so that partially-built or
externally-deserialized circuits can still be inspected.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from core.node_interfaces import CircuitEngineError, NodeDescription, Port, PortType
from utils.validation_schemas import get_validator


logger = logging.getLogger(__name__)


class CircuitFormatError(CircuitEngineError):
    """Raised when a serialized circuit does not match the wire format."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid circuit document: " + "; ".join(self.errors))


@dataclass
class Node:
    """Declaration of one node in the circuit; shape only, no behaviour."""
    id: str
    name: str
    kind: str
    inputs: List[Port] = field(default_factory=list)
    outputs: List[Port] = field(default_factory=list)
    error: Optional[str] = None

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


@dataclass
class Edge:
    """One data-flow connection from source.outputs[source_output] to target.inputs[target_input]."""
    id: str
    source: str
    target: str
    source_output: str
    target_input: str


@dataclass
class Circuit:
    """Complete workflow graph. Read-only while a run is in progress."""
    id: str = ""
    name: str = ""
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def add_node(self, node: Node) -> Node:
        self.nodes.append(node)
        return node

    def add_edge(self, edge: Edge) -> Edge:
        self.edges.append(edge)
        return edge

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def incoming_edges(self, node_id: str) -> List[Edge]:
        return [edge for edge in self.edges if edge.target == node_id]

    def outgoing_edges(self, node_id: str) -> List[Edge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def dependencies(self, node_id: str) -> List[str]:
        """Distinct source nodes of edges targeting node_id, in edge order."""
        seen: Dict[str, None] = {}
        for edge in self.incoming_edges(node_id):
            seen.setdefault(edge.source, None)
        return list(seen)

    def dependents(self, node_id: str) -> List[str]:
        """Distinct target nodes of edges leaving node_id, in edge order."""
        seen: Dict[str, None] = {}
        for edge in self.outgoing_edges(node_id):
            seen.setdefault(edge.target, None)
        return list(seen)


def create_circuit_id() -> str:
    """Generate a unique circuit ID."""
    return f"circuit_{str(uuid4())[:8]}"


def create_port(
    name: str,
    port_type: Union[PortType, str] = PortType.ANY,
    required: bool = False,
    value: Any = None,
    repeated: bool = False,
) -> Port:
    """Create a port, accepting either a PortType or its wire string."""
    return Port(
        name=name,
        type=PortType.from_value(port_type),
        required=required,
        value=value,
        repeated=repeated,
    )


def create_input_node(
    node_id: str,
    kind: str,
    outputs: List[Port],
    name: Optional[str] = None,
    inputs: Optional[List[Port]] = None,
) -> Node:
    """
    Create a source-shaped node.

    Source nodes have no connected inputs; any inputs given here are expected
    to carry their own default values.
    """
    return Node(id=node_id, name=name or node_id, kind=kind,
                inputs=list(inputs or []), outputs=list(outputs))


def create_output_node(
    node_id: str,
    kind: str,
    inputs: List[Port],
    name: Optional[str] = None,
    outputs: Optional[List[Port]] = None,
) -> Node:
    """Create a sink-shaped node."""
    return Node(id=node_id, name=name or node_id, kind=kind,
                inputs=list(inputs), outputs=list(outputs or []))


def create_processor_node(
    node_id: str,
    kind: str,
    inputs: List[Port],
    outputs: List[Port],
    name: Optional[str] = None,
) -> Node:
    """Create a node with both inputs and outputs."""
    return Node(id=node_id, name=name or node_id, kind=kind,
                inputs=list(inputs), outputs=list(outputs))


def create_node_from_description(
    node_id: str,
    description: NodeDescription,
    values: Optional[Dict[str, Any]] = None,
    name: Optional[str] = None,
) -> Node:
    """
    Declare a node using the ports an executable node describes.

    Args:
        node_id: Unique id of the node within its circuit.
        description: Metadata returned by ExecutableNode.describe().
        values: Optional default values keyed by input name.
        name: Display name; defaults to the description's name.

    Returns:
        A Node whose ports mirror the description.
    """
    values = values or {}
    inputs = []
    for port in description.inputs:
        if port.name in values:
            port = Port(name=port.name, type=port.type, required=port.required,
                        value=values[port.name], repeated=port.repeated)
        inputs.append(port)
    return Node(id=node_id, name=name or description.name, kind=description.kind,
                inputs=inputs, outputs=list(description.outputs))


def create_edge(
    source: str,
    source_output: str,
    target: str,
    target_input: str,
    edge_id: Optional[str] = None,
) -> Edge:
    """Create an edge; the default id is derived from its endpoints."""
    if edge_id is None:
        edge_id = f"{source}.{source_output}->{target}.{target_input}"
    return Edge(id=edge_id, source=source, target=target,
                source_output=source_output, target_input=target_input)


def create_circuit(circuit_id: Optional[str] = None, name: str = "") -> Circuit:
    """Create an empty circuit."""
    return Circuit(id=circuit_id or create_circuit_id(), name=name)


def _port_to_dict(port: Port) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": port.name, "type": port.type.value}
    if port.value is not None:
        data["value"] = port.value
    if port.required:
        data["required"] = True
    if port.repeated:
        data["repeated"] = True
    return data


def _port_from_dict(data: Dict[str, Any]) -> Port:
    return Port(
        name=data["name"],
        type=PortType.from_value(data["type"]),
        required=bool(data.get("required", False)),
        value=data.get("value"),
        repeated=bool(data.get("repeated", False)),
    )


def circuit_to_dict(circuit: Circuit) -> Dict[str, Any]:
    """Serialize a circuit to its JSON-compatible wire form."""
    nodes = []
    for node in circuit.nodes:
        node_data: Dict[str, Any] = {
            "id": node.id,
            "name": node.name,
            "type": node.kind,
            "inputs": [_port_to_dict(p) for p in node.inputs],
            "outputs": [_port_to_dict(p) for p in node.outputs],
        }
        if node.error is not None:
            node_data["error"] = node.error
        nodes.append(node_data)

    edges = [
        {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "sourceOutput": edge.source_output,
            "targetInput": edge.target_input,
        }
        for edge in circuit.edges
    ]

    return {"id": circuit.id, "name": circuit.name, "nodes": nodes, "edges": edges}


def circuit_from_dict(data: Dict[str, Any]) -> Circuit:
    """
    Deserialize a circuit from its wire form.

    Only the document shape is checked; graph invariants (unique ids, dangling
    references, cycles) are left to the validator.

    Raises:
        CircuitFormatError: If the document does not match the circuit schema.
    """
    errors = get_validator().validate_circuit(data)
    if errors:
        logger.warning(f"Rejected circuit document with {len(errors)} schema error(s)")
        raise CircuitFormatError(errors)

    nodes = [
        Node(
            id=item["id"],
            name=item["name"],
            kind=item["type"],
            inputs=[_port_from_dict(p) for p in item["inputs"]],
            outputs=[_port_from_dict(p) for p in item["outputs"]],
            error=item.get("error"),
        )
        for item in data["nodes"]
    ]
    edges = [
        Edge(
            id=item["id"],
            source=item["source"],
            target=item["target"],
            source_output=item["sourceOutput"],
            target_input=item["targetInput"],
        )
        for item in data["edges"]
    ]
    return Circuit(id=data.get("id", ""), name=data.get("name", ""), nodes=nodes, edges=edges)


def circuit_to_json(circuit: Circuit, indent: Optional[int] = None) -> str:
    return json.dumps(circuit_to_dict(circuit), indent=indent, ensure_ascii=False)


def circuit_from_json(text: str) -> Circuit:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CircuitFormatError([f"Malformed JSON: {e}"]) from e
    if not isinstance(data, dict):
        raise CircuitFormatError(["Circuit document must be a JSON object"])
    return circuit_from_dict(data)
