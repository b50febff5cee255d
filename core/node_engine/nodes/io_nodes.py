"""
Input and output nodes.

Input nodes expose a configured value to the circuit; output nodes collect a
value at the end of a branch so hosts can read it from the run result.
"""

from core.node_interfaces import (
    ExecutableNode, NodeContext, NodeDescription, NodeResult, Port, PortType
)


class NumberInputNode(ExecutableNode):
    """Emits its configured number."""

    KIND = "number-input"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Number Input",
            inputs=[Port("value", PortType.NUMBER, required=True)],
            outputs=[Port("value", PortType.NUMBER)],
            description="Provides a number to downstream nodes",
        )

    def execute(self, context: NodeContext) -> NodeResult:
        error = self._error_from_validation(
            self._validate_required_fields(context, ["value"])
            + self._validate_numbers(context, ["value"])
        )
        if error:
            return error
        return self._success(value=context.get_value("value"))


class OutputNode(ExecutableNode):
    """Passes its input through as the branch's final value."""

    KIND = "output"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Output",
            inputs=[Port("value", PortType.ANY, required=True)],
            outputs=[Port("value", PortType.ANY)],
            description="Collects a value for the run result",
        )

    def execute(self, context: NodeContext) -> NodeResult:
        if not context.has_key("value"):
            return self._error("Value is required")
        return self._success(value=context.get_value("value"))
