"""
Conditional fork and join nodes.

A fork produces exactly one of its outputs, so edges leaving the other one
are pruned at run time. A join merges whichever branch actually delivered a
value. Neither introduces a cycle: the branch taken is a data-flow fact.
"""

from core.node_interfaces import (
    ExecutableNode, NodeContext, NodeDescription, NodeResult, Port, PortType
)


class ConditionalForkNode(ExecutableNode):
    """Routes value to the 'true' or 'false' output depending on condition."""

    KIND = "conditional-fork"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Conditional Fork",
            inputs=[
                Port("condition", PortType.BOOLEAN, required=True),
                Port("value", PortType.ANY, required=True),
            ],
            outputs=[
                Port("true", PortType.ANY),
                Port("false", PortType.ANY),
            ],
        )

    def execute(self, context: NodeContext) -> NodeResult:
        error = self._error_from_validation(
            self._validate_required_fields(context, ["condition", "value"])
        )
        if error:
            return error

        condition = context.get_value("condition")
        if not isinstance(condition, bool):
            return self._error("Condition must be a boolean")

        value = context.get_value("value")
        if condition:
            return self._success(true=value)
        return self._success(false=value)


class ConditionalJoinNode(ExecutableNode):
    """
    Forwards the value of whichever branch arrived.

    At least one of a and b must be delivered; when both are, a wins.
    """

    KIND = "conditional-join"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Conditional Join",
            inputs=[
                Port("a", PortType.ANY),
                Port("b", PortType.ANY),
            ],
            outputs=[Port("result", PortType.ANY)],
        )

    def execute(self, context: NodeContext) -> NodeResult:
        if context.has_key("a"):
            return self._success(result=context.get_value("a"))
        if context.has_key("b"):
            return self._success(result=context.get_value("b"))
        return self._error("Conditional join received no value from either branch")
