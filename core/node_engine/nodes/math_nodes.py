"""
Arithmetic nodes.

These are deliberately small: they exist to exercise the engine's data flow,
error isolation and durable step replay.
"""

from core.node_interfaces import (
    ExecutableNode, NodeContext, NodeDescription, NodeResult, Port, PortType
)


def _binary_ports():
    return [
        Port("a", PortType.NUMBER, required=True),
        Port("b", PortType.NUMBER, required=True),
    ]


class AdditionNode(ExecutableNode):
    """Adds a and b."""

    KIND = "addition"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Addition",
            inputs=_binary_ports(),
            outputs=[Port("result", PortType.NUMBER)],
        )

    def execute(self, context: NodeContext) -> NodeResult:
        error = self._error_from_validation(
            self._validate_required_fields(context, ["a", "b"])
            + self._validate_numbers(context, ["a", "b"])
        )
        if error:
            return error
        return self._success(result=context.get_value("a") + context.get_value("b"))


class DivisionNode(ExecutableNode):
    """Divides a by b; a zero divisor is an error result."""

    KIND = "division"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Division",
            inputs=_binary_ports(),
            outputs=[Port("result", PortType.NUMBER)],
        )

    def execute(self, context: NodeContext) -> NodeResult:
        error = self._error_from_validation(
            self._validate_required_fields(context, ["a", "b"])
            + self._validate_numbers(context, ["a", "b"])
        )
        if error:
            return error
        if context.get_value("b") == 0:
            return self._error("Division by zero is not allowed")
        return self._success(result=context.get_value("a") / context.get_value("b"))


class MultiStepAdditionNode(ExecutableNode):
    """
    Computes (a + b) * 2 in two durable steps.

    The sum is recorded as step 0 and the doubled value as step 1, so a
    retried or resumed invocation does not recompute completed steps.
    """

    KIND = "multi-step-addition"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Multi-Step Addition",
            inputs=_binary_ports(),
            outputs=[Port("result", PortType.NUMBER)],
            description="Adds a and b, then doubles the sum",
            multi_step=True,
        )

    def execute(self, context: NodeContext) -> NodeResult:
        error = self._error_from_validation(
            self._validate_required_fields(context, ["a", "b"])
            + self._validate_numbers(context, ["a", "b"])
        )
        if error:
            return error

        a = context.get_value("a")
        b = context.get_value("b")
        total = context.step(lambda: a + b, name="sum")
        doubled = context.step(lambda: total * 2, name="double")
        return self._success(result=doubled)
