"""
Condition evaluation.

evaluate_condition(condition, values, variables) -> bool

Pure and side-effect free: the same condition evaluated against the same
values and variables always gives the same answer, and nothing passed in
is mutated.
"""

from collections.abc import Hashable
from typing import Any, Mapping

from branchlogic.coercion import to_number, to_text
from branchlogic.conditions import (
    Always,
    Comparison,
    ComparisonOperator,
    Condition,
    LogicalCondition,
    LogicalOperator,
    Operand,
    OperandType,
)


def resolve_operand(operand: Operand, values: Mapping[str, Any], variables: Mapping[str, Any]) -> Any:
    """Look up the current value an operand refers to (None if absent)."""
    if operand.type is OperandType.CONSTANT:
        return operand.value
    if operand.type in (OperandType.VARIABLE, OperandType.BLOCK):
        if not isinstance(operand.value, Hashable):
            return None
        source = variables if operand.type is OperandType.VARIABLE else values
        return source.get(operand.value)
    # unknown source type: the literal is all we have
    return operand.value


def _normalize(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (list, tuple)):
        return to_text(value)
    number = to_number(value)
    return to_text(value) if number is None else number


def _is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare(operator: ComparisonOperator, left: Any, right: Any) -> bool:
    """
    Compare two resolved operand values.

    eq/neq against a list use membership, whichever side the list is on.
    Everything else is normalized first: None -> '', numeric strings ->
    numbers, lists -> comma-joined text. Ordering is numeric when both
    sides are numbers and lexicographic otherwise.
    """
    if operator in (ComparisonOperator.EQUALS, ComparisonOperator.NOT_EQUALS):
        if isinstance(left, (list, tuple)):
            found = right in left
            return found if operator is ComparisonOperator.EQUALS else not found
        if isinstance(right, (list, tuple)):
            found = left in right
            return found if operator is ComparisonOperator.EQUALS else not found

    lhs = _normalize(left)
    rhs = _normalize(right)

    if operator is ComparisonOperator.EQUALS:
        return lhs == rhs
    if operator is ComparisonOperator.NOT_EQUALS:
        return lhs != rhs

    if not (_is_numeric(lhs) and _is_numeric(rhs)):
        lhs, rhs = to_text(lhs), to_text(rhs)

    if operator is ComparisonOperator.LESS_THAN:
        return lhs < rhs
    if operator is ComparisonOperator.LESS_EQUAL:
        return lhs <= rhs
    if operator is ComparisonOperator.GREATER_THAN:
        return lhs > rhs
    if operator is ComparisonOperator.GREATER_EQUAL:
        return lhs >= rhs
    return False


def evaluate_condition(condition: Condition, values: Mapping[str, Any], variables: Mapping[str, Any]) -> bool:
    """
    Evaluate a condition tree.

    Args:
        condition: Always, Comparison or LogicalCondition
        values: answers keyed by block id
        variables: runtime variables keyed by name

    Returns:
        True/False. Malformed conditions (unknown operator, missing
        operand, unknown node type) evaluate False instead of raising.
    """
    if isinstance(condition, Always):
        return True

    if isinstance(condition, LogicalCondition):
        results = [evaluate_condition(child, values, variables) for child in condition.conditions]
        if condition.operator is LogicalOperator.AND:
            return all(results)
        if condition.operator is LogicalOperator.OR:
            return any(results)
        return False

    if isinstance(condition, Comparison):
        if not isinstance(condition.operator, ComparisonOperator) or not condition.is_complete:
            return False
        return compare(
            condition.operator,
            resolve_operand(condition.left, values, variables),
            resolve_operand(condition.right, values, variables),
        )

    return False
