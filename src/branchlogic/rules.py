"""
Rule engine.

evaluate_rule(rule, values, variables) -> RuleResult

Actions run top to bottom. Each action's condition sees the variables as
updated by the arithmetic actions before it in the same rule; hide and
jump effects are collected on the side and never feed back into
conditions.

Jump policy: the FIRST satisfied jump wins. Later satisfied jumps in the
same rule are ignored.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional

from branchlogic.coercion import Number, tidy_number, to_number
from branchlogic.evaluator import evaluate_condition
from branchlogic.model import ARITHMETIC_ACTIONS, Action, ActionType, Rule, Variables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleResult:
    """
    Outcome of running one rule.

    Properties:
        next_page_id: jump destination, or None for the default increment
        hidden_block_ids: blocks to hide from the next page onwards
        variables: the full variable map after all arithmetic
    """

    next_page_id: Optional[str] = None
    hidden_block_ids: FrozenSet[str] = field(default_factory=frozenset)
    variables: Variables = field(default_factory=dict)


def _is_id(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _numeric(value: Any) -> Number:
    number = to_number(value)
    return 0 if number is None else number


def apply_arithmetic(action_type: ActionType, current: Number, operand: Number) -> Number:
    """Apply one arithmetic action. Division by zero leaves current unchanged."""
    if action_type is ActionType.ADD:
        result = current + operand
    elif action_type is ActionType.SUBTRACT:
        result = current - operand
    elif action_type is ActionType.MULTIPLY:
        result = current * operand
    elif action_type is ActionType.DIVIDE:
        result = current / operand if operand != 0 else current
    elif action_type is ActionType.SET:
        result = operand
    else:
        raise ValueError(f"Not an arithmetic action: {action_type}")
    return tidy_number(result)


def _arithmetic(action: Action, variables: Variables) -> Variables:
    target = action.details.target
    operand_ref = action.details.value
    if target is None or target.type != "variable" or not isinstance(target.value, str) or operand_ref is None:
        return variables

    current = _numeric(variables.get(target.value))
    if operand_ref.type == "variable":
        name = operand_ref.value
        operand = _numeric(variables.get(name) if isinstance(name, str) else None)
    else:
        operand = _numeric(operand_ref.value)

    updated = dict(variables)
    updated[target.value] = apply_arithmetic(action.type, current, operand)
    return updated


def evaluate_rule(rule: Rule, values: Mapping[str, Any], variables: Mapping[str, Any]) -> RuleResult:
    """
    Run every action of a rule against the given answers and variables.

    The input variables are never mutated; the result carries a new map.
    Actions with an unknown type, or missing the details their type
    needs, are skipped.
    """
    next_page_id: Optional[str] = None
    hidden = set()
    working: Variables = dict(variables)

    for action in rule.actions:
        if not evaluate_condition(action.condition, values, working):
            continue

        if action.type is ActionType.JUMP:
            destination = action.details.to
            if next_page_id is None and destination is not None and _is_id(destination.value):
                next_page_id = destination.value
        elif action.type is ActionType.HIDE:
            target = action.details.target
            if target is not None and target.type == "block" and _is_id(target.value):
                hidden.add(target.value)
        elif action.type in ARITHMETIC_ACTIONS:
            working = _arithmetic(action, working)
        else:
            logger.debug("Skipping unknown action type %r on page %s", action.type, rule.page_id)

    return RuleResult(next_page_id=next_page_id, hidden_block_ids=frozenset(hidden), variables=working)
