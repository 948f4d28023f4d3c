"""
Field validation.

validate_blocks(blocks, values) -> {block_id: message} or None

Each block's validations map is walked in declaration order and the
first failing check is the one reported for that block. Unknown
validation kinds are ignored.
"""

import re
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

from branchlogic.coercion import is_truthy, to_number, to_text
from branchlogic.model import Block

ErrorMap = Dict[str, str]


class ValidationKind(Enum):
    REQUIRED = "required"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    MIN_CHOICES = "minChoices"
    MAX_CHOICES = "maxChoices"
    MIN = "min"
    MAX = "max"
    PATTERN = "pattern"


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple)) and len(value) == 0)


def _choice_count(value: Any) -> int:
    if isinstance(value, (list, tuple)):
        return len(value)
    return 1 if is_truthy(value) else 0


def _at_least(actual: Any, bound: Any) -> bool:
    actual, bound = to_number(actual), to_number(bound)
    return actual is not None and bound is not None and actual >= bound


def _at_most(actual: Any, bound: Any) -> bool:
    actual, bound = to_number(actual), to_number(bound)
    return actual is not None and bound is not None and actual <= bound


def _matches(pattern: Any, value: Any) -> bool:
    try:
        return re.search(str(pattern), to_text(value)) is not None
    except re.error:
        return False


def check(kind: ValidationKind, value: Any, param: Any) -> Optional[str]:
    """
    Run a single validation.

    Returns:
        Error message, or None if the value passes
    """
    shown = to_text(param)

    if kind is ValidationKind.REQUIRED:
        return "Required" if _is_empty(value) else None

    if kind is ValidationKind.MIN_LENGTH:
        if not is_truthy(value):
            return None
        return None if _at_least(len(to_text(value)), param) else f"Min {shown} characters"

    if kind is ValidationKind.MAX_LENGTH:
        if not is_truthy(value):
            return None
        return None if _at_most(len(to_text(value)), param) else f"Max {shown} characters"

    if kind is ValidationKind.MIN_CHOICES:
        return None if _at_least(_choice_count(value), param) else f"Select at least {shown}"

    if kind is ValidationKind.MAX_CHOICES:
        return None if _at_most(_choice_count(value), param) else f"Select at most {shown}"

    if kind is ValidationKind.MIN:
        if value is None:
            return None
        return None if _at_least(value, param) else f"Min {shown}"

    if kind is ValidationKind.MAX:
        if value is None:
            return None
        return None if _at_most(value, param) else f"Max {shown}"

    if kind is ValidationKind.PATTERN:
        if not is_truthy(value):
            return None
        return None if _matches(param, value) else "Invalid format"

    raise ValueError(f"Unhandled validation kind: {kind}")


def validate_block(block: Block, values: Mapping[str, Any]) -> Optional[str]:
    """First failing validation message for one block, or None."""
    if not block.validations:
        return None

    value = values.get(block.id)
    for key, param in block.validations.items():
        if param is False or param is None:
            continue
        try:
            kind = ValidationKind(key)
        except ValueError:
            continue
        error = check(kind, value, param)
        if error:
            return error
    return None


def validate_blocks(blocks: Iterable[Block], values: Mapping[str, Any]) -> Optional[ErrorMap]:
    """
    Validate a set of (visible) blocks.

    Args:
        blocks: the blocks currently shown; hidden blocks must not be passed
        values: answers keyed by block id

    Returns:
        None if every block passes, else {block_id: message}
    """
    errors: ErrorMap = {}
    for block in blocks:
        error = validate_block(block, values)
        if error:
            errors[block.id] = error
    return errors or None
