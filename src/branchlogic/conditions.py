"""
Condition System for branchlogic

All rule conditions (jump guards, hide guards, arithmetic guards) are
represented as small immutable trees, never as strings or code fragments.

Two node families exist:
    - Comparison: exactly two operands and one operator
    - LogicalCondition: AND / OR over child conditions

plus the Always node, which is unconditionally true.

ARCHITECTURAL RULE:
    This module is structure only.
    Evaluation lives in branchlogic.evaluator.
    Parsing from documents lives in branchlogic.serialization.
"""

from abc import ABC
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple, Union


class Condition(ABC):
    """
    Base class for all condition nodes.

    Exists only to give the node hierarchy a common type.
    DO NOT add evaluation logic here.
    """
    pass


class ComparisonOperator(Enum):
    """
    Two-operand comparison operators.

    Keep this list closed. An authored document may carry an operator
    that is not listed here; such a comparison keeps the raw string and
    always evaluates False.
    """

    LESS_THAN = "lt"
    LESS_EQUAL = "lte"
    GREATER_THAN = "gt"
    GREATER_EQUAL = "gte"
    EQUALS = "eq"
    NOT_EQUALS = "neq"


class LogicalOperator(Enum):
    """Combinators over child conditions."""

    AND = "and"
    OR = "or"


class OperandType(Enum):
    """Where an operand takes its value from."""

    BLOCK = "block"          # answer stored under a block id
    VARIABLE = "variable"    # runtime variable by name
    CONSTANT = "constant"    # literal value


ALWAYS_OP = "always"


@dataclass(frozen=True)
class Operand:
    """
    One side of a comparison.

    Properties:
        type: OperandType (or the raw string for an unknown source type)
        value: block id, variable name, or literal value

    IMPORTANT:
        Existence of the referenced block or variable is NOT checked here.
        A missing reference resolves to None at evaluation time.
    """

    type: Union[OperandType, str]
    value: Any


@dataclass(frozen=True)
class Comparison(Condition):
    """
    Fixed-arity comparison: left <op> right.

    Example:
        q1 == "skip"

    Becomes:
        Comparison(
            operator=ComparisonOperator.EQUALS,
            left=Operand(OperandType.BLOCK, "q1"),
            right=Operand(OperandType.CONSTANT, "skip"),
        )

    A comparison missing either operand is incomplete and evaluates False.
    """

    operator: Union[ComparisonOperator, str]
    left: Optional[Operand] = None
    right: Optional[Operand] = None

    @property
    def is_complete(self) -> bool:
        return self.left is not None and self.right is not None


@dataclass(frozen=True)
class Always(Condition):
    """Unconditionally true. Used for actions that should always fire."""
    pass


@dataclass(frozen=True)
class LogicalCondition(Condition):
    """
    AND / OR over any number of child conditions.

    An AND with no children is true; an OR with no children is false.
    """

    operator: LogicalOperator
    conditions: Tuple[Condition, ...] = field(default_factory=tuple)
