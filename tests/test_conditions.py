"""
Tests for the condition node types.

These tests verify:
    - Nodes can be created and composed
    - Nodes are immutable
    - Comparisons are fixed-arity
"""

import pytest
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


class TestOperand:
    """Test comparison operands."""

    def test_create_block_operand(self):
        operand = Operand(OperandType.BLOCK, "q1")
        assert operand.type is OperandType.BLOCK
        assert operand.value == "q1"

    def test_operand_immutable(self):
        operand = Operand(OperandType.CONSTANT, 5)
        with pytest.raises(AttributeError):
            operand.value = 6


class TestComparison:
    """Test two-operand comparisons."""

    def test_complete_comparison(self):
        cond = Comparison(
            operator=ComparisonOperator.GREATER_EQUAL,
            left=Operand(OperandType.VARIABLE, "score"),
            right=Operand(OperandType.CONSTANT, 10),
        )
        assert cond.is_complete
        assert isinstance(cond, Condition)

    def test_missing_operand_is_incomplete(self):
        cond = Comparison(operator=ComparisonOperator.EQUALS, left=Operand(OperandType.BLOCK, "q1"))
        assert not cond.is_complete

    def test_operator_values_match_document_strings(self):
        assert [op.value for op in ComparisonOperator] == ["lt", "lte", "gt", "gte", "eq", "neq"]

    def test_comparison_immutable(self):
        cond = Comparison(operator=ComparisonOperator.EQUALS)
        with pytest.raises(AttributeError):
            cond.operator = ComparisonOperator.NOT_EQUALS


class TestLogicalCondition:
    """Test AND/OR composition."""

    def test_nested_composition(self):
        # (q1 == "a" OR always) AND score > 3
        inner = LogicalCondition(
            operator=LogicalOperator.OR,
            conditions=(
                Comparison(ComparisonOperator.EQUALS, Operand(OperandType.BLOCK, "q1"), Operand(OperandType.CONSTANT, "a")),
                Always(),
            ),
        )
        outer = LogicalCondition(
            operator=LogicalOperator.AND,
            conditions=(
                inner,
                Comparison(ComparisonOperator.GREATER_THAN, Operand(OperandType.VARIABLE, "score"), Operand(OperandType.CONSTANT, 3)),
            ),
        )
        assert outer.operator is LogicalOperator.AND
        assert isinstance(outer.conditions[0], LogicalCondition)

    def test_always_instances_are_equal(self):
        assert Always() == Always()
