"""
Document Analyzer: authoring-time diagnostics for branchlogic documents.

The runtime tolerates every defect reported here (dangling references
degrade to defaults). This module exists so an editor can surface them
before a document is published:
    - Duplicate block ids
    - Rules bound to pages that do not exist
    - Jumps to pages that do not exist
    - Hide targets / condition operands naming unknown blocks
    - Condition / arithmetic references to undeclared variables
    - Incomplete comparisons and unknown operators or action types

IMPORTANT: This is read-only. It does NOT modify the document and does
NOT attempt cycle detection.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Set

from branchlogic.conditions import (
    Comparison,
    ComparisonOperator,
    Condition,
    LogicalCondition,
    Operand,
    OperandType,
)
from branchlogic.model import ARITHMETIC_ACTIONS, ActionType, Document


def _walk(condition: Condition) -> Iterator[Condition]:
    """Yield every node of a condition tree."""
    yield condition
    if isinstance(condition, LogicalCondition):
        for child in condition.conditions:
            yield from _walk(child)


def _operands(condition: Condition) -> Iterator[Operand]:
    for node in _walk(condition):
        if isinstance(node, Comparison):
            for operand in (node.left, node.right):
                if operand is not None:
                    yield operand


def _known(value, ids) -> bool:
    return isinstance(value, str) and value in ids


@dataclass
class DocumentReport:
    """Analysis report for a document."""

    document_id: str
    total_pages: int = 0
    total_blocks: int = 0
    total_rules: int = 0
    total_actions: int = 0

    duplicate_block_ids: Set[str] = field(default_factory=set)
    dangling_rule_pages: Set[str] = field(default_factory=set)
    duplicate_rule_pages: Set[str] = field(default_factory=set)
    missing_jump_targets: Set[str] = field(default_factory=set)
    unknown_block_references: Set[str] = field(default_factory=set)
    undefined_variables: Set[str] = field(default_factory=set)
    incomplete_comparisons: int = 0
    unknown_operators: Set[str] = field(default_factory=set)
    unknown_action_types: Set[str] = field(default_factory=set)

    # variable name -> number of references (conditions, targets, operands)
    variable_usage: Dict[str, int] = field(default_factory=dict)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    @property
    def ok(self) -> bool:
        return not self.warnings


def analyze_document(document: Document) -> DocumentReport:
    """
    Perform authoring-time analysis of a Document.

    Returns a DocumentReport with counts and warnings.
    """
    report = DocumentReport(document_id=document.id)

    page_ids = {p.id for p in document.pages}
    block_counts = Counter(b.id for p in document.pages for b in p.blocks)
    declared_vars = set(document.variables)
    usage: Dict[str, int] = defaultdict(int)

    report.total_pages = len(document.pages)
    report.total_blocks = sum(block_counts.values())
    report.total_rules = len(document.rules)
    report.total_actions = sum(len(r.actions) for r in document.rules)

    # =========================================================================
    # 1. BLOCKS AND RULE BINDINGS
    # =========================================================================

    report.duplicate_block_ids = {block_id for block_id, n in block_counts.items() if n > 1}

    rule_counts = Counter(r.page_id for r in document.rules)
    report.duplicate_rule_pages = {page_id for page_id, n in rule_counts.items() if n > 1}
    report.dangling_rule_pages = {page_id for page_id in rule_counts if page_id not in page_ids}

    # =========================================================================
    # 2. ACTIONS
    # =========================================================================

    for rule in document.rules:
        for action in rule.actions:
            details = action.details

            for node in _walk(action.condition):
                if isinstance(node, Comparison):
                    if not isinstance(node.operator, ComparisonOperator):
                        report.unknown_operators.add(str(node.operator))
                    if not node.is_complete:
                        report.incomplete_comparisons += 1

            for operand in _operands(action.condition):
                if operand.type is OperandType.BLOCK and not _known(operand.value, block_counts):
                    report.unknown_block_references.add(str(operand.value))
                elif operand.type is OperandType.VARIABLE:
                    usage[str(operand.value)] += 1

            if action.type is ActionType.JUMP:
                if details.to is not None and not _known(details.to.value, page_ids):
                    report.missing_jump_targets.add(str(details.to.value))
            elif action.type is ActionType.HIDE:
                target = details.target
                if target is not None and target.type == "block" and not _known(target.value, block_counts):
                    report.unknown_block_references.add(str(target.value))
            elif action.type in ARITHMETIC_ACTIONS:
                if details.target is not None and details.target.type == "variable":
                    usage[str(details.target.value)] += 1
                if details.value is not None and details.value.type == "variable":
                    usage[str(details.value.value)] += 1
            else:
                report.unknown_action_types.add(str(action.type))

    report.variable_usage = dict(usage)
    report.undefined_variables = set(usage) - declared_vars

    # =========================================================================
    # 3. WARNING FLAGS
    # =========================================================================

    if report.duplicate_block_ids:
        report.add_warning(f"Duplicate block ids: {', '.join(sorted(report.duplicate_block_ids))}")

    if report.duplicate_rule_pages:
        report.add_warning(f"More than one rule for pages: {', '.join(sorted(report.duplicate_rule_pages))}")

    if report.dangling_rule_pages:
        report.add_warning(f"Rules for unknown pages: {', '.join(sorted(report.dangling_rule_pages))}")

    if report.missing_jump_targets:
        report.add_warning(f"Jumps to unknown pages: {', '.join(sorted(report.missing_jump_targets))}")

    if report.unknown_block_references:
        report.add_warning(f"References to unknown blocks: {', '.join(sorted(report.unknown_block_references))}")

    if report.undefined_variables:
        report.add_warning(f"Undefined variable references: {', '.join(sorted(report.undefined_variables))}")

    if report.incomplete_comparisons:
        report.add_warning(f"Comparisons with fewer than two operands: {report.incomplete_comparisons}")

    if report.unknown_operators:
        report.add_warning(f"Unknown operators: {', '.join(sorted(report.unknown_operators))}")

    if report.unknown_action_types:
        report.add_warning(f"Unknown action types: {', '.join(sorted(report.unknown_action_types))}")

    return report
