"""
Serialization helpers for branchlogic documents.

Converts between Document objects and the authored JSON shape:

    {
      "id": "...", "kind": "funnel",
      "pages": [{"id", "name", "blocks": [...], "properties": {"buttonText", "redirectUrl"}}],
      "rules": [{"pageId", "actions": [{"type", "condition", "details"}]}],
      "variables": {"score": 0},
      "theme": {...}, "settings": {...}
    }

Provides JSON/YAML round-trip via an intermediate dict representation.
Unknown operators and action types load as raw strings (the runtime
treats them as false / no-op); structurally unusable input raises
DocumentFormatError.
"""
from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, Optional

import yaml

from branchlogic.conditions import (
    ALWAYS_OP,
    Always,
    Comparison,
    ComparisonOperator,
    Condition,
    LogicalCondition,
    LogicalOperator,
    Operand,
    OperandType,
)
from branchlogic.model import (
    Action,
    ActionDetails,
    ActionType,
    Block,
    BlockType,
    Document,
    DocumentKind,
    Page,
    PageProperties,
    Reference,
    Rule,
)

logger = logging.getLogger(__name__)

# top-level keys carried through untouched
OPAQUE_KEYS = ("title", "theme", "settings")


class DocumentFormatError(ValueError):
    """Raised when a document dict cannot be turned into a Document."""
    pass


def _enum_or_raw(enum_cls, raw: Any):
    try:
        return enum_cls(raw)
    except ValueError:
        return raw


def _raw(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _require(d: Any, key: str, what: str) -> Any:
    if not isinstance(d, dict):
        raise DocumentFormatError(f"{what} must be an object, got {type(d).__name__}")
    if key not in d:
        raise DocumentFormatError(f"{what} is missing '{key}'")
    return d[key]


def _require_id(d: Any, what: str) -> str:
    value = _require(d, "id", what)
    if not isinstance(value, str) or not value:
        raise DocumentFormatError(f"{what} id must be a non-empty string, got {value!r}")
    return value


def _mapping(d: Dict[str, Any], key: str, what: str) -> Dict[str, Any]:
    value = d.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DocumentFormatError(f"{what} '{key}' must be an object, got {type(value).__name__}")
    return value


def _list(d: Dict[str, Any], key: str, what: str) -> list:
    value = d.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DocumentFormatError(f"{what} '{key}' must be a list, got {type(value).__name__}")
    return value


# ----------------------------------------------------------------------
# Conditions
# ----------------------------------------------------------------------

def operand_to_dict(o: Operand) -> Dict[str, Any]:
    return {"type": _raw(o.type), "value": o.value}


def operand_from_dict(d: Dict[str, Any]) -> Operand:
    return Operand(type=_enum_or_raw(OperandType, _require(d, "type", "Condition var")), value=d.get("value"))


def condition_to_dict(c: Condition) -> Dict[str, Any]:
    if isinstance(c, Always):
        return {"op": ALWAYS_OP}
    if isinstance(c, LogicalCondition):
        return {"op": c.operator.value, "vars": [condition_to_dict(child) for child in c.conditions]}
    if isinstance(c, Comparison):
        operands = [o for o in (c.left, c.right) if o is not None]
        return {"op": _raw(c.operator), "vars": [operand_to_dict(o) for o in operands]}
    raise TypeError(f"Unsupported Condition type: {type(c)}")


def condition_from_dict(d: Optional[Dict[str, Any]]) -> Condition:
    """
    Build a condition node.

    A missing condition means "always". Comparisons read only their
    first two vars; extra entries are dropped.
    """
    if d is None:
        return Always()
    op = _require(d, "op", "Condition")
    if op == ALWAYS_OP:
        return Always()

    children = d.get("vars") or []
    if not isinstance(children, list):
        raise DocumentFormatError(f"Condition 'vars' must be a list, got {type(children).__name__}")

    if op in (LogicalOperator.AND.value, LogicalOperator.OR.value):
        return LogicalCondition(
            operator=LogicalOperator(op),
            conditions=tuple(condition_from_dict(child) for child in children),
        )

    if len(children) > 2:
        logger.debug("Comparison '%s' has %d vars, reading the first two", op, len(children))
    operands = [operand_from_dict(v) for v in children[:2]]
    return Comparison(
        operator=_enum_or_raw(ComparisonOperator, op),
        left=operands[0] if len(operands) > 0 else None,
        right=operands[1] if len(operands) > 1 else None,
    )


# ----------------------------------------------------------------------
# Rules
# ----------------------------------------------------------------------

def reference_to_dict(r: Optional[Reference]) -> Optional[Dict[str, Any]]:
    if r is None:
        return None
    return {"type": r.type, "value": r.value}


def reference_from_dict(d: Optional[Dict[str, Any]]) -> Optional[Reference]:
    if d is None:
        return None
    return Reference(type=_require(d, "type", "Action reference"), value=d.get("value"))


def action_to_dict(a: Action) -> Dict[str, Any]:
    details = {}
    for key in ("to", "target", "value"):
        ref = getattr(a.details, key)
        if ref is not None:
            details[key] = reference_to_dict(ref)
    return {"type": _raw(a.type), "condition": condition_to_dict(a.condition), "details": details}


def action_from_dict(d: Dict[str, Any]) -> Action:
    action_type = _require(d, "type", "Action")
    details = _mapping(d, "details", "Action")
    return Action(
        type=_enum_or_raw(ActionType, action_type),
        condition=condition_from_dict(d.get("condition")),
        details=ActionDetails(
            to=reference_from_dict(details.get("to")),
            target=reference_from_dict(details.get("target")),
            value=reference_from_dict(details.get("value")),
        ),
    )


def rule_to_dict(r: Rule) -> Dict[str, Any]:
    return {"pageId": r.page_id, "actions": [action_to_dict(a) for a in r.actions]}


def rule_from_dict(d: Dict[str, Any]) -> Rule:
    if not isinstance(d, dict):
        raise DocumentFormatError(f"Rule must be an object, got {type(d).__name__}")
    page_id = d.get("pageId", d.get("stepId"))
    if page_id is None:
        raise DocumentFormatError("Rule is missing 'pageId'")
    if not isinstance(page_id, str):
        raise DocumentFormatError(f"Rule pageId must be a string, got {page_id!r}")
    return Rule(page_id=page_id, actions=[action_from_dict(a) for a in _list(d, "actions", f"Rule {page_id}")])


# ----------------------------------------------------------------------
# Pages and blocks
# ----------------------------------------------------------------------

def block_to_dict(b: Block) -> Dict[str, Any]:
    d = {"id": b.id, "type": b.type.value, "properties": b.properties}
    if b.validations is not None:
        d["validations"] = b.validations
    return d


def block_from_dict(d: Dict[str, Any]) -> Block:
    block_id = _require_id(d, "Block")
    raw_type = _require(d, "type", f"Block {block_id}")
    try:
        block_type = BlockType(raw_type)
    except ValueError:
        raise DocumentFormatError(f"Block {block_id} has unknown type '{raw_type}'")
    return Block(
        id=block_id,
        type=block_type,
        properties=dict(_mapping(d, "properties", f"Block {block_id}")),
        validations=dict(_mapping(d, "validations", f"Block {block_id}")) if d.get("validations") is not None else None,
    )


def page_to_dict(p: Page) -> Dict[str, Any]:
    properties = {"buttonText": p.properties.button_text}
    if p.properties.redirect_url:
        properties["redirectUrl"] = p.properties.redirect_url
    return {
        "id": p.id,
        "name": p.name,
        "blocks": [block_to_dict(b) for b in p.blocks],
        "properties": properties,
    }


def page_from_dict(d: Dict[str, Any]) -> Page:
    page_id = _require_id(d, "Page")
    properties = _mapping(d, "properties", f"Page {page_id}")
    return Page(
        id=page_id,
        name=d.get("name", ""),
        blocks=[block_from_dict(b) for b in _list(d, "blocks", f"Page {page_id}")],
        properties=PageProperties(
            button_text=properties.get("buttonText", "Next"),
            redirect_url=properties.get("redirectUrl") or None,
        ),
    )


# ----------------------------------------------------------------------
# Documents
# ----------------------------------------------------------------------

def document_to_dict(doc: Document) -> Dict[str, Any]:
    d = {
        "id": doc.id,
        "kind": doc.kind.value,
        "pages": [page_to_dict(p) for p in doc.pages],
        "rules": [rule_to_dict(r) for r in doc.rules],
        "variables": dict(doc.variables),
    }
    d.update(doc.metadata)
    return d


def document_from_dict(d: Dict[str, Any], kind: Optional[DocumentKind] = None) -> Document:
    """
    Build a Document from its authored dict form.

    Args:
        d: the document dict
        kind: overrides the dict's own "kind" (default funnel)

    Raises:
        DocumentFormatError: the dict is structurally unusable
    """
    doc_id = _require_id(d, "Document")
    if kind is None:
        try:
            kind = DocumentKind(d.get("kind", DocumentKind.FUNNEL.value))
        except ValueError:
            raise DocumentFormatError(f"Unknown document kind '{d.get('kind')}'")
    return Document(
        id=doc_id,
        kind=kind,
        pages=[page_from_dict(p) for p in _list(d, "pages", "Document")],
        rules=[rule_from_dict(r) for r in _list(d, "rules", "Document")],
        variables=dict(_mapping(d, "variables", "Document")),
        metadata={k: d[k] for k in OPAQUE_KEYS if k in d},
    )


def document_to_json(doc: Document) -> str:
    return json.dumps(document_to_dict(doc), sort_keys=True)


def document_from_json(s: str, kind: Optional[DocumentKind] = None) -> Document:
    return document_from_dict(json.loads(s), kind=kind)


def document_to_yaml(doc: Document) -> str:
    return yaml.safe_dump(document_to_dict(doc))


def document_from_yaml(s: str, kind: Optional[DocumentKind] = None) -> Document:
    return document_from_dict(yaml.safe_load(s), kind=kind)
