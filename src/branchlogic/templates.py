"""
Template resolution for block properties.

Strings anywhere inside a block's properties may reference earlier
answers and variables:

    "Thanks {{block:name}}, your score is {{var:score}}"

resolve_blocks never raises: an unknown reference renders as ''.
"""

import re
from dataclasses import replace
from typing import Any, Iterable, List, Mapping

from branchlogic.coercion import to_text
from branchlogic.model import Block

TOKEN_RE = re.compile(r"\{\{(var|block):([^}]+)\}\}")


def resolve_template(template: str, values: Mapping[str, Any], variables: Mapping[str, Any]) -> str:
    def substitute(match: "re.Match[str]") -> str:
        source, key = match.group(1), match.group(2).strip()
        value = variables.get(key) if source == "var" else values.get(key)
        if isinstance(value, (list, tuple)):
            return to_text(value, separator=", ")
        return to_text(value)

    return TOKEN_RE.sub(substitute, template)


def resolve_value(value: Any, values: Mapping[str, Any], variables: Mapping[str, Any]) -> Any:
    """Walk strings, lists and dicts; pass anything else through untouched."""
    if isinstance(value, str):
        return resolve_template(value, values, variables)
    if isinstance(value, list):
        return [resolve_value(item, values, variables) for item in value]
    if isinstance(value, dict):
        return {key: resolve_value(item, values, variables) for key, item in value.items()}
    return value


def resolve_blocks(blocks: Iterable[Block], values: Mapping[str, Any], variables: Mapping[str, Any]) -> List[Block]:
    """Return copies of the blocks with their properties interpolated."""
    return [
        replace(block, properties=resolve_value(block.properties, values, variables))
        for block in blocks
    ]
