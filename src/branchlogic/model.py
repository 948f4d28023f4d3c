"""
Core Document Model Objects

Defines the data structures of an interactive branching document
(form, funnel or quiz):
    - Blocks (questions and content units)
    - Pages (ordered steps holding blocks)
    - Actions (one conditional effect)
    - Rules (the action list bound to a page)
    - Documents (root container)

ARCHITECTURAL RULE:
    These objects:
        - Hold structure, not behavior
        - Are handed to the runtime as a snapshot per session
        - Are fully serializable (see branchlogic.serialization)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .conditions import Always, Condition

VariableValue = Union[int, float, str]
Variables = Dict[str, VariableValue]
Values = Dict[str, Any]


class DocumentKind(Enum):
    """
    The three entity kinds that share one runtime.

    The kind only changes naming at the edges (cache key prefix), never
    the interpretation of pages and rules.
    """

    FORM = "form"
    FUNNEL = "funnel"
    QUIZ = "quiz"


class BlockType(Enum):
    """Closed set of block variants."""

    TEXT_INPUT = "text_input"
    MULTIPLE_CHOICE = "multiple_choice"
    PICTURE_CHOICE = "picture_choice"
    DROPDOWN = "dropdown"
    SLIDER = "slider"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    GAUGE = "gauge"
    STAT_CARDS = "stat_cards"
    LIST = "list"
    IMAGE = "image"
    LOADER = "loader"
    PROGRESS = "progress"
    SPACER = "spacer"
    HTML = "html"


@dataclass
class Block:
    """
    A single question or content unit within a page.

    Properties:
        id:
            Unique across the whole document (not just the page)

        type:
            BlockType variant

        properties:
            Variant-specific settings, e.g. {"name": ..., "multiple": False,
            "options": [...]}. Strings may contain {{var:NAME}} and
            {{block:ID}} template tokens.

        validations:
            Ordered map of validation kind -> parameter, for input-capable
            variants. A parameter of False/None disables that check.
            None for content-only blocks.
    """

    id: str
    type: BlockType
    properties: Dict[str, Any] = field(default_factory=dict)
    validations: Optional[Dict[str, Any]] = None


@dataclass
class PageProperties:
    button_text: str = "Next"
    redirect_url: Optional[str] = None


@dataclass
class Page:
    """
    An ordered step of the wizard.

    Page order in Document.pages defines the default "next" transition.
    A page with a redirect_url ends the session when left.
    """

    id: str
    name: str = ""
    blocks: List[Block] = field(default_factory=list)
    properties: PageProperties = field(default_factory=PageProperties)


class ActionType(Enum):
    """Closed set of rule effects."""

    JUMP = "jump"
    HIDE = "hide"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    SET = "set"


ARITHMETIC_ACTIONS = frozenset({
    ActionType.ADD,
    ActionType.SUBTRACT,
    ActionType.MULTIPLY,
    ActionType.DIVIDE,
    ActionType.SET,
})


@dataclass(frozen=True)
class Reference:
    """
    A typed pointer used by action details.

    Examples:
        Reference("page", "page2")        jump destination
        Reference("block", "q5")          hide target
        Reference("variable", "score")    arithmetic target / operand
        Reference("constant", 5)          arithmetic operand
    """

    type: str
    value: Any


@dataclass
class ActionDetails:
    to: Optional[Reference] = None
    target: Optional[Reference] = None
    value: Optional[Reference] = None


@dataclass
class Action:
    """
    One conditional effect inside a rule.

    type keeps the raw string when a document names an action this
    runtime does not know; such actions are skipped.
    """

    type: Union[ActionType, str]
    condition: Condition = field(default_factory=Always)
    details: ActionDetails = field(default_factory=ActionDetails)


@dataclass
class Rule:
    """
    The logic program bound to a page, run when the user leaves it.

    INVARIANTS:
        - At most one rule per page
        - page_id should name a page in the document; a dangling
          page_id is tolerated (the rule is simply never run)
    """

    page_id: str
    actions: List[Action] = field(default_factory=list)


@dataclass
class Document:
    """
    Root container: the immutable snapshot a session runs against.

    Properties:
        id:
            Document identifier (namespaces the local value cache)

        kind:
            DocumentKind

        pages:
            Ordered page sequence

        rules:
            Page-bound rules

        variables:
            Default variable values, copied into each new session

        metadata:
            Opaque page-level data the runtime ignores (theme, settings)
    """

    id: str
    kind: DocumentKind = DocumentKind.FUNNEL
    pages: List[Page] = field(default_factory=list)
    rules: List[Rule] = field(default_factory=list)
    variables: Variables = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_page(self, page_id: str) -> Optional[Page]:
        """
        Retrieve a page by ID.

        Returns:
            Page object or None if not found
        """
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def page_index(self, page_id: str) -> Optional[int]:
        """Position of a page in the sequence, or None if not found."""
        for index, page in enumerate(self.pages):
            if page.id == page_id:
                return index
        return None

    def rule_for(self, page_id: str) -> Optional[Rule]:
        """The rule bound to a page, or None."""
        for rule in self.rules:
            if rule.page_id == page_id:
                return rule
        return None

    def get_block(self, block_id: str) -> Optional[Block]:
        for page in self.pages:
            for block in page.blocks:
                if block.id == block_id:
                    return block
        return None
