"""
branchlogic: branching-logic runtime for forms, funnels and quizzes.

A document is an ordered list of pages holding blocks, plus rules bound to
pages. The runtime walks the pages for one user session:

    - evaluator      conditions over answers, variables and constants
    - rules          jump / hide / variable arithmetic per page
    - validation     per-block input checks
    - templates      {{var:...}} / {{block:...}} interpolation
    - auto_advance   whether a page moves on without a "next" button
    - navigation     the stateful controller tying them together

Persistence, HTTP, analytics and rendering are left to the host, which
plugs in through ValueStore, SubmissionSink and plain callbacks.
"""

from branchlogic.model import Block, BlockType, Document, DocumentKind, Page, Rule
from branchlogic.navigation import NavigationController, NavigationState, PageCompletion, PageInfo
from branchlogic.serialization import DocumentFormatError, document_from_dict, document_to_dict
from branchlogic.settings import RuntimeSettings, load_settings

__version__ = "0.1.0"

__all__ = [
    "Block",
    "BlockType",
    "Document",
    "DocumentKind",
    "DocumentFormatError",
    "NavigationController",
    "NavigationState",
    "Page",
    "PageCompletion",
    "PageInfo",
    "Rule",
    "RuntimeSettings",
    "document_from_dict",
    "document_to_dict",
    "load_settings",
]
