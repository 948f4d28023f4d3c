"""
Page navigation state machine.

NavigationController drives one user session through a Document:

    ACTIVE(i) --next()--> TRANSITIONING --> ACTIVE(j)
                                        --> REDIRECTING   (page had a redirect_url)
                                        --> COMPLETED     (ran past the last page)

A transition runs, in order:
    1. validation of the visible blocks (errors -> back to ACTIVE, nothing changes)
    2. the current page's rule (jump target, hidden blocks, variables)
    3. on_page_complete + submission of the page's answers
    4. either termination (redirect / end of sequence) or the move to the next page

next() called while a transition is in flight, or after the session has
ended, is ignored. REDIRECTING and COMPLETED are terminal: on_complete
fires exactly once per session.

Data-integrity defects in the document (jump to a missing page, rule for
a missing page, references to unknown blocks or variables) never raise;
they fall back to the default "next page" behavior.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, FrozenSet, List, Mapping, Optional

from branchlogic.auto_advance import should_auto_advance
from branchlogic.model import Block, Document, Page, Values, Variables
from branchlogic.rules import evaluate_rule
from branchlogic.settings import RuntimeSettings
from branchlogic.storage import DebouncedValueCache, ValueStore, values_storage_key
from branchlogic.submissions import Answer, Submission, SubmissionQueue, SubmissionSink
from branchlogic.templates import resolve_blocks
from branchlogic.validation import ErrorMap, validate_blocks

logger = logging.getLogger(__name__)


class NavigationState(Enum):
    ACTIVE = "active"
    TRANSITIONING = "transitioning"
    REDIRECTING = "redirecting"
    COMPLETED = "completed"


TERMINAL_STATES = frozenset({NavigationState.REDIRECTING, NavigationState.COMPLETED})


@dataclass(frozen=True)
class PageInfo:
    id: str
    index: int
    name: str


@dataclass(frozen=True)
class PageCompletion:
    """A page being left, with only the answers that belong to its blocks."""

    id: str
    index: int
    name: str
    values: Values = field(default_factory=dict)


@dataclass(frozen=True)
class HistoryEntry:
    page_index: int
    variables: Variables
    hidden_block_ids: FrozenSet[str]


class NavigationController:
    """
    Stateful runtime for one session over one Document.

    Args:
        document: the document snapshot to run
        values: initial answers; these win over values found in the cache
        session_id: identifies the session to the submission sink
        settings: RuntimeSettings (defaults if omitted)
        value_store: local cache for answers (optional)
        submission_sink: receives each completed page's answers (optional)
        on_page_change: called with PageInfo whenever the active page changes
        on_page_complete: called with PageCompletion before leaving a page
        on_complete: called with (values, redirect_url) when the session ends
        redirect: called with the URL to navigate away on a redirect page
        sleep: delay function used for the redirect delay
    """

    def __init__(
        self,
        document: Document,
        values: Optional[Mapping[str, Any]] = None,
        session_id: Optional[str] = None,
        settings: Optional[RuntimeSettings] = None,
        value_store: Optional[ValueStore] = None,
        submission_sink: Optional[SubmissionSink] = None,
        on_page_change: Optional[Callable[[PageInfo], None]] = None,
        on_page_complete: Optional[Callable[[PageCompletion], None]] = None,
        on_complete: Optional[Callable[[Values, Optional[str]], None]] = None,
        redirect: Optional[Callable[[str], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.document = document
        self.session_id = session_id or uuid.uuid4().hex
        self.settings = settings or RuntimeSettings()

        self.on_page_change = on_page_change
        self.on_page_complete = on_page_complete
        self.on_complete = on_complete
        self.redirect = redirect
        self._sleep = sleep

        self.cache = DebouncedValueCache(
            value_store if self.settings.persist_values else None,
            values_storage_key(document.kind, document.id),
            wait=self.settings.persist_debounce,
        )
        self.submissions = SubmissionQueue(submission_sink)

        self._state = NavigationState.ACTIVE
        self._index = 0
        self._values: Values = dict(self.cache.load() or {})
        self._values.update(values or {})
        self._variables: Variables = dict(document.variables)
        self._hidden: FrozenSet[str] = frozenset()
        self._loading: dict = {}
        self._history: List[HistoryEntry] = []
        self.errors: ErrorMap = {}
        self.redirect_url: Optional[str] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_page(self) -> Optional[Page]:
        if 0 <= self._index < len(self.document.pages):
            return self.document.pages[self._index]
        return None

    @property
    def values(self) -> Values:
        return dict(self._values)

    @property
    def variables(self) -> Variables:
        return dict(self._variables)

    @property
    def hidden_block_ids(self) -> FrozenSet[str]:
        return self._hidden

    @property
    def visible_blocks(self) -> List[Block]:
        page = self.current_page
        if page is None:
            return []
        return [block for block in page.blocks if block.id not in self._hidden]

    @property
    def resolved_blocks(self) -> List[Block]:
        """Visible blocks with {{var:...}} / {{block:...}} tokens filled in."""
        return resolve_blocks(self.visible_blocks, self._values, self._variables)

    @property
    def show_next_button(self) -> bool:
        return not should_auto_advance(self.visible_blocks)

    @property
    def is_finished(self) -> bool:
        return self._state in TERMINAL_STATES

    def page_info(self) -> Optional[PageInfo]:
        page = self.current_page
        if page is None:
            return None
        return PageInfo(id=page.id, index=self._index, name=page.name)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Announce the first page to on_page_change."""
        info = self.page_info()
        if info is not None and self.on_page_change:
            self.on_page_change(info)

    def set_value(self, block_id: str, value: Any) -> bool:
        """
        Record an answer, persist it, and auto-advance if the page allows.

        Returns:
            True if this change moved the session off the current page
        """
        if self._state is not NavigationState.ACTIVE:
            return False
        self._values[block_id] = value
        self.cache.schedule(self._values)
        if should_auto_advance(self.visible_blocks):
            return self.next()
        return False

    def set_loading(self, block_id: str, busy: bool) -> bool:
        """
        Track a block's busy state (e.g. a loader animation).

        When the page auto-advances and no block is busy any more, move on.
        """
        self._loading[block_id] = busy
        if self._state is not NavigationState.ACTIVE:
            return False
        if should_auto_advance(self.visible_blocks) and not any(self._loading.values()):
            return self.next()
        return False

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def next(self, values: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Try to leave the current page.

        Args:
            values: extra answers to merge in before validating

        Returns:
            True if the page was left (to another page or to a terminal state),
            False if the call was ignored or validation failed
        """
        page = self.current_page
        if self._state is not NavigationState.ACTIVE or page is None:
            logger.debug("Ignoring next() in state %s", self._state.value)
            return False

        self._state = NavigationState.TRANSITIONING
        try:
            return self._transition(page, values)
        finally:
            if self._state is NavigationState.TRANSITIONING:
                self._state = NavigationState.ACTIVE

    def _transition(self, page: Page, values: Optional[Mapping[str, Any]]) -> bool:
        if values:
            self._values.update(values)
            self.cache.schedule(self._values)

        errors = validate_blocks(self.visible_blocks, self._values)
        self.errors = errors or {}
        if errors:
            logger.debug("Page %s failed validation: %s", page.id, errors)
            return False

        next_index = self._index + 1
        hidden: FrozenSet[str] = frozenset()
        variables = self._variables

        rule = self.document.rule_for(page.id)
        if rule is not None:
            result = evaluate_rule(rule, self._values, self._variables)
            hidden = result.hidden_block_ids
            variables = result.variables
            if result.next_page_id:
                jump_index = self.document.page_index(result.next_page_id)
                if jump_index is None:
                    logger.debug("Jump target %s not found, continuing to next page", result.next_page_id)
                else:
                    next_index = jump_index

        self._complete_page(page)

        self._history.append(HistoryEntry(self._index, dict(self._variables), self._hidden))
        self._hidden = hidden
        self._variables = variables

        if page.properties.redirect_url:
            self._state = NavigationState.REDIRECTING
            self._finish(page.properties.redirect_url)
            return True

        self._index = next_index
        if next_index >= len(self.document.pages):
            self._state = NavigationState.COMPLETED
            self._finish(None)
            return True

        self._state = NavigationState.ACTIVE
        logger.debug("Moved from page %s to index %d", page.id, next_index)
        if self.on_page_change:
            self.on_page_change(self.page_info())
        return True

    def _complete_page(self, page: Page) -> None:
        page_values = {block.id: self._values[block.id] for block in page.blocks if block.id in self._values}

        if self.on_page_complete:
            self.on_page_complete(PageCompletion(id=page.id, index=self._index, name=page.name, values=page_values))

        if page_values:
            self.submissions.push(Submission(
                document_id=self.document.id,
                session_id=self.session_id,
                answers=[Answer(block_id=k, value=v) for k, v in page_values.items()],
            ))

    def _finish(self, redirect_url: Optional[str]) -> None:
        self.redirect_url = redirect_url
        started = time.monotonic()
        logger.info("Session %s %s", self.session_id, "redirecting" if redirect_url else "completed")

        self.submissions.close()
        if self.on_complete:
            self.on_complete(dict(self._values), redirect_url)

        if self.settings.clear_cache_on_complete:
            self.cache.clear()
        else:
            self.cache.flush()

        if redirect_url:
            remaining = self.settings.redirect_delay - (time.monotonic() - started)
            if remaining > 0:
                self._sleep(remaining)
            if self.redirect:
                self.redirect(redirect_url)

    def back(self) -> bool:
        """
        Return to the previously shown page.

        Restores the page index, variables and hidden blocks recorded
        when that page was left. Answers are kept.
        """
        if self._state is not NavigationState.ACTIVE or not self._history:
            return False
        entry = self._history.pop()
        self._index = entry.page_index
        self._variables = dict(entry.variables)
        self._hidden = entry.hidden_block_ids
        self.errors = {}
        if self.on_page_change:
            self.on_page_change(self.page_info())
        return True

    def close(self) -> None:
        """Flush pending cache writes and submissions."""
        if not self.is_finished:
            self.cache.flush()
        self.submissions.close()
