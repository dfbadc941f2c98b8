"""Search view: the open-search, pick-a-result, write-a-note flow.

The view is a small state machine. Transitions are announced to listeners
through :class:`EventDispatcher` so the server (or tests) can react without
the view knowing about them.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from .config import Configuration
from .errors import EmptyResultError, TmdbNotesError, ValidationError, WriteError
from .notes import create_note
from .paths import Vault
from .tmdb import MediaType, SearchResult, TMDbClient

logger = logging.getLogger(__name__)


class ViewState(Enum):
    IDLE = auto()
    SEARCHING = auto()
    RESULTS_SHOWN = auto()
    NO_RESULTS = auto()
    SEARCH_ERROR = auto()
    WRITING = auto()
    WRITE_ERROR = auto()
    CLOSED = auto()


class EventType(Enum):
    SEARCH_SUBMITTED = auto()
    RESULTS_SHOWN = auto()
    NO_RESULTS = auto()
    SEARCH_FAILED = auto()
    NOTE_CREATED = auto()
    WRITE_FAILED = auto()
    CLOSED = auto()


@dataclass(frozen=True)
class Event:
    event_type: EventType
    data: Any = None


Listener = Callable[[Event], None]


class EventDispatcher:
    """Manages event registration and dispatch."""

    def __init__(self) -> None:
        self._listeners: dict[EventType, list[Listener]] = {}

    def add_listener(self, event_type: EventType, listener: Listener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_listener(self, event_type: EventType, listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._listeners.pop(event_type, None)

    def dispatch(self, event: Event) -> None:
        for listener in list(self._listeners.get(event.event_type, [])):
            try:
                listener(event)
            except Exception:
                # A broken listener must not change the outcome of the operation.
                logger.exception("Error in %s listener", event.event_type.name)


SEARCHABLE = frozenset(
    {
        ViewState.IDLE,
        ViewState.SEARCHING,
        ViewState.RESULTS_SHOWN,
        ViewState.NO_RESULTS,
        ViewState.SEARCH_ERROR,
        ViewState.WRITE_ERROR,
    }
)
SELECTABLE = frozenset({ViewState.RESULTS_SHOWN, ViewState.WRITE_ERROR})


class SearchView:
    """One open search dialog.

    Configuration is fetched through *config_provider* at the moment each
    operation runs, so edits made through the settings tools apply to the
    next search or write.
    """

    def __init__(
        self,
        client: TMDbClient,
        vault: Vault,
        config_provider: Callable[[], Configuration],
        dispatcher: EventDispatcher | None = None,
    ) -> None:
        self.client = client
        self.vault = vault
        self.config_provider = config_provider
        self.events = dispatcher or EventDispatcher()
        self.state = ViewState.IDLE
        self.results: list[SearchResult] = []
        self.media_type: MediaType | None = None
        self._latest_ticket = 0
        self._lock = threading.RLock()

    @property
    def closed(self) -> bool:
        return self.state is ViewState.CLOSED

    def rows(self) -> list[dict[str, Any]]:
        return [item.as_row(index) for index, item in enumerate(self.results)]

    def begin_search(self) -> int:
        """Enter ``SEARCHING`` and return the ticket identifying this search.

        Any search still in flight is superseded: its outcome will be dropped.
        """

        with self._lock:
            self._latest_ticket += 1
            self.state = ViewState.SEARCHING
            return self._latest_ticket

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest_ticket

    def submit(self, query: str, media_type: MediaType | str) -> list[dict[str, Any]]:
        """Run a search and show its results.

        An empty query raises :class:`ValidationError` and leaves the view
        where it was. Other failures move it to ``NO_RESULTS`` or
        ``SEARCH_ERROR`` and are re-raised. Submitting while another search
        is pending supersedes it; the older call then returns whatever the
        view is showing and raises nothing.
        """

        if self.state not in SEARCHABLE:
            raise ValidationError(f"Cannot search while the view is {self.state.name.lower()}")
        if not query.strip():
            raise ValidationError("Por favor, insira um nome.")
        kind = MediaType.parse(media_type)

        ticket = self.begin_search()
        self.events.dispatch(Event(EventType.SEARCH_SUBMITTED, {"query": query, "media_type": kind}))
        try:
            results = self.client.search(query, kind, self.config_provider())
        except EmptyResultError as exc:
            if not self.fail_search(ticket, ViewState.NO_RESULTS, exc):
                return self.rows()
            raise
        except TmdbNotesError as exc:
            if not self.fail_search(ticket, ViewState.SEARCH_ERROR, exc):
                return self.rows()
            raise
        self.show_results(ticket, results, kind)
        return self.rows()

    def show_results(self, ticket: int, results: list[SearchResult], media_type: MediaType) -> bool:
        """Display *results* unless a newer search has started since *ticket*."""

        with self._lock:
            if not self.is_current(ticket):
                logger.debug("Discarding stale results for search #%d", ticket)
                return False
            self.results = list(results)
            self.media_type = media_type
            self.state = ViewState.RESULTS_SHOWN
            rows = self.rows()
        self.events.dispatch(Event(EventType.RESULTS_SHOWN, rows))
        return True

    def fail_search(self, ticket: int, state: ViewState, error: TmdbNotesError) -> bool:
        with self._lock:
            if not self.is_current(ticket):
                logger.debug("Discarding stale failure for search #%d", ticket)
                return False
            self.results = []
            self.media_type = None
            self.state = state
        event = EventType.NO_RESULTS if state is ViewState.NO_RESULTS else EventType.SEARCH_FAILED
        self.events.dispatch(Event(event, str(error)))
        return True

    def select(self, index: int) -> str:
        """Write the note for row *index* and close the view.

        Returns the vault-relative path of the created note.
        """

        with self._lock:
            if self.state not in SELECTABLE or self.media_type is None:
                raise ValidationError("Nenhum resultado para selecionar.")
            if not 0 <= index < len(self.results):
                raise ValidationError(f"Resultado inválido: {index}")
            item = self.results[index]
            media_type = self.media_type
            self.state = ViewState.WRITING
        try:
            relative, _ = create_note(item, media_type, self.config_provider(), self.vault)
        except WriteError as exc:
            self.state = ViewState.WRITE_ERROR
            self.events.dispatch(Event(EventType.WRITE_FAILED, str(exc)))
            raise
        self.events.dispatch(Event(EventType.NOTE_CREATED, relative))
        self.close()
        return relative

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            # Outcomes of searches still in flight must not reopen the view.
            self._latest_ticket += 1
            self.results = []
            self.media_type = None
            self.state = ViewState.CLOSED
        self.events.dispatch(Event(EventType.CLOSED))
