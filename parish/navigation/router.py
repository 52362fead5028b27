"""
View router: keeps the current view in sync with the location bar.

The browser history is modelled by MemoryHistory, which records entries and
dispatches popstate/hashchange to subscribers. ViewRouter owns the RouterState
for one page session and acquires its history subscriptions on mount and
releases them on unmount.
"""
from contextlib import contextmanager
from dataclasses import dataclass, replace as dc_replace
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, unquote_plus, urlsplit
import logging

from parish.carousel.actions import NavigateInternal, OpenExternal, SlideAction
from parish.navigation.views import (
    DEFAULT_VIEW,
    View,
    canonical_path_of,
    resolve_navigation_target,
    resolve_view_from_path,
)

logger = logging.getLogger(__name__)

ADMIN_HASHES = frozenset({"#admin", "#painel", "#administracao"})

DONATION_PARAM = "donation"
SESSION_PARAM = "session_id"
DONATION_SUCCESS = "success"
DONATION_FAILURES = frozenset({"cancelled", "error"})

Listener = Callable[[], None]
Teardown = Callable[[], None]


@dataclass(frozen=True)
class Location:
    """
    Path, query and hash of the current document URL.

    The query is kept as its raw key[=value] segments so that dropping one
    parameter leaves the others exactly as they were written.
    """
    path: str = "/"
    query: Tuple[str, ...] = ()
    hash: str = ""

    @classmethod
    def parse(cls, url: Optional[str]) -> "Location":
        parts = urlsplit(url or "/")
        return cls(
            path=parts.path or "/",
            query=tuple(segment for segment in parts.query.split("&") if segment),
            hash=f"#{parts.fragment}" if parts.fragment else "",
        )

    @property
    def search(self) -> str:
        return f"?{'&'.join(self.query)}" if self.query else ""

    @property
    def href(self) -> str:
        return f"{self.path}{self.search}{self.hash}"

    def params(self) -> List[Tuple[str, str]]:
        """Decoded (key, value) pairs; a bare key has an empty value."""
        return [pair for segment in self.query for pair in parse_qsl(segment, keep_blank_values=True)]

    def get(self, name: str) -> Optional[str]:
        for key, value in self.params():
            if key == name:
                return value
        return None

    def without_params(self, *names: str) -> "Location":
        kept = tuple(
            segment for segment in self.query
            if unquote_plus(segment.split("=", 1)[0]) not in names
        )
        return dc_replace(self, query=kept)

    def without_hash(self) -> "Location":
        return dc_replace(self, hash="")


class HistoryEvent(str, Enum):
    POPSTATE = "popstate"
    HASHCHANGE = "hashchange"


class MemoryHistory:
    """
    In-memory session history with browser semantics.

    push/replace never dispatch events (like pushState/replaceState);
    back/forward dispatch popstate, plus hashchange when only the hash moved;
    set_hash behaves like the user editing the fragment.
    """

    def __init__(self, url: str = "/"):
        self._entries: List[Location] = [Location.parse(url)]
        self._index = 0
        self._listeners: Dict[HistoryEvent, List[Listener]] = {event: [] for event in HistoryEvent}

    @property
    def location(self) -> Location:
        return self._entries[self._index]

    @property
    def entries(self) -> List[Location]:
        return list(self._entries)

    @property
    def index(self) -> int:
        return self._index

    def push(self, url: Union[str, Location]) -> None:
        location = url if isinstance(url, Location) else Location.parse(url)
        del self._entries[self._index + 1:]
        self._entries.append(location)
        self._index += 1

    def replace(self, url: Union[str, Location]) -> None:
        location = url if isinstance(url, Location) else Location.parse(url)
        self._entries[self._index] = location

    def back(self) -> None:
        self._go(-1)

    def forward(self) -> None:
        self._go(1)

    def set_hash(self, hash_value: str) -> None:
        if hash_value and not hash_value.startswith("#"):
            hash_value = f"#{hash_value}"
        self.push(dc_replace(self.location, hash=hash_value))
        self._dispatch(HistoryEvent.HASHCHANGE)

    def subscribe(self, event: HistoryEvent, listener: Listener) -> Teardown:
        listeners = self._listeners[HistoryEvent(event)]
        listeners.append(listener)

        def teardown() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return teardown

    def listener_count(self, event: HistoryEvent) -> int:
        return len(self._listeners[HistoryEvent(event)])

    def _go(self, delta: int) -> None:
        target = self._index + delta
        if target < 0 or target >= len(self._entries):
            return
        previous = self.location
        self._index = target
        self._dispatch(HistoryEvent.POPSTATE)
        current = self.location
        if previous.path == current.path and previous.query == current.query and previous.hash != current.hash:
            self._dispatch(HistoryEvent.HASHCHANGE)

    def _dispatch(self, event: HistoryEvent) -> None:
        for listener in list(self._listeners[event]):
            listener()


class AdminPrompt(str, Enum):
    NONE = "none"
    PANEL = "panel"
    LOGIN = "login"


@dataclass
class RouterState:
    current_view: View = DEFAULT_VIEW
    donation_session_id: Optional[str] = None
    navigation_hint: Optional[str] = None
    show_admin: bool = False
    show_login: bool = False
    authenticated: bool = False

    @property
    def admin_prompt(self) -> AdminPrompt:
        if self.show_admin:
            return AdminPrompt.PANEL
        if self.show_login:
            return AdminPrompt.LOGIN
        return AdminPrompt.NONE


class ViewRouter:
    """
    Root navigation controller for one page session.

    Usage:
        router = ViewRouter(MemoryHistory("/doacao"))
        with router.mounted():
            router.push_view(View.BLOG)
    """

    def __init__(self, history: MemoryHistory, authenticated: bool = False):
        self.history = history
        self.state = RouterState(authenticated=authenticated)
        self._teardowns: List[Teardown] = []

    @property
    def is_mounted(self) -> bool:
        return bool(self._teardowns)

    @property
    def current_view(self) -> View:
        return self.state.current_view

    def mount(self) -> None:
        if self.is_mounted:
            return
        self.state.current_view = resolve_view_from_path(self.history.location.path)
        self._check_admin_hash()
        self._check_donation_status()
        self._teardowns = [
            self.history.subscribe(HistoryEvent.POPSTATE, self._on_popstate),
            self.history.subscribe(HistoryEvent.HASHCHANGE, self._check_admin_hash),
        ]

    def unmount(self) -> None:
        while self._teardowns:
            self._teardowns.pop()()

    @contextmanager
    def mounted(self) -> Iterator["ViewRouter"]:
        self.mount()
        try:
            yield self
        finally:
            self.unmount()

    def push_view(self, view: Union[View, str]) -> None:
        """Show view and add its canonical path as a new history entry."""
        view = View(view)
        self.state.current_view = view
        self.state.navigation_hint = None
        self.history.push(canonical_path_of(view))

    def navigate(self, target: Union[View, str], hint: Optional[str] = None) -> View:
        """Navigate to a view name or path, carrying an optional content hint."""
        view = resolve_navigation_target(target)
        self.push_view(view)
        self.state.navigation_hint = hint
        return view

    def follow(self, action: SlideAction) -> Optional[str]:
        """
        Apply a slide action.

        Internal navigation is performed here; for external links the URL is
        returned so the caller can open it in a new context.
        """
        if isinstance(action, NavigateInternal):
            self.navigate(action.target, hint=action.hint)
            return None
        if isinstance(action, OpenExternal):
            return action.url
        return None

    def set_authenticated(self, authenticated: bool) -> None:
        self.state.authenticated = authenticated
        if not authenticated:
            self.state.show_admin = False
        self._check_admin_hash()

    def request_admin(self) -> AdminPrompt:
        if self.state.authenticated:
            self.state.show_admin = True
        else:
            self.state.show_login = True
        return self.state.admin_prompt

    def login_succeeded(self) -> None:
        self.state.show_login = False
        self.state.authenticated = True
        self.state.show_admin = True

    def close_admin(self) -> None:
        self.state.show_admin = False

    def _on_popstate(self) -> None:
        self.state.current_view = resolve_view_from_path(self.history.location.path)
        self._check_donation_status()

    def _check_admin_hash(self) -> None:
        location = self.history.location
        if location.hash not in ADMIN_HASHES:
            return
        self.request_admin()
        self.history.replace(location.without_hash())
        logger.debug(f"Consumed admin hash {location.hash}, prompt={self.state.admin_prompt.value}")

    def _check_donation_status(self) -> None:
        location = self.history.location
        status = location.get(DONATION_PARAM)
        session_id = location.get(SESSION_PARAM)

        if status == DONATION_SUCCESS and session_id:
            self.state.donation_session_id = session_id
            self.state.current_view = View.DONATION_SUCCESS
        elif status in DONATION_FAILURES:
            self.state.current_view = View.DONATION_ERROR
        else:
            return

        self.history.replace(location.without_params(DONATION_PARAM, SESSION_PARAM))
        logger.info(f"Donation return '{status}' routed to {self.state.current_view.value}")


@dataclass(frozen=True)
class ResolvedLocation:
    state: RouterState
    url: str
    canonical_path: str


def resolve_location(url: Optional[str], authenticated: bool = False) -> ResolvedLocation:
    """
    Resolve what a fresh page load of url would show.

    Returns the router state after mount and the cleaned URL the client should
    replace its location with.
    """
    history = MemoryHistory(url or "/")
    router = ViewRouter(history, authenticated=authenticated)
    with router.mounted():
        state = dc_replace(router.state)
        cleaned = history.location.href
    return ResolvedLocation(
        state=state,
        url=cleaned,
        canonical_path=canonical_path_of(state.current_view),
    )
