"""
Navigation routes.
Resolve a location (path, hash, query) to the view a page load shows.
"""
from fastapi import APIRouter, Depends
import logging

from parish.navigation.router import resolve_location
from parish.navigation.views import CANONICAL_PATHS, DEFAULT_VIEW, ROUTE_TABLE
from parish.schemas import NavigationResponse, RouteEntry, RouteTableResponse
from parish.utils.jwt_auth import has_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/navigation")


@router.get("/resolve", response_model=NavigationResponse)
async def resolve_navigation(
    url: str = "/",
    authenticated: bool = Depends(has_session)
):
    """
    Resolve the initial view for a page load.

    The client sends its current location (e.g. "/?donation=success&session_id=abc#admin")
    and replaces its location bar with the returned url, from which consumed
    admin hashes and donation parameters have been stripped.

    Args:
        url: Location path with optional query string and hash
        authenticated: Whether the request carries an admin session (injected)
    """
    resolved = resolve_location(url, authenticated=authenticated)
    state = resolved.state

    logger.debug(f"Resolved {url!r} to {state.current_view.value} (cleaned: {resolved.url!r})")

    return NavigationResponse(
        view=state.current_view.value,
        canonical_path=resolved.canonical_path,
        url=resolved.url,
        donation_session_id=state.donation_session_id,
        admin_prompt=state.admin_prompt.value,
        authenticated=state.authenticated,
    )


@router.get("/routes", response_model=RouteTableResponse)
async def get_route_table():
    """Inbound path aliases and the canonical path of every view."""
    return RouteTableResponse(
        routes=[RouteEntry(path=path, view=view.value) for path, view in ROUTE_TABLE.items()],
        canonical_paths={view.value: path for view, path in CANONICAL_PATHS.items()},
        default_view=DEFAULT_VIEW.value,
    )
