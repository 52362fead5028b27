"""
Named views of the parish site and the static path <-> view tables.

The forward table (ROUTE_TABLE) is many-to-one and includes the Portuguese
aliases people type or share. The reverse table (CANONICAL_PATHS) has exactly
one outbound path per view and must cover every View member.
"""
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union


class View(str, Enum):
    """Screens of the site. Exactly one is active at a time."""
    HOME = "home"
    HISTORY = "history"
    PRIESTS = "priests"
    PHOTOS = "photos"
    ALBUMS = "albums"
    FULL_GALLERY = "full-gallery"
    TIMELINE = "timeline"
    BLOG = "blog"
    ANNOUNCEMENTS = "announcements"
    CONTACT = "contact"
    PASTORALS = "pastorals"
    CELEBRATIONS = "celebrations"
    CAPELA = "capela"
    CAPELA_DONATE = "capela-donate"
    DONATION_SUCCESS = "donation-success"
    DONATION_ERROR = "donation-error"
    PRIVACY_POLICY = "privacy-policy"
    TERMS_OF_USE = "terms-of-use"


DEFAULT_VIEW = View.HOME


ROUTE_TABLE: Mapping[str, View] = MappingProxyType({
    "/": View.HOME,
    "/home": View.HOME,
    "/inicio": View.HOME,
    "/blog": View.BLOG,
    "/mensagem": View.BLOG,
    "/mensagem-de-fe": View.BLOG,
    "/doacao": View.CAPELA_DONATE,
    "/doacoes": View.CAPELA_DONATE,
    "/capela-doacao": View.CAPELA_DONATE,
    "/donate": View.CAPELA_DONATE,
    "/donation": View.CAPELA_DONATE,
    "/doacao-sucesso": View.DONATION_SUCCESS,
    "/doacao-erro": View.DONATION_ERROR,
    "/historia": View.HISTORY,
    "/history": View.HISTORY,
    "/nossa-historia": View.HISTORY,
    "/contato": View.CONTACT,
    "/contact": View.CONTACT,
    "/fale-conosco": View.CONTACT,
    "/pastorais": View.PASTORALS,
    "/pastorals": View.PASTORALS,
    "/grupos": View.PASTORALS,
    "/celebracoes": View.CELEBRATIONS,
    "/celebrations": View.CELEBRATIONS,
    "/missas": View.CELEBRATIONS,
    "/horarios": View.CELEBRATIONS,
    "/fotos": View.PHOTOS,
    "/photos": View.PHOTOS,
    "/galeria": View.PHOTOS,
    "/gallery": View.PHOTOS,
    "/albuns": View.ALBUMS,
    "/albums": View.ALBUMS,
    "/galeria-completa": View.FULL_GALLERY,
    "/full-gallery": View.FULL_GALLERY,
    "/linha-do-tempo": View.TIMELINE,
    "/timeline": View.TIMELINE,
    "/historia-completa": View.TIMELINE,
    "/capela": View.CAPELA,
    "/chapel": View.CAPELA,
    "/sao-miguel": View.CAPELA,
    "/clero": View.PRIESTS,
    "/priests": View.PRIESTS,
    "/padres": View.PRIESTS,
    "/eventos": View.ANNOUNCEMENTS,
    "/events": View.ANNOUNCEMENTS,
    "/avisos": View.ANNOUNCEMENTS,
    "/announcements": View.ANNOUNCEMENTS,
    "/politica-de-privacidade": View.PRIVACY_POLICY,
    "/privacy-policy": View.PRIVACY_POLICY,
    "/termos-de-uso": View.TERMS_OF_USE,
    "/terms-of-use": View.TERMS_OF_USE,
})


CANONICAL_PATHS: Mapping[View, str] = MappingProxyType({
    View.HOME: "/",
    View.BLOG: "/blog",
    View.CAPELA_DONATE: "/doacao",
    View.DONATION_SUCCESS: "/doacao-sucesso",
    View.DONATION_ERROR: "/doacao-erro",
    View.HISTORY: "/historia",
    View.CONTACT: "/contato",
    View.PASTORALS: "/pastorais",
    View.CELEBRATIONS: "/celebracoes",
    View.PHOTOS: "/fotos",
    View.ALBUMS: "/albuns",
    View.FULL_GALLERY: "/galeria-completa",
    View.TIMELINE: "/linha-do-tempo",
    View.CAPELA: "/capela",
    View.PRIESTS: "/clero",
    View.ANNOUNCEMENTS: "/eventos",
    View.PRIVACY_POLICY: "/politica-de-privacidade",
    View.TERMS_OF_USE: "/termos-de-uso",
})


def _check_tables() -> None:
    missing = [view.value for view in View if view not in CANONICAL_PATHS]
    if missing:
        raise RuntimeError(f"Views without a canonical path: {missing}")
    for view, path in CANONICAL_PATHS.items():
        if ROUTE_TABLE.get(path) is not view:
            raise RuntimeError(f"Canonical path {path!r} does not resolve back to {view.value!r}")


_check_tables()


def resolve_view_from_path(path: Optional[str]) -> View:
    """
    Map a location path to its view.

    Unknown or empty paths resolve to the default view; this never raises.
    """
    if not path:
        return DEFAULT_VIEW
    return ROUTE_TABLE.get(path, DEFAULT_VIEW)


def canonical_path_of(view: View) -> str:
    """Return the single outbound path for a view."""
    return CANONICAL_PATHS[View(view)]


def parse_view(value: Optional[str]) -> Optional[View]:
    """Return the View named by value, or None."""
    try:
        return View(value)
    except ValueError:
        return None


def resolve_navigation_target(target: Union[View, str, None]) -> View:
    """
    Resolve an in-app navigation target.

    Accepts a view name ("blog", "privacy-policy") or a path with or without
    its leading slash ("historia", "/doacao"). Anything else falls back to the
    default view.
    """
    if isinstance(target, View):
        return target
    if not target:
        return DEFAULT_VIEW
    view = parse_view(target)
    if view is not None:
        return view
    path = target if target.startswith("/") else f"/{target}"
    return resolve_view_from_path(path)
