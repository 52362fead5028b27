"""
Call-to-action resolution for homepage slides.

A slide's content_type, link_url and related_content_id are folded into a
single SlideTarget, and the target into the SlideAction the site performs
when the button is pressed. Both steps are pure functions of the slide fields.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, List, Optional, Tuple, Union
from urllib.parse import urlsplit

from parish.navigation.views import View

DEFAULT_LINK_TEXT = "Saiba Mais"


class SlideContentType(str, Enum):
    CUSTOM = "custom"
    INTERNAL_PAGE = "internal_page"
    BLOG_POST = "blog_post"
    ANNOUNCEMENT = "announcement"
    EVENT = "event"  # reference to a celebration


LINK_CONTENT_TYPES = frozenset({SlideContentType.CUSTOM, SlideContentType.INTERNAL_PAGE})

REFERENCE_VIEWS = {
    SlideContentType.BLOG_POST: View.BLOG,
    SlideContentType.ANNOUNCEMENT: View.ANNOUNCEMENTS,
    SlideContentType.EVENT: View.CELEBRATIONS,
}

# Pages offered by the admin editor for internal_page slides
INTERNAL_PAGE_OPTIONS: List[Tuple[str, str]] = [
    ("historia", "História"),
    ("capela", "Capela São Miguel"),
    ("pastorals", "Pastorais"),
    ("celebrations", "Celebrações"),
    ("blog", "Blog"),
    ("photos", "Galeria de Fotos"),
    ("albums", "Álbuns de Fotos"),
    ("timeline", "Linha do Tempo"),
    ("announcements", "Eventos e Avisos"),
    ("priests", "Nosso Clero"),
    ("contact", "Contato"),
    ("privacy-policy", "Política de Privacidade"),
    ("terms-of-use", "Termos de Uso"),
]


# Targets

@dataclass(frozen=True)
class CustomExternal:
    url: str


@dataclass(frozen=True)
class CustomInternal:
    path: str


@dataclass(frozen=True)
class InternalPage:
    path: str


@dataclass(frozen=True)
class ContentReference:
    content_type: SlideContentType
    content_id: str

    @property
    def view(self) -> View:
        return REFERENCE_VIEWS[self.content_type]


SlideTarget = Union[CustomExternal, CustomInternal, InternalPage, ContentReference]


# Actions

@dataclass(frozen=True)
class NoAction:
    kind: ClassVar[str] = "none"


@dataclass(frozen=True)
class OpenExternal:
    url: str
    kind: ClassVar[str] = "open_external"


@dataclass(frozen=True)
class NavigateInternal:
    target: str
    hint: Optional[str] = None
    kind: ClassVar[str] = "navigate"


SlideAction = Union[NoAction, OpenExternal, NavigateInternal]

NO_ACTION = NoAction()


def parse_content_type(value: Any) -> Optional[SlideContentType]:
    try:
        return SlideContentType(value)
    except ValueError:
        return None


def is_external_link(url: Optional[str]) -> bool:
    """True for absolute http(s) URLs, which open outside the site."""
    if not url:
        return False
    parts = urlsplit(url.strip())
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _strip_leading_slash(link: str) -> str:
    return link[1:] if link.startswith("/") else link


def slide_target(slide: Any) -> Optional[SlideTarget]:
    """
    Fold a slide's link fields into its target, or None when the slide has
    nothing to link to.
    """
    content_type = parse_content_type(getattr(slide, "content_type", None))
    link = (getattr(slide, "link_url", None) or "").strip()
    reference = getattr(slide, "related_content_id", None) or None

    if content_type in LINK_CONTENT_TYPES and link:
        if is_external_link(link):
            return CustomExternal(link)
        if content_type is SlideContentType.INTERNAL_PAGE:
            return InternalPage(_strip_leading_slash(link))
        return CustomInternal(_strip_leading_slash(link))

    if reference and content_type in REFERENCE_VIEWS:
        return ContentReference(content_type, str(reference))

    return None


def action_for_target(target: Optional[SlideTarget]) -> SlideAction:
    if target is None:
        return NO_ACTION
    if isinstance(target, CustomExternal):
        return OpenExternal(target.url)
    if isinstance(target, (CustomInternal, InternalPage)):
        return NavigateInternal(target.path)
    if isinstance(target, ContentReference):
        return NavigateInternal(target.view.value, hint=target.content_id)
    raise TypeError(f"Unhandled slide target: {target!r}")


def resolve_action(slide: Any) -> SlideAction:
    """Return what pressing the slide's button does. Performs no I/O."""
    return action_for_target(slide_target(slide))


def call_to_action_label(slide: Any) -> Optional[str]:
    """Button label, or None when the button is not rendered."""
    if isinstance(resolve_action(slide), NoAction):
        return None
    return getattr(slide, "link_text", None) or DEFAULT_LINK_TEXT


def validate_slide_target(
    content_type: Any,
    link_url: Optional[str],
    related_content_id: Optional[str],
) -> SlideContentType:
    """
    Reject field combinations a slide cannot hold.

    Returns the parsed content type; raises ValueError with a user-facing
    message otherwise.
    """
    parsed = parse_content_type(content_type)
    if parsed is None:
        raise ValueError(f"Tipo de conteúdo inválido: {content_type}")
    if parsed in LINK_CONTENT_TYPES and related_content_id:
        raise ValueError("Conteúdo relacionado só pode ser usado com blog, avisos ou celebrações")
    if parsed is SlideContentType.INTERNAL_PAGE and not (link_url or "").strip():
        raise ValueError("Selecione uma página interna")
    return parsed
