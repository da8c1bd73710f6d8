"""Source descriptors for the INPE hotspot feeds and the proxy allow-list."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

# 48h fire-front feeds, one per state.
INPE_48H_URL = (
    "https://dataserver-coids.inpe.br/queimadas/queimadas/focos/kml/"
    "estados-48h/focos_frentes_{state}.kml"
)
DEFAULT_STATES = ("MT", "MS", "BA", "MA")
DEFAULT_ALLOWED_PREFIXES = ("https://dataserver-coids.inpe.br/",)


@dataclass(frozen=True)
class SourceDescriptor:
    """A remote KML feed.

    Attributes:
        source_id: Short stable identifier (the feed file stem).
        url: Fully-qualified remote address.
    """

    source_id: str
    url: str


def source_id_for(url: str) -> str:
    """Derive an identifier from the last path segment, without extension."""
    path = urlsplit(url).path
    stem = path.rstrip("/").rsplit("/", 1)[-1]
    if "." in stem:
        stem = stem.rsplit(".", 1)[0]
    return stem or url


def build_sources(urls: list[str] | tuple[str, ...]) -> tuple[SourceDescriptor, ...]:
    """Build the immutable source list. Duplicate ids get a numeric suffix."""
    seen: dict[str, int] = {}
    sources = []
    for url in urls:
        base = source_id_for(url)
        count = seen.get(base, 0)
        seen[base] = count + 1
        sid = base if count == 0 else f"{base}-{count + 1}"
        sources.append(SourceDescriptor(source_id=sid, url=url))
    return tuple(sources)


def default_source_urls() -> list[str]:
    return [INPE_48H_URL.format(state=state) for state in DEFAULT_STATES]


def is_allowed_address(url: str | None, prefixes: tuple[str, ...] | list[str]) -> bool:
    """True when url is a string starting with one of the allow-listed prefixes."""
    if not url or not isinstance(url, str):
        return False
    return any(url.startswith(prefix) for prefix in prefixes)
