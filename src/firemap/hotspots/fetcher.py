"""Fan-out fetch of every hotspot source through the KML proxy.

Each source settles independently into SourceOk (annotated records, maybe
none) or SourceErr (network, proxy or parse failure). fetch_all collects
every result before returning; one failed source never aborts the others.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Union

import httpx
from loguru import logger

from firemap.hotspots.annotator import HotspotRecord, annotate
from firemap.hotspots.filter import filter_points
from firemap.hotspots.sources import SourceDescriptor, is_allowed_address
from firemap.layers.parsers.kml import ParseError, parse_kml


@dataclass(frozen=True)
class SourceOk:
    """A source that was fetched and parsed; records may be empty."""

    source_id: str
    records: tuple[HotspotRecord, ...]


@dataclass(frozen=True)
class SourceErr:
    """A source that failed this cycle."""

    source_id: str
    reason: str


SourceResult = Union[SourceOk, SourceErr]


class SourceNotAllowed(Exception):
    """Raised before any request is built for an address outside the allow-list."""


def process_document(document: str, source_id: str) -> SourceResult:
    """Parse -> keep points -> annotate one fetched KML document."""
    parsed = parse_kml(document, source_id=source_id)
    if isinstance(parsed, ParseError):
        return SourceErr(source_id=source_id, reason=parsed.message)

    points = filter_points(parsed)
    if not points.features:
        logger.info(f"No hotspot points in {source_id}")
    records = tuple(annotate(f, source_id=source_id) for f in points.features)
    return SourceOk(source_id=source_id, records=records)


class HotspotFetcher:
    """Fetches source documents via the proxy endpoint.

    Args:
        client: Shared httpx.AsyncClient. For in-process proxying it carries
            an ASGITransport and a base_url.
        proxy_url: Proxy endpoint; the source address goes in its `url`
            query parameter.
        allowed_prefixes: Address prefixes the proxy accepts.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        proxy_url: str,
        allowed_prefixes: tuple[str, ...] | list[str],
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._proxy_url = proxy_url
        self._allowed_prefixes = tuple(allowed_prefixes)
        self._timeout = timeout

    async def fetch_document(self, source: SourceDescriptor) -> str:
        """Fetch one raw document.

        Raises:
            SourceNotAllowed: The address is not allow-listed (no request made).
            httpx.HTTPError: Transport failure or non-success status.
        """
        if not is_allowed_address(source.url, self._allowed_prefixes):
            raise SourceNotAllowed(f"Address not allowed: {source.url}")
        resp = await self._client.get(
            self._proxy_url, params={"url": source.url}, timeout=self._timeout
        )
        resp.raise_for_status()
        return resp.text

    async def fetch_source(self, source: SourceDescriptor) -> SourceResult:
        """Fetch and process one source. Never raises for source failures."""
        try:
            document = await self.fetch_document(source)
        except (httpx.HTTPError, SourceNotAllowed) as e:
            logger.warning(f"Hotspot fetch failed for {source.source_id} ({source.url}): {e}")
            return SourceErr(source_id=source.source_id, reason=str(e) or type(e).__name__)

        result = process_document(document, source.source_id)
        if isinstance(result, SourceOk):
            logger.debug(f"{source.source_id}: {len(result.records)} hotspots")
        return result

    async def fetch_all(self, sources: tuple[SourceDescriptor, ...] | list[SourceDescriptor]) -> list[SourceResult]:
        """Fetch every source concurrently and wait for all of them to settle."""
        settled = await asyncio.gather(
            *(self.fetch_source(s) for s in sources), return_exceptions=True
        )
        results: list[SourceResult] = []
        for source, outcome in zip(sources, settled):
            if isinstance(outcome, BaseException):
                logger.warning(f"Hotspot source {source.source_id} crashed: {outcome!r}")
                results.append(SourceErr(source_id=source.source_id, reason=repr(outcome)))
            else:
                results.append(outcome)
        return results
