import logging
from typing import Any, Dict, Optional

import httpx

from .errors import UpstreamFetchError
from .types import DEFAULT_MEDIA_TYPES, DocumentKind, FetchedDocument

logger = logging.getLogger(__name__)


def resolve_media_type(content_type: Optional[str], kind: DocumentKind) -> str:
    """Header value without parameters, else the default for the document kind."""
    if content_type:
        primary = content_type.split(";", 1)[0].strip()
        if primary:
            return primary.lower()
    return DEFAULT_MEDIA_TYPES[kind]


class DocumentFetcher:
    """Downloads a remote document fully into memory."""

    def __init__(self, timeout: float = 30.0, follow_redirects: bool = True, user_agent: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.user_agent = user_agent
        self.transport = transport

    @classmethod
    def from_config(cls, settings: Dict[str, Any]) -> "DocumentFetcher":
        return cls(
            timeout=float(settings.get("timeout", 30.0)),
            follow_redirects=bool(settings.get("follow_redirects", True)),
            user_agent=settings.get("user_agent"),
        )

    def _client(self) -> httpx.AsyncClient:
        client_kwargs = {"follow_redirects": self.follow_redirects, "timeout": httpx.Timeout(self.timeout)}
        if self.user_agent:
            client_kwargs["headers"] = {"User-Agent": self.user_agent}
        if self.transport is not None:
            client_kwargs["transport"] = self.transport
        return httpx.AsyncClient(**client_kwargs)

    async def fetch(self, url: str, kind: DocumentKind) -> FetchedDocument:
        async with self._client() as client:
            try:
                response = await client.get(url)
            except httpx.TimeoutException as e:
                raise UpstreamFetchError(f"Timed out fetching document from {url}", reason="network") from e
            except httpx.RequestError as e:
                raise UpstreamFetchError(f"Network error fetching document from {url}: {e}", reason="network") from e

        if not response.is_success:
            raise UpstreamFetchError(
                f"Failed to fetch document: {response.status_code} {response.reason_phrase}",
                reason="http-status",
                status=response.status_code,
            )

        media_type = resolve_media_type(response.headers.get("content-type"), kind)
        logger.debug(f"Fetched {len(response.content)} bytes ({media_type}) from {url}")
        return FetchedDocument.from_bytes(response.content, media_type)
