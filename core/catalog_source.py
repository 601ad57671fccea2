"""Download prompt catalogues over HTTP.

Updates:
  v0.2.0 - 2026-10-12 - Add seeding helper combining remote and packaged catalogues.
  v0.1.0 - 2026-10-09 - HTTPX-backed catalogue fetcher with retries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

import httpx

from config.settings import DEFAULT_CATALOG_URL

from .catalog_importer import load_builtin_prompts, parse_catalog_payload
from .exceptions import CatalogFetchError
from .retry import RetryPolicy, async_retry, is_retryable_httpx_error

if TYPE_CHECKING:
    from collections.abc import Callable

    from models.prompt_model import Prompt

logger = logging.getLogger("prompt_vault.catalog_source")


class CatalogFetcher(Protocol):
    """Anything that can return the raw bytes of a remote catalogue."""

    async def fetch(self) -> bytes: ...


@dataclass(slots=True)
class HttpCatalogFetcher:
    """HTTPX-backed catalogue downloader."""

    url: str = DEFAULT_CATALOG_URL
    timeout: float = 15.0
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    client_factory: Callable[[], httpx.AsyncClient] | None = None

    def __post_init__(self) -> None:
        """Validate the configured URL."""
        if not self.url or not self.url.strip():
            raise ValueError("catalogue URL is required")
        self.url = self.url.strip()

    async def fetch(self) -> bytes:
        """GET the catalogue and return the response body."""
        if self.client_factory is None:
            client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"Accept": "application/json"},
            )
        else:
            client = self.client_factory()
        try:

            async def _send_request() -> httpx.Response:
                response = await client.get(self.url)
                response.raise_for_status()
                return response

            response = await async_retry(
                _send_request,
                should_retry=is_retryable_httpx_error,
                policy=self.retry_policy,
                description=f"GET {self.url}",
            )
        except httpx.HTTPError as exc:
            raise CatalogFetchError(f"Catalogue download failed: {exc}") from exc
        finally:
            await client.aclose()
        logger.debug("Downloaded %d bytes from %s", len(response.content), self.url)
        return response.content


@dataclass(slots=True)
class CatalogSeeder:
    """Produce the initial catalogue for an empty library.

    The remote catalogue is tried first; the packaged starter prompts are used
    when the download fails or yields nothing.
    """

    fetcher: CatalogFetcher | None = None
    use_builtin_fallback: bool = True

    async def __call__(self) -> list[Prompt]:
        prompts: list[Prompt] = []
        if self.fetcher is not None:
            try:
                prompts = parse_catalog_payload(await self.fetcher.fetch())
            except CatalogFetchError as exc:
                logger.warning("Remote catalogue unavailable during seeding: %s", exc)
            if not prompts:
                logger.info("Remote catalogue yielded no prompts")
        if not prompts and self.use_builtin_fallback:
            prompts = load_builtin_prompts()
            logger.info("Seeded %d prompts from the packaged catalogue", len(prompts))
        return prompts


__all__ = [
    "CatalogFetcher",
    "CatalogSeeder",
    "DEFAULT_CATALOG_URL",
    "HttpCatalogFetcher",
]
