"""Best-effort lookups against the user and product services."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiohttp

logger = logging.getLogger(__name__)


class ResolutionKind(enum.Enum):
    USER = "user"
    PRODUCT = "product"


class Outcome(enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class Resolution:
    """Result of one remote lookup.

    NOT_FOUND and UNREACHABLE are kept apart for logging only; callers
    branch on ``found``.
    """

    outcome: Outcome
    entity: Optional[Dict[str, Any]] = None

    @property
    def found(self) -> bool:
        return self.outcome is Outcome.FOUND


_PATHS = {
    ResolutionKind.USER: "/api/users/{id}",
    ResolutionKind.PRODUCT: "/api/products/{id}",
}


class RemoteResolver:
    """Resolve references against the service bound to each kind.

    One GET per call, bounded by ``timeout`` seconds. No retries, no cache.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        user_service_url: str,
        product_service_url: str,
        timeout: float = 5.0,
    ):
        self.session = session
        self.base_urls = {
            ResolutionKind.USER: user_service_url.rstrip("/"),
            ResolutionKind.PRODUCT: product_service_url.rstrip("/"),
        }
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    def url_for(self, kind: ResolutionKind, ref: Any) -> str:
        path = _PATHS[kind].format(id=quote(str(ref), safe=""))
        return f"{self.base_urls[kind]}{path}"

    async def resolve(self, kind: ResolutionKind, ref: Any) -> Resolution:
        url = self.url_for(kind, ref)
        try:
            async with self.session.get(url, timeout=self.timeout) as response:
                if response.status == 404:
                    logger.info(f"{kind.value} {ref} not found at {url}")
                    return Resolution(Outcome.NOT_FOUND)
                if response.status != 200:
                    logger.warning(
                        f"{kind.value} {ref} lookup failed with status {response.status}"
                    )
                    return Resolution(Outcome.UNREACHABLE)
                body = await response.json(content_type=None)
        except asyncio.TimeoutError:
            logger.warning(f"{kind.value} {ref} lookup timed out at {url}")
            return Resolution(Outcome.UNREACHABLE)
        except aiohttp.ClientError as e:
            logger.warning(f"{kind.value} {ref} lookup error: {e}")
            return Resolution(Outcome.UNREACHABLE)
        except ValueError as e:
            logger.warning(f"{kind.value} {ref} returned an undecodable body: {e}")
            return Resolution(Outcome.UNREACHABLE)

        if not isinstance(body, dict):
            logger.warning(f"{kind.value} {ref} returned a non-object body")
            return Resolution(Outcome.UNREACHABLE)
        return Resolution(Outcome.FOUND, body)
