"""Upstream relay - the gateway's pass-through client to the internal API."""
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple, Union

import httpx

from ..exceptions import UpstreamError

logger = logging.getLogger(__name__)

# Request headers worth carrying across; hop-by-hop and host headers are not
FORWARDED_HEADERS = ("content-type", "accept", "user-agent")


@dataclass
class RelayedResponse:
    """Upstream response, mirrored back to the device unchanged."""
    status_code: int
    content: bytes
    content_type: Optional[str] = None


class UpstreamRelay:
    """Forwards device requests to the internal API.
    
    One ``httpx.AsyncClient`` is kept for the gateway's lifetime. Every
    request is bounded by ``timeout``; any transport failure (refused
    connection, timeout, protocol error) surfaces as ``UpstreamError``
    because there is no upstream response to mirror.
    """
    
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )
    
    async def forward(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Union[Mapping[str, str], Sequence[Tuple[str, str]]]] = None,
        content: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> RelayedResponse:
        forwarded = {
            k: v for k, v in (headers or {}).items() if k.lower() in FORWARDED_HEADERS
        }
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                content=content,
                headers=forwarded,
            )
        except httpx.HTTPError as e:
            logger.error(f"Error forwarding {method} {path} to {self.base_url}: {e!r}")
            raise UpstreamError(str(e)) from e
        
        return RelayedResponse(
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type"),
        )
    
    async def close(self):
        await self._client.aclose()
