"""
Request/response transport between cluster nodes.

Engines only need a post/get primitive with a timeout. Every failure mode
(timeout, refused connection, error status, unreadable body) surfaces as
``PeerUnreachable``; nothing is retried here.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import aiohttp

from core.constants import API_PREFIX
from models.node import Node
from .errors import PeerUnreachable

logger = logging.getLogger(__name__)


class PeerTransport(ABC):
    """Abstract peer call primitive."""

    @abstractmethod
    async def post(
        self, node: Node, path: str, payload: Dict[str, Any], timeout: float
    ) -> Dict[str, Any]:
        """
        POST a JSON body to ``path`` on ``node``.

        Returns:
            Decoded JSON reply

        Raises:
            PeerUnreachable: If the call fails for any reason
        """
        pass

    @abstractmethod
    async def get(
        self,
        node: Node,
        path: str,
        timeout: float,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """GET ``path`` on ``node``; same contract as ``post``."""
        pass


class HttpPeerTransport(PeerTransport):
    """HTTP transport using aiohttp, one short-lived session per call."""

    def __init__(self, api_prefix: str = API_PREFIX):
        self.api_prefix = api_prefix

    def _url(self, node: Node, path: str) -> str:
        return f"{node.base_url}{self.api_prefix}{path}"

    async def _request(
        self,
        method: str,
        node: Node,
        path: str,
        timeout: float,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as session:
                async with session.request(method, self._url(node, path), **kwargs) as resp:
                    resp.raise_for_status()
                    return await resp.json()
        except asyncio.TimeoutError:
            raise PeerUnreachable(node.id, f"timed out after {timeout}s")
        except aiohttp.ClientResponseError as e:
            raise PeerUnreachable(node.id, f"HTTP {e.status}")
        except (aiohttp.ClientError, ValueError) as e:
            raise PeerUnreachable(node.id, str(e) or e.__class__.__name__)

    async def post(
        self, node: Node, path: str, payload: Dict[str, Any], timeout: float
    ) -> Dict[str, Any]:
        return await self._request("POST", node, path, timeout, json=payload)

    async def get(
        self,
        node: Node,
        path: str,
        timeout: float,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return await self._request("GET", node, path, timeout, params=params)
