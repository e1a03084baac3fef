# core/jolokia.py
"""Async Jolokia client and detection of the agent's list method."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

RBAC_REGISTRY_MBEAN = "hawtio:type=security,name=RBACRegistry"


class JolokiaError(Exception):
    """Raised when the agent cannot be reached or answers with garbage."""


class ListMethod(str, Enum):
    OPTIMISED = "optimised"
    GENERAL = "general"
    CANT_DETERMINE = "cant_determine"


class JolokiaStatus:
    """What the connected agent supports for listing MBeans."""

    def __init__(
        self,
        list_method: ListMethod = ListMethod.CANT_DETERMINE,
        list_mbean: str = RBAC_REGISTRY_MBEAN,
    ):
        self.list_method = list_method
        self.list_mbean = list_mbean


class JolokiaClient:
    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.username = username
        self.password = password
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            auth = None
            if self.username:
                auth = httpx.BasicAuth(self.username, self.password or "")
            self._client = httpx.AsyncClient(auth=auth, timeout=self.timeout)
        return self._client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._ensure_client()

    @client.setter
    def client(self, value: httpx.AsyncClient):
        self._client = value
        self._owns_client = False

    async def request(self, requests: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Send the requests as one bulk POST and return the responses in order."""
        try:
            r = await self.client.post(self.url, json=requests)
            r.raise_for_status()
            body = r.json()
        except httpx.HTTPError as e:
            raise JolokiaError(f"Jolokia request to {self.url} failed: {e}") from e
        except ValueError as e:
            raise JolokiaError(f"Jolokia returned invalid JSON: {e}") from e

        if isinstance(body, dict):
            body = [body]
        if not isinstance(body, list) or len(body) != len(requests):
            raise JolokiaError(
                f"Expected {len(requests)} responses from Jolokia, got {body!r:.200}"
            )
        return body

    async def _single(self, request: Dict[str, Any]) -> Any:
        (response,) = await self.request([request])
        if response.get("status") != 200:
            raise JolokiaError(
                f"{request['type']} request failed: {response.get('error', 'unknown error')}"
            )
        return response.get("value")

    async def search(self, pattern: str) -> List[str]:
        value = await self._single({"type": "search", "mbean": pattern})
        return list(value or [])

    async def exec(self, mbean: str, operation: str, *arguments: Any) -> Any:
        return await self._single(
            {
                "type": "exec",
                "mbean": mbean,
                "operation": operation,
                "arguments": list(arguments),
            }
        )

    async def list(self, path: Optional[str] = None) -> Dict[str, Any]:
        request: Dict[str, Any] = {"type": "list"}
        if path:
            request["path"] = path
        return await self._single(request) or {}

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


async def detect_list_method(client: JolokiaClient) -> JolokiaStatus:
    """Check whether the agent exposes the RBAC registry for optimised listing."""
    status = JolokiaStatus()
    try:
        found = await client.search(RBAC_REGISTRY_MBEAN)
    except JolokiaError as e:
        logger.warning(f"Could not determine Jolokia list method: {e}")
        return status

    if found:
        status.list_method = ListMethod.OPTIMISED
        status.list_mbean = found[0]
    else:
        status.list_method = ListMethod.GENERAL
    logger.debug(f"Jolokia list method: {status.list_method.value}")
    return status
