"""Lookup of the MBean that answers ``canInvoke`` queries."""
from __future__ import annotations

import asyncio
from typing import List, Optional

from loguru import logger

from .jolokia import JolokiaClient, JolokiaError

ACL_MBEAN_PATTERN = "*:type=security,area=jmx,*"
DEFAULT_ACL_MBEAN = "hawtio:type=security,area=jmx,name=HawtioDummyJMXSecurity"


def choose_acl_mbean(candidates: List[str], default: str = DEFAULT_ACL_MBEAN) -> str:
    if not candidates:
        return default
    if len(candidates) == 1:
        return candidates[0]
    preferred = sorted(c for c in candidates if c.startswith("hawtio:"))
    if preferred:
        return preferred[0]
    return sorted(candidates)[0]


class ACLLocator:
    def __init__(self, client: JolokiaClient, default: str = DEFAULT_ACL_MBEAN):
        self.client = client
        self.default = default
        self._lookup: Optional[asyncio.Task] = None

    async def get_acl_mbean(self) -> str:
        # one search per locator, shared by concurrent callers
        if self._lookup is None:
            self._lookup = asyncio.ensure_future(self._search())
        return await asyncio.shield(self._lookup)

    async def _search(self) -> str:
        try:
            candidates = await self.client.search(ACL_MBEAN_PATTERN)
        except JolokiaError as e:
            logger.warning(f"ACL MBean search failed, using {self.default}: {e}")
            return self.default
        acl_mbean = choose_acl_mbean(candidates, self.default)
        logger.debug(f"Using ACL MBean {acl_mbean}")
        return acl_mbean
