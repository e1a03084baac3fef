"""Tests for core.acl."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.acl import ACL_MBEAN_PATTERN, DEFAULT_ACL_MBEAN, ACLLocator, choose_acl_mbean
from core.jolokia import JolokiaError


class TestChooseACLMBean:
    def test_none_found_uses_default(self):
        assert choose_acl_mbean([]) == DEFAULT_ACL_MBEAN
        assert choose_acl_mbean([], default="x:type=Y") == "x:type=Y"

    def test_single_candidate(self):
        assert choose_acl_mbean(["karaf:type=security,area=jmx"]) == "karaf:type=security,area=jmx"

    def test_prefers_hawtio_domain(self):
        candidates = [
            "karaf:type=security,area=jmx",
            "hawtio:type=security,area=jmx,name=HawtioDummyJMXSecurity",
        ]
        assert choose_acl_mbean(candidates).startswith("hawtio:")

    def test_falls_back_to_first_sorted(self):
        assert choose_acl_mbean(["b:type=security,area=jmx", "a:type=security,area=jmx"]) == (
            "a:type=security,area=jmx"
        )


def make_locator(search):
    client = MagicMock()
    client.search = AsyncMock(side_effect=search)
    return ACLLocator(client), client


@pytest.mark.asyncio
async def test_locator_searches_once_and_caches():
    locator, client = make_locator(lambda pattern: ["karaf:type=security,area=jmx"])

    first = await locator.get_acl_mbean()
    second = await locator.get_acl_mbean()

    assert first == second == "karaf:type=security,area=jmx"
    client.search.assert_awaited_once_with(ACL_MBEAN_PATTERN)


@pytest.mark.asyncio
async def test_locator_falls_back_on_transport_failure():
    def search(pattern):
        raise JolokiaError("down")

    locator, _ = make_locator(search)

    assert await locator.get_acl_mbean() == DEFAULT_ACL_MBEAN
