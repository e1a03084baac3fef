# tests/conftest.py
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.jolokia import JolokiaStatus, ListMethod  # noqa: E402
from core.tree import Descriptor, OperationSignature, ResourceNode  # noqa: E402

ACL_MBEAN = "hawtio:type=security,area=jmx,name=HawtioDummyJMXSecurity"


def mbean(identifier, operations=None, **kwargs):
    """Leaf node backed by an MBean with the given operations."""
    return ResourceNode(
        identifier=identifier,
        title=identifier.split("=")[-1],
        descriptor=Descriptor(operations=operations or {}),
        **kwargs,
    )


def folder(title, *children, identifier=""):
    return ResourceNode(
        identifier=identifier,
        title=title,
        is_container=True,
        children=list(children),
    )


def op(*argument_types, can_invoke=None):
    return OperationSignature(argument_types=list(argument_types), can_invoke=can_invoke)


def ok(value):
    return {"status": 200, "value": value}


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------
@pytest.fixture
def jolokia():
    """Jolokia client whose bulk request is an AsyncMock."""
    client = MagicMock()
    client.request = AsyncMock(return_value=[])
    return client


@pytest.fixture
def locator():
    loc = MagicMock()
    loc.get_acl_mbean = AsyncMock(return_value=ACL_MBEAN)
    return loc


@pytest.fixture
def general_status():
    return JolokiaStatus(ListMethod.GENERAL)


@pytest.fixture
def optimised_status():
    return JolokiaStatus(ListMethod.OPTIMISED)
