from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import folder, mbean

import main
from core.acl import DEFAULT_ACL_MBEAN
from core.jolokia import JolokiaStatus, ListMethod
from core.schemas import DecorationResult

ENV_VARS = (
    "JOLOKIA_URL",
    "JOLOKIA_USERNAME",
    "JOLOKIA_PASSWORD",
    "JOLOKIA_TIMEOUT",
    "RBAC_ACL_MBEAN",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_render_marks_locked_mbeans():
    allowed = mbean("dom:type=A")
    allowed.set_invoke_state(True)
    denied = mbean("dom:type=B")
    denied.set_invoke_state(False)
    tree = folder("root", folder("dom", allowed, denied))

    assert list(main.render(tree)) == ["dom", "  A", "  B [locked]"]


@pytest.mark.asyncio
async def test_run_prints_decorated_tree(capsys, clean_env):
    tree = folder("root", folder("dom", mbean("dom:type=A")))

    async def process(root):
        root.children[0].children[0].set_invoke_state(False)
        return DecorationResult(mode="general", mbean_count=1, request_count=2)

    with (
        patch("main.detect_list_method", AsyncMock(return_value=JolokiaStatus(ListMethod.GENERAL))),
        patch("main.fetch_tree", AsyncMock(return_value=tree)),
        patch("main.RBACDecorator") as decorator_cls,
    ):
        decorator_cls.return_value.process = AsyncMock(side_effect=process)
        code = await main.run("http://agent/jolokia")

    assert code == 0
    assert capsys.readouterr().out.splitlines() == ["dom", "  A [locked]"]


@pytest.mark.asyncio
async def test_run_uses_settings_from_env_file(clean_env):
    (clean_env / ".env").write_text(
        "JOLOKIA_URL=http://ignored/jolokia\n"
        "JOLOKIA_USERNAME=admin\n"
        "JOLOKIA_PASSWORD=secret\n"
        "JOLOKIA_TIMEOUT=5\n"
    )
    client = MagicMock(aclose=AsyncMock())

    with (
        patch("main.JolokiaClient", return_value=client) as client_cls,
        patch("main.ACLLocator") as locator_cls,
        patch("main.detect_list_method", AsyncMock(return_value=JolokiaStatus(ListMethod.GENERAL))),
        patch("main.fetch_tree", AsyncMock(return_value=folder("root"))),
        patch("main.RBACDecorator") as decorator_cls,
    ):
        decorator_cls.return_value.process = AsyncMock(
            return_value=DecorationResult(mode="general")
        )
        await main.run("http://agent/jolokia")

    client_cls.assert_called_once_with(
        "http://agent/jolokia", username="admin", password="secret", timeout=5.0
    )
    locator_cls.assert_called_once_with(client, default=DEFAULT_ACL_MBEAN)
    client.aclose.assert_awaited_once()


def test_main_requires_url(monkeypatch):
    monkeypatch.setattr("sys.argv", ["main.py"])
    with pytest.raises(SystemExit) as exc:
        main.main()
    assert exc.value.code == 1
