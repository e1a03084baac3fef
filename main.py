import asyncio
import sys

from loguru import logger

from core.acl import ACLLocator
from core.config import Settings
from core.jolokia import JolokiaClient, detect_list_method
from core.rbac import RBACDecorator
from core.tree import CAN_INVOKE, ResourceNode
from core.tree_builder import fetch_tree


def render(node: ResourceNode, depth: int = 0):
    """Yield one indented line per node, marking MBeans the user may not invoke."""
    if depth > 0:
        label = node.title or node.identifier
        if node.identifier:
            mark = "" if CAN_INVOKE in node.css_tags else " [locked]"
            label = f"{label}{mark}"
        yield "  " * (depth - 1) + label
    for child in node.children:
        yield from render(child, depth + 1)


async def run(url: str, as_json: bool = False) -> int:
    settings = Settings.from_env(jolokia_url=url)
    jolokia = JolokiaClient(
        settings.jolokia_url,
        username=settings.jolokia_username,
        password=settings.jolokia_password,
        timeout=settings.jolokia_timeout,
    )
    try:
        status = await detect_list_method(jolokia)
        locator = ACLLocator(jolokia, default=settings.acl_mbean)
        decorator = RBACDecorator(jolokia, status, locator)

        tree = await fetch_tree(jolokia, status)
        result = await decorator.process(tree)
    finally:
        await jolokia.aclose()

    if result.failed:
        logger.warning(f"RBAC information unavailable: {result.error}")
    else:
        logger.success(f"Decorated {result.mbean_count} MBeans ({result.mode} mode)")

    if as_json:
        print(tree.model_dump_json(indent=2))
    else:
        for line in render(tree):
            print(line)
    return 0


def main():
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if len(args) < 1:
        logger.error("Usage: python main.py <jolokia_url> [--json]")
        sys.exit(1)

    url = args[0]
    logger.info(f"Fetching MBean tree from {url}")
    try:
        code = asyncio.run(run(url, as_json="--json" in sys.argv))
    except Exception as e:
        logger.exception(f"Fatal error during execution: {e}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
