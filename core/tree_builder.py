# core/tree_builder.py
"""Build ResourceNode trees from Jolokia ``list`` output."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from .jolokia import JolokiaClient, JolokiaStatus, ListMethod
from .tree import Descriptor, OperationSignature, ResourceNode


def split_property_list(property_list: str) -> List[Tuple[str, str]]:
    """Split ``type=Foo,name="a,b"`` into key/value pairs, keeping quoted commas."""
    pairs = []
    current = []
    quoted = False
    escaped = False
    for ch in property_list:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == "\\" and quoted:
            current.append(ch)
            escaped = True
            continue
        if ch == '"':
            quoted = not quoted
        if ch == "," and not quoted:
            pairs.append("".join(current))
            current = []
            continue
        current.append(ch)
    if current:
        pairs.append("".join(current))

    result = []
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if sep:
            result.append((key.strip(), value.strip()))
    return result


def unwind_rbac_cache(value: Dict[str, Any]) -> Dict[str, Any]:
    """Resolve the RBAC registry listing into a plain ``{domain: {props: info}}`` map.

    The registry shares identical MBean infos through a cache; an MBean whose
    info is a string refers to the cache entry with that key.
    """
    if "domains" not in value:
        return value
    cache = value.get("cache") or {}
    domains = {}
    for domain, mbeans in (value.get("domains") or {}).items():
        resolved = {}
        for property_list, info in mbeans.items():
            if isinstance(info, str):
                info = cache.get(info, {})
            resolved[property_list] = info
        domains[domain] = resolved
    return domains


def _signature_from_info(info: Dict[str, Any]) -> OperationSignature:
    args = info.get("args") or []
    return OperationSignature(
        argument_types=[a.get("type", "") for a in args],
        return_type=info.get("ret"),
        description=info.get("desc") or "",
        can_invoke=info.get("canInvoke"),
    )


def build_descriptor(info: Dict[str, Any]) -> Descriptor:
    operations = {}
    for name, op in (info.get("op") or {}).items():
        if isinstance(op, list):
            operations[name] = [_signature_from_info(o) for o in op]
        else:
            operations[name] = _signature_from_info(op)

    descriptor = Descriptor(operations=operations, can_invoke=info.get("canInvoke"))

    op_by_string = info.get("opByString")
    if op_by_string and operations:
        # listed by the RBAC registry: operation permissions are already resolved
        descriptor.index_operations()
        for key, data in op_by_string.items():
            op = descriptor.operations_by_signature.get(key)
            if op is not None and isinstance(data, dict) and "canInvoke" in data:
                op.can_invoke = data["canInvoke"]
    return descriptor


def _folder(parent: ResourceNode, title: str) -> ResourceNode:
    child = parent.find_child(title)
    if child is None:
        child = parent.add_child(ResourceNode(title=title))
    return child


def build_tree(domains: Dict[str, Any], title: str = "MBeans") -> ResourceNode:
    root = ResourceNode(title=title, is_container=True)
    for domain in sorted(domains):
        domain_folder = _folder(root, domain)
        for property_list, info in domains[domain].items():
            values = [value.strip('"') for _, value in split_property_list(property_list)]
            if not values:
                logger.warning(f"Skipping MBean without key properties in {domain}")
                continue
            node = domain_folder
            for value in values[:-1]:
                node = _folder(node, value)

            identifier = f"{domain}:{property_list}"
            # same value path, different key names: keep both MBeans as siblings
            leaf = next(
                (
                    c
                    for c in node.children
                    if c.title == values[-1] and c.identifier in ("", identifier)
                ),
                None,
            )
            if leaf is None:
                leaf = node.add_child(ResourceNode(title=values[-1]))
            leaf.identifier = identifier
            leaf.descriptor = build_descriptor(info or {})
    return root


async def fetch_tree(client: JolokiaClient, status: Optional[JolokiaStatus] = None) -> ResourceNode:
    """List all MBeans from the agent, through the RBAC registry when it is available."""
    if status is not None and status.list_method == ListMethod.OPTIMISED:
        value = await client.exec(status.list_mbean, "list()")
        domains = unwind_rbac_cache(value or {})
    else:
        domains = await client.list()
    root = build_tree(domains)
    logger.debug(f"Fetched MBean tree with {len(domains)} domains")
    return root
