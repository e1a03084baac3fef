"""RBAC decoration of MBean trees.

Works out, for every MBean in a tree and every operation on it, whether the
current user may invoke it, and tags the tree nodes accordingly. An agent
with the RBAC registry may have done this already while listing the tree;
otherwise everything is resolved with one batched Jolokia call against the
ACL MBean.

Callers must not run two passes over the same tree at the same time.
"""
from __future__ import annotations

from typing import Any, Dict, List

from loguru import logger

from .acl import ACLLocator
from .flatten import flatten
from .jolokia import JolokiaClient, JolokiaError, JolokiaStatus, ListMethod
from .metrics import BATCH_FAILURE_COUNTER, BATCH_REQUEST_COUNTER, DECORATION_COUNTER
from .schemas import DecorationResult
from .tree import ResourceNode

MBeans = Dict[str, ResourceNode]
BulkRequest = Dict[str, List[str]]

CAN_INVOKE_MBEAN_OP = "canInvoke(java.lang.String)"
CAN_INVOKE_BULK_OP = "canInvoke(java.util.Map)"

MODE_PREDECORATED = "predecorated"
MODE_GENERAL = "general"


def has_decorated_rbac(mbeans: MBeans) -> bool:
    """True unless some MBean lists operations without a signature index."""
    for node in mbeans.values():
        descriptor = node.descriptor
        if descriptor and descriptor.operations and not descriptor.operations_by_signature:
            return False
    return True


def _permitted(node: ResourceNode) -> bool:
    value = node.can_invoke
    if node.descriptor is not None and node.descriptor.can_invoke is not None:
        value = node.descriptor.can_invoke
    return value is None or bool(value)


class RBACDecorator:
    def __init__(
        self,
        jolokia: JolokiaClient,
        status: JolokiaStatus,
        locator: ACLLocator,
    ):
        self.jolokia = jolokia
        self.status = status
        self.locator = locator

    async def process(self, tree: ResourceNode) -> DecorationResult:
        logger.debug(f"Processing tree {tree.title or tree.identifier or '<root>'}")
        acl_mbean = await self.locator.get_acl_mbean()
        mbeans = flatten(tree)

        if self.status.list_method == ListMethod.OPTIMISED:
            logger.debug("Process JMX tree: optimised list mode")
            if has_decorated_rbac(mbeans):
                logger.debug("JMX tree already decorated with RBAC")
                result = self.process_with_rbac(mbeans)
            else:
                logger.debug("JMX tree not decorated with RBAC, fetching RBAC info now")
                result = await self.process_general(acl_mbean, mbeans)
        else:
            logger.debug("Process JMX tree: general mode")
            result = await self.process_general(acl_mbean, mbeans)

        result.acl_mbean = acl_mbean
        DECORATION_COUNTER.labels(mode=result.mode).inc()
        logger.debug(f"Processed {len(mbeans)} mbeans ({result.mode})")
        return result

    def process_with_rbac(self, mbeans: MBeans) -> DecorationResult:
        # permissions are in place already, only the presentation state is missing
        for node in mbeans.values():
            node.set_invoke_state(_permitted(node))
        return DecorationResult(mode=MODE_PREDECORATED, mbean_count=len(mbeans))

    async def process_general(self, acl_mbean: str, mbeans: MBeans) -> DecorationResult:
        requests: List[Dict[str, Any]] = []
        bulk_request: BulkRequest = {}
        previous_indexes = {
            name: node.descriptor.operations_by_signature
            for name, node in mbeans.items()
            if node.descriptor is not None
        }
        for mbean_name, node in mbeans.items():
            self.add_can_invoke_requests(acl_mbean, mbean_name, node, requests, bulk_request)
        requests.append(
            {
                "type": "exec",
                "mbean": acl_mbean,
                "operation": CAN_INVOKE_BULK_OP,
                "arguments": [bulk_request],
            }
        )

        result = DecorationResult(
            mode=MODE_GENERAL, mbean_count=len(mbeans), request_count=len(requests)
        )
        BATCH_REQUEST_COUNTER.inc()
        delivered = False
        try:
            responses = await self.jolokia.request(requests)
            delivered = True
        except JolokiaError as e:
            # nodes keep their current (default-allow) state
            logger.warning(f"RBAC batch request failed, tree left undecorated: {e}")
            BATCH_FAILURE_COUNTER.inc()
            result.failed = True
            result.error = str(e)
            return result
        finally:
            if not delivered:
                for name, index in previous_indexes.items():
                    mbeans[name].descriptor.operations_by_signature = index

        self.apply_responses(mbeans, requests, responses)
        return result

    def add_can_invoke_requests(
        self,
        acl_mbean: str,
        mbean_name: str,
        node: ResourceNode,
        requests: List[Dict[str, Any]],
        bulk_request: BulkRequest,
    ) -> None:
        requests.append(
            {
                "type": "exec",
                "mbean": acl_mbean,
                "operation": CAN_INVOKE_MBEAN_OP,
                "arguments": [mbean_name],
            }
        )
        descriptor = node.descriptor
        if descriptor and descriptor.operations:
            op_list = descriptor.index_operations()
            if op_list:
                bulk_request[mbean_name] = op_list

    def apply_responses(
        self,
        mbeans: MBeans,
        requests: List[Dict[str, Any]],
        responses: List[Dict[str, Any]],
    ) -> None:
        for request, response in zip(requests, responses):
            if response.get("status") != 200:
                logger.debug(
                    f"Ignoring failed canInvoke response: {response.get('error', response)}"
                )
                continue
            argument = request["arguments"][0]
            if isinstance(argument, str):
                self._apply_mbean_response(mbeans, argument, response.get("value"))
            else:
                self._apply_bulk_response(mbeans, response.get("value") or {})

    def _apply_mbean_response(self, mbeans: MBeans, mbean_name: str, value: Any) -> None:
        node = mbeans.get(mbean_name)
        if node is None:
            return
        can_invoke = bool(value)
        node.can_invoke = can_invoke
        if node.descriptor is not None:
            node.descriptor.can_invoke = can_invoke
        node.set_invoke_state(can_invoke)

    def _apply_bulk_response(self, mbeans: MBeans, response_map: Dict[str, Any]) -> None:
        for mbean_name, operations in response_map.items():
            node = mbeans.get(mbean_name)
            if node is None or node.descriptor is None:
                continue
            index = node.descriptor.operations_by_signature
            for operation_name, data in operations.items():
                op = index.get(operation_name)
                if op is not None:
                    op.can_invoke = data.get("CanInvoke")
