"""MBean tree models shared by the tree builder, the RBAC decorator and the API."""
from __future__ import annotations

from typing import Dict, List, Optional, Set, Union

from pydantic import BaseModel, Field

CAN_INVOKE = "can-invoke"
CANT_INVOKE = "cant-invoke"
LOCKED_ICON = "fa fa-lock"


def canonical_signature(name: str, argument_types: List[str]) -> str:
    """Render an operation as ``name(type1,type2)``, the key used for bulk lookups."""
    return f"{name}({','.join(argument_types)})"


class OperationSignature(BaseModel):
    argument_types: List[str] = Field(default_factory=list)
    return_type: Optional[str] = None
    description: str = ""
    can_invoke: Optional[bool] = None


class Descriptor(BaseModel):
    """Operations and node-level permission of a real MBean."""

    operations: Dict[str, Union[OperationSignature, List[OperationSignature]]] = Field(
        default_factory=dict
    )
    operations_by_signature: Dict[str, OperationSignature] = Field(default_factory=dict)
    can_invoke: Optional[bool] = None

    def iter_signatures(self):
        """Yield ``(name, signature)`` pairs, expanding overloaded operations."""
        for name, op in self.operations.items():
            if isinstance(op, list):
                for overload in op:
                    yield name, overload
            else:
                yield name, op

    def index_operations(self) -> List[str]:
        """Rebuild ``operations_by_signature`` and return its keys in listing order."""
        self.operations_by_signature = {}
        keys = []
        for name, op in self.iter_signatures():
            key = canonical_signature(name, op.argument_types)
            # the same (name, args) pair twice would share one entry
            if key not in self.operations_by_signature:
                keys.append(key)
            self.operations_by_signature[key] = op
        return keys


class ResourceNode(BaseModel):
    identifier: str = ""
    title: str = ""
    is_container: bool = False
    children: List[ResourceNode] = Field(default_factory=list)
    descriptor: Optional[Descriptor] = None
    css_tags: Set[str] = Field(default_factory=set)
    icon: Optional[str] = None
    can_invoke: Optional[bool] = None

    def add_child(self, child: ResourceNode) -> ResourceNode:
        self.children.append(child)
        self.is_container = True
        return child

    def find_child(self, title: str) -> Optional[ResourceNode]:
        for child in self.children:
            if child.title == title:
                return child
        return None

    def walk(self):
        """Yield this node and all of its descendants, depth first."""
        yield self
        if self.is_container:
            for child in self.children:
                yield from child.walk()

    def set_invoke_state(self, can_invoke: bool) -> None:
        """Tag the node as invokable or not; a denied node also gets the lock icon."""
        self.css_tags.discard(CAN_INVOKE)
        self.css_tags.discard(CANT_INVOKE)
        self.css_tags.add(CAN_INVOKE if can_invoke else CANT_INVOKE)
        if not can_invoke:
            self.icon = LOCKED_ICON


ResourceNode.model_rebuild()
