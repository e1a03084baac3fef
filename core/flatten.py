from typing import Dict

from .tree import ResourceNode


def flatten(root: ResourceNode) -> Dict[str, ResourceNode]:
    """Map every addressable node of the tree by its object name.

    Grouping folders without an object name are left out but still searched,
    since their descendants may be MBeans. The returned nodes are the tree's
    own objects, so mutating them updates the tree.
    """
    mbeans: Dict[str, ResourceNode] = {}
    _flatten_folder(mbeans, root)
    return mbeans


def _flatten_folder(mbeans: Dict[str, ResourceNode], folder: ResourceNode) -> None:
    if folder.identifier and folder.identifier.strip():
        mbeans[folder.identifier] = folder
    if folder.is_container:
        for child in folder.children:
            _flatten_folder(mbeans, child)
