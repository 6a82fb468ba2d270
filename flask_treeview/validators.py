"""
Pre-flight checks of the tree mutations.

The validator never writes: it inspects the node, the configuration and
the neighbourhood read from the store, raises when the mutation breaks a
tree rule and otherwise returns the plan the store has to apply.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .config import TreeViewConfig
from .const import (
    MOVE_DIRECTIONS,
    MOVE_DOWN,
    MOVE_LEFT,
    MOVE_UP,
    POSITION_AFTER,
    POSITION_APPEND,
    POSITION_BEFORE,
    POSITION_ROOT,
)
from .exceptions import BoundaryError, InvalidOperation

log = logging.getLogger(__name__)

REMOVE_DEACTIVATE = "deactivate"
REMOVE_NODE = "delete_node"
REMOVE_SUBTREE = "delete_subtree"


@dataclass(frozen=True)
class MovePlan:
    """Where ``node`` goes: ``target`` is None for a new root"""

    node: Any
    direction: str
    target: Optional[Any]
    position: str


@dataclass(frozen=True)
class RemovePlan:
    node: Any
    operation: str
    cascade: bool = False

    @property
    def soft(self) -> bool:
        return self.operation == REMOVE_DEACTIVATE


class MutationValidator(object):
    """
    Checks create, remove and move requests against the nested set
    and the business rules of the node flags.

    :param store: the :class:`NestedSetStore` used to read neighbours
    :param config: the widget configuration (delete policy, roots)
    """

    def __init__(self, store, config: TreeViewConfig = None):
        self.store = store
        self.config = config or TreeViewConfig()

    def _require_saved(self, node, role="node"):
        if node is None or self.store.is_new(node):
            raise InvalidOperation(f"The {role} is not saved yet")

    def create(self, parent):
        """Check a new child can be added under ``parent``"""
        self._require_saved(parent, "parent node")
        key = self.store.key_of(parent)
        if self.config.leaf_only or not parent.is_child_allowed():
            raise InvalidOperation(
                "Children are not allowed for this node", node_key=key
            )
        return parent

    def create_root(self):
        if not self.config.allow_new_roots:
            raise InvalidOperation("Creating new root nodes is disabled")

    def remove(self, node) -> RemovePlan:
        """
        Decide how ``node`` is removed. With soft delete the node (and its
        descendants when allowed) is only deactivated. A hard delete of a
        node having children requires the remove all permission.
        """
        self._require_saved(node)
        key = self.store.key_of(node)
        if not node.is_removable():
            raise InvalidOperation("The node cannot be removed", node_key=key)
        cascade = node.is_removable_all()
        if self.config.soft_delete:
            return RemovePlan(node, REMOVE_DEACTIVATE, cascade=cascade)
        if self.store.is_leaf(node):
            return RemovePlan(node, REMOVE_NODE)
        if not cascade:
            raise InvalidOperation(
                "The node has children and cannot be removed with them",
                node_key=key,
            )
        return RemovePlan(node, REMOVE_SUBTREE, cascade=True)

    def move(self, node, direction) -> MovePlan:
        """
        Resolve the target of a one step move.

        ``u`` and ``d`` swap with the previous and next sibling, ``l``
        places the node after its parent (or as a new root), ``r`` makes
        it the last child of its previous sibling.
        """
        if direction not in MOVE_DIRECTIONS:
            raise InvalidOperation(f"Invalid move direction '{direction}'")
        self._require_saved(node)
        key = self.store.key_of(node)
        if not node.is_movable(direction):
            raise InvalidOperation(
                f"The node cannot be moved in direction '{direction}'",
                node_key=key,
            )
        is_root = self.store.is_root(node)

        if direction == MOVE_UP:
            target = None if is_root else self.store.prev_sibling(node)
            if target is None:
                raise BoundaryError(
                    "The node is already the first one", direction, node_key=key
                )
            return MovePlan(node, direction, target, POSITION_BEFORE)

        if direction == MOVE_DOWN:
            target = None if is_root else self.store.next_sibling(node)
            if target is None:
                raise BoundaryError(
                    "The node is already the last one", direction, node_key=key
                )
            return MovePlan(node, direction, target, POSITION_AFTER)

        if direction == MOVE_LEFT:
            if is_root:
                raise BoundaryError(
                    "A root node cannot move left", direction, node_key=key
                )
            parent = self.store.parent(node)
            if self.store.is_root(parent):
                if not self.config.allow_new_roots:
                    raise BoundaryError(
                        "The node cannot move out of the root",
                        direction,
                        node_key=key,
                    )
                return MovePlan(node, direction, None, POSITION_ROOT)
            return MovePlan(node, direction, parent, POSITION_AFTER)

        # MOVE_RIGHT
        target = self.store.prev_sibling(node)
        if target is None:
            raise BoundaryError(
                "There is no previous node to move into", direction, node_key=key
            )
        if self.config.leaf_only or not target.is_child_allowed():
            raise InvalidOperation(
                "The previous node does not accept children",
                node_key=self.store.key_of(target),
            )
        return MovePlan(node, direction, target, POSITION_APPEND)


__all__ = [
    "MutationValidator",
    "MovePlan",
    "RemovePlan",
    "REMOVE_DEACTIVATE",
    "REMOVE_NODE",
    "REMOVE_SUBTREE",
]
