"""
Nested set persistence for SQLAlchemy models.

Every mutation rewrites the ``left``/``right``/``depth``/``root``
coordinates of all affected rows with bulk UPDATE statements inside one
transaction, so readers never see a torn interval.
"""

import logging
from contextlib import contextmanager
from typing import Any, List, Optional

from sqlalchemy import func

from ...config import TreeStructure
from ...const import (
    POSITION_AFTER,
    POSITION_APPEND,
    POSITION_BEFORE,
    POSITION_PREPEND,
    POSITION_ROOT,
    POSITIONS,
)
from ...exceptions import ConfigurationError, InvalidOperation

log = logging.getLogger(__name__)


class NestedSetStore(object):
    """
    Maintains the nested set intervals of one model class.

    ::

        store = NestedSetStore(db.session, Category)
        root = store.make_root(Category(name="Books"))
        scifi = store.insert_child(root, Category(name="Sci-fi"))
        store.move_subtree(scifi, root, POSITION_PREPEND)

    :param session: SQLAlchemy session
    :param model: mapped class holding the tree
    :param structure: attribute names of the coordinates
    :param autocommit: commit each mutation, when False the store only
        flushes and the caller owns the transaction
    """

    def __init__(
        self, session, model, structure: TreeStructure = None, autocommit=True
    ):
        self.session = session
        self.model = model
        self.structure = structure or TreeStructure()
        self.autocommit = autocommit
        for name in self.structure.required_attributes():
            if not hasattr(model, name):
                raise ConfigurationError(
                    f"Model '{model.__name__}' has no attribute '{name}'"
                )

    # ------------------------------------------------------------------
    # Coordinate helpers
    # ------------------------------------------------------------------
    @property
    def _key_col(self):
        return getattr(self.model, self.structure.key_attribute)

    @property
    def _tree_col(self):
        if not self.structure.has_forest:
            return None
        return getattr(self.model, self.structure.tree_attribute)

    @property
    def _left_col(self):
        return getattr(self.model, self.structure.left_attribute)

    @property
    def _right_col(self):
        return getattr(self.model, self.structure.right_attribute)

    @property
    def _depth_col(self):
        return getattr(self.model, self.structure.depth_attribute)

    def key_of(self, node):
        return getattr(node, self.structure.key_attribute)

    def tree_of(self, node):
        if not self.structure.has_forest:
            return None
        return getattr(node, self.structure.tree_attribute)

    def left_of(self, node) -> int:
        return getattr(node, self.structure.left_attribute)

    def right_of(self, node) -> int:
        return getattr(node, self.structure.right_attribute)

    def depth_of(self, node) -> int:
        return getattr(node, self.structure.depth_attribute)

    def _set_coords(self, node, left, right, depth, tree=None):
        setattr(node, self.structure.left_attribute, left)
        setattr(node, self.structure.right_attribute, right)
        setattr(node, self.structure.depth_attribute, depth)
        if self.structure.has_forest and tree is not None:
            setattr(node, self.structure.tree_attribute, tree)

    def is_new(self, node) -> bool:
        return self.key_of(node) is None or node not in self.session

    def is_root(self, node) -> bool:
        return self.left_of(node) == 1

    def is_leaf(self, node) -> bool:
        return self.right_of(node) == self.left_of(node) + 1

    def _query(self, tree=None):
        query = self.session.query(self.model)
        if self._tree_col is not None and tree is not None:
            query = query.filter(self._tree_col == tree)
        return query

    def _require_saved(self, node, role="node"):
        if node is None or self.is_new(node):
            raise InvalidOperation(f"The {role} is not saved yet")

    @contextmanager
    def _transaction(self, operation):
        try:
            self.session.flush()
            yield
            if self.autocommit:
                self.session.commit()
            else:
                self.session.flush()
        except Exception:
            log.error("Rolling back nested set %s on %s", operation, self.model.__name__)
            self.session.rollback()
            raise
        finally:
            self.session.expire_all()

    def _shift(self, tree, first, delta):
        """Shift every bound greater or equal than ``first`` by ``delta``"""
        log.debug("Shifting bounds >= %s by %s in tree %s", first, delta, tree)
        self._query(tree).filter(self._left_col >= first).update(
            {self._left_col: self._left_col + delta}, synchronize_session=False
        )
        self._query(tree).filter(self._right_col >= first).update(
            {self._right_col: self._right_col + delta}, synchronize_session=False
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, key):
        try:
            key = self._key_col.type.python_type(key)
        except NotImplementedError:
            pass
        except (TypeError, ValueError):
            return None
        return self.session.query(self.model).filter(self._key_col == key).first()

    def roots(self) -> List[Any]:
        query = self.session.query(self.model).filter(self._left_col == 1)
        if self._tree_col is not None:
            query = query.order_by(self._tree_col)
        return query.all()

    def tree(self, tree=None) -> List[Any]:
        """All nodes of one tree in preorder"""
        return self._query(tree).order_by(self._left_col).all()

    def descendants(self, node, include_self=False, depth=None) -> List[Any]:
        left, right = self.left_of(node), self.right_of(node)
        query = self._query(self.tree_of(node))
        if include_self:
            query = query.filter(self._left_col >= left, self._right_col <= right)
        else:
            query = query.filter(self._left_col > left, self._right_col < right)
        if depth is not None:
            query = query.filter(self._depth_col <= self.depth_of(node) + depth)
        return query.order_by(self._left_col).all()

    def children(self, node) -> List[Any]:
        return self.descendants(node, depth=1)

    def ancestors(self, node, depth=None) -> List[Any]:
        """Ancestors of ``node`` from the root down to the parent"""
        query = self._query(self.tree_of(node)).filter(
            self._left_col < self.left_of(node),
            self._right_col > self.right_of(node),
        )
        if depth is not None:
            query = query.filter(self._depth_col >= self.depth_of(node) - depth)
        return query.order_by(self._left_col).all()

    def parent(self, node):
        if self.is_root(node):
            return None
        return (
            self._query(self.tree_of(node))
            .filter(
                self._left_col < self.left_of(node),
                self._right_col > self.right_of(node),
                self._depth_col == self.depth_of(node) - 1,
            )
            .first()
        )

    def prev_sibling(self, node):
        if self.is_root(node):
            if self._tree_col is None:
                return None
            return (
                self.session.query(self.model)
                .filter(self._left_col == 1, self._tree_col < self.tree_of(node))
                .order_by(self._tree_col.desc())
                .first()
            )
        return (
            self._query(self.tree_of(node))
            .filter(self._right_col == self.left_of(node) - 1)
            .first()
        )

    def next_sibling(self, node):
        if self.is_root(node):
            if self._tree_col is None:
                return None
            return (
                self.session.query(self.model)
                .filter(self._left_col == 1, self._tree_col > self.tree_of(node))
                .order_by(self._tree_col)
                .first()
            )
        return (
            self._query(self.tree_of(node))
            .filter(self._left_col == self.right_of(node) + 1)
            .first()
        )

    def is_descendant_of(self, node, other) -> bool:
        return (
            self.tree_of(node) == self.tree_of(other)
            and self.left_of(other) < self.left_of(node)
            and self.right_of(node) < self.right_of(other)
        )

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------
    def make_root(self, node):
        """Save ``node`` as a new root, or detach a saved node as a root"""
        if not self.is_new(node):
            if self.is_root(node):
                raise InvalidOperation(
                    "The node is already a root", node_key=self.key_of(node)
                )
            return self.move_subtree(node, None, POSITION_ROOT)
        if not self.structure.has_forest and self.roots():
            raise InvalidOperation("The tree already has a root")
        with self._transaction("make_root"):
            self._set_coords(node, 1, 2, 0)
            self.session.add(node)
            self.session.flush()
            if self.structure.has_forest:
                setattr(node, self.structure.tree_attribute, self.key_of(node))
                self.session.flush()
        log.debug("Created root %s", self.key_of(node))
        return node

    def insert_child(self, parent, node, prepend=False):
        """Save the new ``node`` as the last (or first) child of ``parent``"""
        self._require_saved(parent, "parent node")
        position = self.left_of(parent) + 1 if prepend else self.right_of(parent)
        return self._insert_new(
            node, self.tree_of(parent), position, self.depth_of(parent) + 1
        )

    def insert_before(self, target, node):
        self._require_saved(target, "target node")
        if self.is_root(target):
            raise InvalidOperation("Cannot insert a node before a root")
        return self._insert_new(
            node, self.tree_of(target), self.left_of(target), self.depth_of(target)
        )

    def insert_after(self, target, node):
        self._require_saved(target, "target node")
        if self.is_root(target):
            raise InvalidOperation("Cannot insert a node after a root")
        return self._insert_new(
            node, self.tree_of(target), self.right_of(target) + 1, self.depth_of(target)
        )

    def _insert_new(self, node, tree, position, depth):
        if not self.is_new(node):
            raise InvalidOperation(
                "The node is already saved, move it instead", node_key=self.key_of(node)
            )
        with self._transaction("insert"):
            self._shift(tree, position, 2)
            self._set_coords(node, position, position + 1, depth, tree)
            self.session.add(node)
            self.session.flush()
        log.debug("Inserted node %s at %s in tree %s", self.key_of(node), position, tree)
        return node

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------
    def _destination(self, node, target, position):
        if position == POSITION_ROOT:
            if not self.structure.has_forest:
                raise InvalidOperation("A single tree cannot have a second root")
            return self.key_of(node), 1, 0
        self._require_saved(target, "target node")
        if self.key_of(target) == self.key_of(node) or self.is_descendant_of(
            target, node
        ):
            raise InvalidOperation(
                "Cannot move a node into its own subtree", node_key=self.key_of(node)
            )
        tree = self.tree_of(target)
        if position == POSITION_APPEND:
            return tree, self.right_of(target), self.depth_of(target) + 1
        if position == POSITION_PREPEND:
            return tree, self.left_of(target) + 1, self.depth_of(target) + 1
        if self.is_root(target):
            raise InvalidOperation(f"Cannot move a node {position} a root")
        if position == POSITION_BEFORE:
            return tree, self.left_of(target), self.depth_of(target)
        return tree, self.right_of(target) + 1, self.depth_of(target)

    def move_subtree(self, node, target, position):
        """
        Move ``node`` and all its descendants relative to ``target``.

        :param position: one of ``append``, ``prepend`` (as child of
            target), ``before``, ``after`` (as sibling of target) or
            ``root`` (detached as a new tree, target is ignored)
        """
        if position not in POSITIONS:
            raise InvalidOperation(f"Invalid move position '{position}'")
        self._require_saved(node)
        tree, position_left, depth = self._destination(node, target, position)
        src_tree = self.tree_of(node)
        left, right = self.left_of(node), self.right_of(node)
        width = right - left + 1
        depth_delta = depth - self.depth_of(node)
        same_tree = tree == src_tree

        if same_tree and depth_delta == 0 and position_left in (left, right + 1):
            return node

        with self._transaction("move"):
            if same_tree:
                self._shift(tree, position_left, width)
                if position_left <= left:
                    left += width
                    right += width
                distance = position_left - left
                self._query(tree).filter(
                    self._left_col >= left, self._right_col <= right
                ).update(
                    {
                        self._left_col: self._left_col + distance,
                        self._right_col: self._right_col + distance,
                        self._depth_col: self._depth_col + depth_delta,
                    },
                    synchronize_session=False,
                )
                self._shift(tree, right + 1, -width)
            else:
                if position != POSITION_ROOT:
                    self._shift(tree, position_left, width)
                distance = position_left - left
                self._query(src_tree).filter(
                    self._left_col >= left, self._right_col <= right
                ).update(
                    {
                        self._tree_col: tree,
                        self._left_col: self._left_col + distance,
                        self._right_col: self._right_col + distance,
                        self._depth_col: self._depth_col + depth_delta,
                    },
                    synchronize_session=False,
                )
                self._shift(src_tree, right + 1, -width)
        log.debug(
            "Moved subtree of %s %s %s",
            self.key_of(node),
            position,
            None if target is None else self.key_of(target),
        )
        return node

    # ------------------------------------------------------------------
    # Removal and soft state
    # ------------------------------------------------------------------
    def delete_subtree(self, node) -> int:
        """Hard delete ``node`` with its descendants, returns the row count"""
        self._require_saved(node)
        tree = self.tree_of(node)
        left, right = self.left_of(node), self.right_of(node)
        with self._transaction("delete_subtree"):
            count = (
                self._query(tree)
                .filter(self._left_col >= left, self._right_col <= right)
                .delete(synchronize_session=False)
            )
            self._shift(tree, right + 1, -(right - left + 1))
        log.debug("Deleted %s nodes from tree %s", count, tree)
        return count

    def delete_node(self, node):
        """Hard delete ``node`` alone, its children move up one level"""
        self._require_saved(node)
        tree = self.tree_of(node)
        left, right = self.left_of(node), self.right_of(node)
        if self.is_root(node) and right > left + 1:
            raise InvalidOperation(
                "Cannot delete a root node having children", node_key=self.key_of(node)
            )
        with self._transaction("delete_node"):
            self._query(tree).filter(self._key_col == self.key_of(node)).delete(
                synchronize_session=False
            )
            self._query(tree).filter(
                self._left_col > left, self._right_col < right
            ).update(
                {
                    self._left_col: self._left_col - 1,
                    self._right_col: self._right_col - 1,
                    self._depth_col: self._depth_col - 1,
                },
                synchronize_session=False,
            )
            self._shift(tree, right + 1, -2)

    def save(self, node):
        """Persist attribute changes of a saved node"""
        self._require_saved(node)
        with self._transaction("save"):
            pass
        return node

    def _set_active(self, node, active, cascade):
        self._require_saved(node)
        with self._transaction("activate" if active else "deactivate"):
            query = self._query(self.tree_of(node))
            if cascade:
                query = query.filter(
                    self._left_col >= self.left_of(node),
                    self._right_col <= self.right_of(node),
                )
            else:
                query = query.filter(self._key_col == self.key_of(node))
            query.update({self.model.active: active}, synchronize_session=False)
        return node

    def deactivate(self, node, cascade=False):
        """Soft delete, the intervals are left untouched"""
        return self._set_active(node, False, cascade)

    def activate(self, node, cascade=False):
        return self._set_active(node, True, cascade)

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------
    def validate_tree(self, tree=None) -> List[str]:
        """Check the nested set invariants of one tree, returns the violations"""
        if self._tree_col is not None and tree is None:
            errors = []
            for root in self.roots():
                errors.extend(self.validate_tree(self.tree_of(root)))
            return errors
        errors = []
        nodes = self.tree(tree)
        if not nodes:
            return errors
        bounds = []
        stack = []
        for node in nodes:
            key, left, right = self.key_of(node), self.left_of(node), self.right_of(node)
            depth = self.depth_of(node)
            if left >= right:
                errors.append(f"Node {key}: left {left} is not lower than right {right}")
            if (right - left) % 2 == 0:
                errors.append(f"Node {key}: interval [{left}, {right}] has odd width")
            while stack and self.right_of(stack[-1]) < left:
                stack.pop()
            if stack:
                parent = stack[-1]
                if right > self.right_of(parent):
                    errors.append(f"Node {key}: interval overlaps node {self.key_of(parent)}")
                if depth != self.depth_of(parent) + 1:
                    errors.append(
                        f"Node {key}: depth {depth} under parent depth "
                        f"{self.depth_of(parent)}"
                    )
            elif depth != 0:
                errors.append(f"Node {key}: top level node has depth {depth}")
            stack.append(node)
            bounds.extend((left, right))
        expected = list(range(1, 2 * len(nodes) + 1))
        if sorted(bounds) != expected:
            errors.append("Bounds are not a contiguous sequence starting at 1")
        return errors

    def count(self, tree=None) -> int:
        query = self.session.query(func.count(self._key_col))
        if self._tree_col is not None and tree is not None:
            query = query.filter(self._tree_col == tree)
        return query.scalar()
