"""
Nested Set Tree Mixin for Flask-TreeView

Provides the node record used by the tree view widgets: the nested set
coordinates (root, left, right, depth), the display attributes and the
status flags driving what the user may do with each node.
"""

import logging

from sqlalchemy import Boolean, Column, Integer, SmallInteger, String, Text
from sqlalchemy import inspect as sa_inspect

from ..const import ICON_CSS, MOVE_DIRECTIONS

log = logging.getLogger(__name__)


class NestedSetMixin:
    """
    Hierarchical tree node stored as a nested set
    (modified preorder tree traversal).

    A node is an ancestor of another iff its ``[lft, rgt]`` interval
    strictly contains the other's within the same ``root``. Leaves have
    ``rgt == lft + 1`` and siblings are ordered by ascending ``lft``.

    Coordinates are maintained by
    :class:`flask_treeview.models.sqla.nestedset.NestedSetStore`,
    never assign them by hand on saved nodes.
    """

    root = Column(Integer, index=True, nullable=True)
    lft = Column(Integer, index=True, nullable=False, default=1)
    rgt = Column(Integer, index=True, nullable=False, default=2)
    lvl = Column(SmallInteger, index=True, nullable=False, default=0)
    name = Column(String(60), nullable=False)
    icon = Column(String(255), nullable=True)
    icon_type = Column(SmallInteger, nullable=False, default=ICON_CSS)
    description = Column(Text, nullable=True)

    active = Column(Boolean, nullable=False, default=True)
    selected = Column(Boolean, nullable=False, default=False)
    disabled = Column(Boolean, nullable=False, default=False)
    readonly = Column(Boolean, nullable=False, default=False)
    visible = Column(Boolean, nullable=False, default=True)
    collapsed = Column(Boolean, nullable=False, default=False)
    movable_u = Column(Boolean, nullable=False, default=True)
    movable_d = Column(Boolean, nullable=False, default=True)
    movable_l = Column(Boolean, nullable=False, default=True)
    movable_r = Column(Boolean, nullable=False, default=True)
    removable = Column(Boolean, nullable=False, default=True)
    removable_all = Column(Boolean, nullable=False, default=False)
    child_allowed = Column(Boolean, nullable=False, default=True)

    @staticmethod
    def _flag(value, default):
        # column defaults only apply on flush, transient nodes hold None
        return default if value is None else bool(value)

    def is_new(self) -> bool:
        """Whether the node has not been persisted yet"""
        state = sa_inspect(self, raiseerr=False)
        if state is None:
            return getattr(self, "id", None) is None
        return state.transient or state.pending

    def is_leaf(self) -> bool:
        """Reads the mixin columns, ``NestedSetStore.is_leaf`` follows the structure"""
        return self.rgt == self.lft + 1

    def is_root(self) -> bool:
        return self.lft == 1

    def is_active(self) -> bool:
        return self._flag(self.active, True)

    def is_visible(self) -> bool:
        return self._flag(self.visible, True)

    def is_selected(self) -> bool:
        return self._flag(self.selected, False)

    def is_disabled(self) -> bool:
        return self._flag(self.disabled, False)

    def is_readonly(self) -> bool:
        return self._flag(self.readonly, False)

    def is_collapsed(self) -> bool:
        return self._flag(self.collapsed, False)

    def is_movable(self, direction: str) -> bool:
        """
        Whether the node flags allow a move in ``direction``
        (one of ``u``, ``d``, ``l``, ``r``). Readonly and disabled
        nodes never move. Tree extremities are checked by the renderer
        and the mutation validator, not here.
        """
        if direction not in MOVE_DIRECTIONS:
            raise ValueError(f"Invalid move direction '{direction}'")
        if self.is_readonly() or self.is_disabled():
            return False
        return self._flag(getattr(self, "movable_" + direction), True)

    def is_removable(self) -> bool:
        if self.is_readonly() or self.is_disabled():
            return False
        return self._flag(self.removable, True)

    def is_removable_all(self) -> bool:
        if not self.is_removable():
            return False
        return self._flag(self.removable_all, False)

    def is_child_allowed(self) -> bool:
        if self.is_disabled():
            return False
        return self._flag(self.child_allowed, True)

    def __repr__(self):
        return (
            f"<{self.__class__.__name__}(id={getattr(self, 'id', None)}, "
            f"name='{self.name}', root={self.root}, lft={self.lft}, "
            f"rgt={self.rgt}, lvl={self.lvl})>"
        )
