"""
Validated tree mutations.

:class:`TreeManager` glues the :class:`MutationValidator` to the
:class:`NestedSetStore`: every request is checked first and only then
applied in one store transaction.
"""

import logging
from typing import Any, Dict, List

from markupsafe import escape, Markup

from .config import BreadcrumbSettings, TreeViewConfig
from .const import (
    LOGMSG_INF_NODE_MOVED,
    LOGMSG_WAR_NODE_REJECTED,
    POSITION_ROOT,
)
from .exceptions import InvalidOperation, TreeViewError
from .models.sqla.nestedset import NestedSetStore
from .validators import (
    MutationValidator,
    REMOVE_DEACTIVATE,
    REMOVE_NODE,
    RemovePlan,
)

log = logging.getLogger(__name__)

# attributes a save request may change, coordinates are never editable
EDITABLE_ATTRIBUTES = (
    "description",
    "active",
    "selected",
    "disabled",
    "readonly",
    "visible",
    "collapsed",
    "movable_u",
    "movable_d",
    "movable_l",
    "movable_r",
    "removable",
    "removable_all",
    "child_allowed",
)


class TreeManager(object):
    """
    Entry point of the node mutations used by the views.

    ::

        manager = TreeManager(db.session, Category, config)
        node = manager.create(parent, name="Sci-fi")
        manager.move(node, MOVE_UP)

    :param session: SQLAlchemy session
    :param model: mapped class using ``NestedSetMixin``
    :param config: widget configuration, its structure and policies apply
    """

    def __init__(self, session, model, config: TreeViewConfig = None, autocommit=True):
        self.config = config or TreeViewConfig()
        self.model = model
        self.store = NestedSetStore(
            session, model, self.config.structure, autocommit=autocommit
        )
        self.validator = MutationValidator(self.store, self.config)

    @property
    def session(self):
        return self.store.session

    def get(self, key):
        return self.store.get(key)

    def _rejected(self, operation, node, error):
        key = None if node is None else self.store.key_of(node)
        log.warning(LOGMSG_WAR_NODE_REJECTED.format(operation, key, error.message))

    def _editable(self):
        s = self.config.structure
        return (s.name_attribute, s.icon_attribute, s.icon_type_attribute) + (
            EDITABLE_ATTRIBUTES
        )

    def _assign(self, node, values):
        editable = self._editable()
        for name, value in values.items():
            if name not in editable:
                raise InvalidOperation(f"Attribute '{name}' cannot be edited")
            if not hasattr(node, name):
                continue
            setattr(node, name, value)
        return node

    def new_node(self, **values):
        return self._assign(self.model(), values)

    def create(self, parent, node=None, **values):
        """Save a new node as the last child of ``parent``"""
        node = node if node is not None else self.new_node(**values)
        try:
            self.validator.create(parent)
        except TreeViewError as e:
            self._rejected("create", parent, e)
            raise
        self.store.insert_child(parent, node)
        log.info(
            "Created node %s under %s",
            self.store.key_of(node),
            self.store.key_of(parent),
        )
        return node

    def create_root(self, node=None, **values):
        node = node if node is not None else self.new_node(**values)
        try:
            self.validator.create_root()
        except TreeViewError as e:
            self._rejected("create_root", None, e)
            raise
        self.store.make_root(node)
        log.info("Created root node %s", self.store.key_of(node))
        return node

    def save(self, node, **values):
        """Update the display attributes and flags of a saved node"""
        if self.store.is_new(node):
            raise InvalidOperation("The node is not saved yet")
        self._assign(node, values)
        self.store.save(node)
        log.info("Saved node %s", self.store.key_of(node))
        return node

    def remove(self, node) -> RemovePlan:
        try:
            plan = self.validator.remove(node)
        except TreeViewError as e:
            self._rejected("remove", node, e)
            raise
        key = self.store.key_of(node)
        if plan.operation == REMOVE_DEACTIVATE:
            self.store.deactivate(node, cascade=plan.cascade)
        elif plan.operation == REMOVE_NODE:
            self.store.delete_node(node)
        else:
            self.store.delete_subtree(node)
        log.info("Removed node %s (%s)", key, plan.operation)
        return plan

    def move(self, node, direction):
        """Move ``node`` one step in ``direction`` (u, d, l or r)"""
        try:
            plan = self.validator.move(node, direction)
        except TreeViewError as e:
            self._rejected("move", node, e)
            raise
        if plan.position == POSITION_ROOT:
            self.store.make_root(node)
        else:
            self.store.move_subtree(node, plan.target, plan.position)
        log.info(LOGMSG_INF_NODE_MOVED.format(self.store.key_of(node), direction))
        return plan

    def activate(self, node, cascade=False):
        if self.store.is_new(node):
            raise InvalidOperation("The node is not saved yet")
        self.store.activate(node, cascade=cascade)
        log.info("Activated node %s", self.store.key_of(node))
        return node

    def coordinates(self, node) -> List[Dict[str, Any]]:
        """Coordinates of ``node`` and its descendants after a mutation"""
        s = self.config.structure
        result = []
        for item in self.store.descendants(node, include_self=True):
            coords = {
                "key": self.store.key_of(item),
                "lft": self.store.left_of(item),
                "rgt": self.store.right_of(item),
                "lvl": self.store.depth_of(item),
            }
            if s.has_forest:
                coords["root"] = self.store.tree_of(item)
            result.append(coords)
        return result

    def breadcrumbs(self, node, settings: BreadcrumbSettings = None) -> Markup:
        """
        Names of the ancestors of ``node`` down to the node itself joined
        by the glue, the last one wrapped in the active css class.
        """
        settings = settings or self.config.breadcrumbs
        name_attribute = self.config.structure.name_attribute

        def current(name):
            if settings.active_css:
                return Markup('<span class="%s">%s</span>') % (
                    settings.active_css,
                    name,
                )
            return escape(name)

        if node is None or self.store.is_new(node):
            return current(settings.untitled)
        if settings.depth:
            crumbs = self.store.ancestors(node, depth=settings.depth - 1)
        else:
            crumbs = self.store.ancestors(node)
        names = [escape(getattr(crumb, name_attribute)) for crumb in crumbs]
        names.append(current(getattr(node, name_attribute)))
        return Markup(settings.glue).join(names)
