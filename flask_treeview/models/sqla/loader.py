"""
Loads the ordered node rows rendered by the tree view widgets.
"""

import logging
from typing import Any, List

from sqlalchemy.orm import Query
from sqlalchemy.sql import Select

from ...config import TreeStructure
from ...const import LOGMSG_ERR_TREE_QUERY, LOGMSG_WAR_TREE_UNSORTED
from ...exceptions import ConfigurationError

log = logging.getLogger(__name__)

# predicates the renderer expects on every node
NODE_PREDICATES = (
    "is_active",
    "is_visible",
    "is_disabled",
    "is_readonly",
    "is_selected",
    "is_collapsed",
    "is_movable",
    "is_removable",
    "is_removable_all",
    "is_child_allowed",
)


class TreeLoader(object):
    """
    Fetches the whole forest (or a bounded subtree) in one pass, sorted
    ascending by ``(root, left)``. The renderer relies on that order being
    the depth first preorder of the tree.

    :param query: an ORM ``Query`` or a ``select()`` of the tree model
    :param structure: attribute names of the node coordinates
    :param session: required when ``query`` is a ``select()``
    """

    def __init__(self, query, structure: TreeStructure = None, session=None):
        self.structure = structure or TreeStructure()
        self.query = query
        self.session = session
        self.model = self._validate()

    def _fail(self, reason):
        log.error(LOGMSG_ERR_TREE_QUERY.format(reason))
        raise ConfigurationError(reason)

    def _validate(self):
        if not isinstance(self.query, (Query, Select)):
            self._fail(
                "The 'query' must be a SQLAlchemy Query or Select, "
                f"got '{type(self.query).__name__}'"
            )
        if isinstance(self.query, Select) and self.session is None:
            self._fail("A session is required to execute a 'select()' tree query")
        descriptions = self.query.column_descriptions
        if (
            len(descriptions) != 1
            or descriptions[0].get("entity") is None
            or descriptions[0].get("type") is not descriptions[0]["entity"]
        ):
            self._fail("The tree query must select exactly one mapped model")
        model = descriptions[0]["entity"]
        missing = [
            name
            for name in self.structure.required_attributes()
            if not hasattr(model, name)
        ]
        if missing:
            self._fail(
                f"Model '{model.__name__}' lacks the tree columns: {', '.join(missing)}"
            )
        missing = [name for name in NODE_PREDICATES if not callable(getattr(model, name, None))]
        if missing:
            self._fail(
                f"Model '{model.__name__}' must use NestedSetMixin, "
                f"missing: {', '.join(missing)}"
            )
        return model

    def _sort_key(self, node):
        tree = getattr(node, self.structure.tree_attribute) if self.structure.has_forest else 0
        # unsaved roots sort first
        return (tree if tree is not None else 0, getattr(node, self.structure.left_attribute))

    def load(self) -> List[Any]:
        if isinstance(self.query, Select):
            nodes = self.session.scalars(self.query).all()
        else:
            nodes = self.query.all()
        keys = [self._sort_key(node) for node in nodes]
        if any(a > b for a, b in zip(keys, keys[1:])):
            log.warning(LOGMSG_WAR_TREE_UNSORTED.format(self.model.__name__))
            nodes = sorted(nodes, key=self._sort_key)
        log.debug("Loaded %s %s tree nodes", len(nodes), self.model.__name__)
        return list(nodes)

    @classmethod
    def for_model(cls, session, model, structure: TreeStructure = None, tree=None):
        """Build a loader with the canonical ``(root, left)`` ordering"""
        structure = structure or TreeStructure()
        query = session.query(model)
        if structure.has_forest:
            tree_col = getattr(model, structure.tree_attribute)
            if tree is not None:
                query = query.filter(tree_col == tree)
            query = query.order_by(tree_col)
        query = query.order_by(getattr(model, structure.left_attribute))
        return cls(query, structure)
