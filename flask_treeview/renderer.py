"""
Single pass tree renderer.

Rows sorted by ``(root, left)`` are exactly the depth first preorder of
the forest, so nesting is decided from the ``depth`` transitions alone:
no recursion, no parent lookups and no in-memory tree object graph.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from flask_babel import lazy_gettext
from markupsafe import Markup

from .config import TreeViewConfig
from .const import ICON_CSS, MOVE_DOWN, MOVE_LEFT, MOVE_RIGHT, MOVE_UP
from .context import RenderContext
from .utils.html import add_css_class, begin_tag, end_tag, parse_bool, tag

log = logging.getLogger(__name__)

# Font Awesome classes of the default indicators and icons
DEFAULT_ICONS = {
    "expand": "far fa-plus-square",
    "collapse": "far fa-minus-square",
    "checked": "far fa-check-square",
    "unchecked": "far fa-square",
    "child": "fas fa-file",
    "parent": "fas fa-folder kv-node-closed",
    "parent_open": "fas fa-folder-open kv-node-opened",
}


@dataclass(frozen=True)
class NodeMeta:
    """UI metadata computed for one rendered node"""

    key: Any
    root: Any
    left: int
    right: int
    depth: int
    name: str
    is_leaf: bool
    active: bool = True
    visible: bool = True
    selected: bool = False
    collapsed: bool = False
    disabled: bool = False
    readonly: bool = False
    movable_u: bool = False
    movable_d: bool = False
    movable_l: bool = False
    movable_r: bool = False
    removable: bool = False
    removable_all: bool = False
    child_allowed: bool = False

    def is_movable(self, direction: str) -> bool:
        return getattr(self, "movable_" + direction)

    def data_attributes(self) -> Dict[str, Any]:
        attrs = {
            "data-key": self.key,
            "data-lft": self.left,
            "data-rgt": self.right,
            "data-lvl": self.depth,
            "data-disabled": parse_bool(self.disabled),
            "data-readonly": parse_bool(self.readonly),
            "data-movable-u": parse_bool(self.movable_u),
            "data-movable-d": parse_bool(self.movable_d),
            "data-movable-l": parse_bool(self.movable_l),
            "data-movable-r": parse_bool(self.movable_r),
            "data-removable": parse_bool(self.removable),
            "data-removable-all": parse_bool(self.removable_all),
            "data-child-allowed": parse_bool(self.child_allowed),
        }
        if self.root is not None:
            attrs["data-root"] = self.root
        return attrs


@dataclass
class RenderedTree:
    html: Markup
    nodes: List[NodeMeta] = field(default_factory=list)
    opened: int = 0
    closed: int = 0

    @property
    def empty(self) -> bool:
        return not self.nodes

    @property
    def balanced(self) -> bool:
        return self.opened == self.closed

    def get(self, key) -> Optional[NodeMeta]:
        for meta in self.nodes:
            if str(meta.key) == str(key):
                return meta
        return None

    def __html__(self):
        return self.html


class _Writer(object):
    """Markup accumulator counting the opened and closed tags"""

    def __init__(self):
        self.parts = []
        self.opened = 0
        self.closed = 0

    def open(self, name, attrs=None):
        """Append an opening tag, returns its position"""
        self.parts.append(begin_tag(name, attrs))
        self.opened += 1
        return len(self.parts) - 1

    def replace_tag(self, position, name, attrs):
        self.parts[position] = begin_tag(name, attrs)

    def close(self, name):
        self.parts.append(end_tag(name))
        self.closed += 1

    def raw(self, markup):
        self.parts.append(markup)

    def open_level(self, gap=False):
        # a level jump of more than one keeps lists nested in items
        if gap:
            self.open("li", {"class": "kv-tree-gap"})
        self.open("ul")

    def close_level(self):
        self.close("li")
        self.close("ul")

    def markup(self):
        return Markup("\n").join(self.parts)


class TreeRenderer(object):
    """
    Renders an ordered node sequence as nested ``<ul>``/``<li>`` markup
    carrying the per node data attributes used by the client script.

    :param config: the widget configuration
    :param icons: overrides of :data:`DEFAULT_ICONS`
    :param empty_message: placeholder shown when nothing is rendered
    """

    def __init__(
        self,
        config: TreeViewConfig = None,
        icons: Mapping[str, str] = None,
        empty_message: str = None,
    ):
        self.config = config or TreeViewConfig()
        self.structure = self.config.structure
        self.icons = dict(DEFAULT_ICONS)
        self.icons.update(icons or {})
        self.empty_message = (
            empty_message
            or self.config.empty_node_msg
            or lazy_gettext(
                "No valid %(nodes)s are available for display.",
                nodes=self.config.node_title_plural,
            )
        )

    # ------------------------------------------------------------------
    # Node attributes
    # ------------------------------------------------------------------
    def _coords(self, node):
        s = self.structure
        tree = getattr(node, s.tree_attribute) if s.has_forest else None
        return (
            tree,
            getattr(node, s.left_attribute),
            getattr(node, s.right_attribute),
            getattr(node, s.depth_attribute),
        )

    def is_displayed(self, node) -> bool:
        if not self.config.is_admin and not node.is_visible():
            return False
        if not self.config.show_inactive and not node.is_active():
            return False
        return True

    def node_label(self, node):
        key = getattr(node, self.structure.key_attribute)
        name = getattr(node, self.structure.name_attribute)
        label = self.config.node_label
        if label is None:
            return name
        if callable(label):
            return label(node)
        return label.get(key, label.get(str(key), name))

    def accepts_children(self, node) -> bool:
        return node.is_child_allowed() and not self.config.leaf_only

    def node_meta(
        self,
        node,
        parent=None,
        first=None,
        last=None,
        roots_before=0,
        prev_sibling=None,
    ):
        """
        Compute the metadata of ``node``. ``parent`` is the rendered
        parent when known, ``first``/``last`` tell the sibling position
        when the parent is not part of the rendered sequence.
        ``prev_sibling`` (the previous root for roots) is the target of a
        move right, it must accept children.
        """
        tree, left, right, depth = self._coords(node)
        if parent is not None:
            _, parent_left, parent_right, _ = self._coords(parent)
            first = left == parent_left + 1
            last = right + 1 == parent_right
        if prev_sibling is not None:
            target_ok = self.accepts_children(prev_sibling)
        else:
            target_ok = not self.config.leaf_only
        if depth == 0:
            positional = {
                MOVE_UP: False,
                MOVE_DOWN: False,
                MOVE_LEFT: False,
                MOVE_RIGHT: roots_before > 0 and target_ok,
            }
        else:
            positional = {
                MOVE_UP: not first,
                MOVE_DOWN: not last,
                MOVE_LEFT: depth > 1 or self.config.allow_new_roots,
                MOVE_RIGHT: not first and target_ok,
            }
        child_allowed = self.accepts_children(node)
        return NodeMeta(
            key=getattr(node, self.structure.key_attribute),
            root=tree,
            left=left,
            right=right,
            depth=depth,
            name=self.node_label(node),
            is_leaf=right == left + 1,
            active=node.is_active(),
            visible=node.is_visible(),
            selected=node.is_selected(),
            collapsed=node.is_collapsed(),
            disabled=node.is_disabled(),
            readonly=node.is_readonly(),
            movable_u=node.is_movable(MOVE_UP) and positional[MOVE_UP],
            movable_d=node.is_movable(MOVE_DOWN) and positional[MOVE_DOWN],
            movable_l=node.is_movable(MOVE_LEFT) and positional[MOVE_LEFT],
            movable_r=node.is_movable(MOVE_RIGHT) and positional[MOVE_RIGHT],
            removable=node.is_removable(),
            removable_all=node.is_removable_all(),
            child_allowed=child_allowed,
        )

    # ------------------------------------------------------------------
    # Markup pieces
    # ------------------------------------------------------------------
    def icon(self, name):
        return tag("i", "", {"class": self.icons[name]})

    def render_toggle_icon_container(self, root=False):
        content = tag("span", self.icon("expand"), {"class": "kv-node-expand"}) + tag(
            "span", self.icon("collapse"), {"class": "kv-node-collapse"}
        )
        css = "text-muted kv-root-node-toggle" if root else "text-muted kv-node-toggle"
        return tag("span", content, {"class": css})

    def render_checkbox_icon_container(self, root=False):
        content = tag("span", self.icon("checked"), {"class": "kv-node-checked"}) + tag(
            "span", self.icon("unchecked"), {"class": "kv-node-unchecked"}
        )
        css = (
            "text-success kv-root-node-checkbox"
            if root
            else "text-success kv-node-checkbox"
        )
        return tag("span", content, {"class": css})

    def render_node_icon(self, icon, icon_type, is_leaf=True):
        child_attrs = {"class": "text-info kv-node-icon kv-icon-child"}
        parent_attrs = {"class": "text-warning kv-node-icon kv-icon-parent"}
        if icon:
            attrs = child_attrs if is_leaf else parent_attrs
            if icon_type == ICON_CSS:
                icon = tag("span", "", {"class": self.config.icon_prefix + icon})
            else:
                icon = Markup(icon)
            return tag("span", icon, attrs)
        return tag(
            "span", self.icon("parent") + self.icon("parent_open"), parent_attrs
        ) + tag("span", self.icon("child"), child_attrs)

    def _node_css(self, node, meta, context):
        css = []
        if not meta.is_leaf:
            css.append("kv-parent")
        if not meta.visible and self.config.is_admin:
            css.append("kv-invisible")
        if self.config.show_checkbox and (
            meta.selected or context.is_checked(meta.key)
        ):
            css.append("kv-selected")
        if meta.collapsed:
            css.append("kv-collapsed")
        if meta.disabled:
            css.append("kv-disabled")
        if not meta.active:
            css.append("kv-inactive")
        return css

    def _node_attrs(self, node, meta, context):
        attrs = meta.data_attributes()
        add_css_class(attrs, self._node_css(node, meta, context))
        return attrs

    def _write_node(self, writer, node, meta, context):
        """Write the item of ``node``, returns the position of its tag"""
        attrs = self._node_attrs(node, meta, context)
        indicators = self.render_toggle_icon_container()
        if self.config.show_checkbox:
            indicators += self.render_checkbox_icon_container()
        icon = getattr(node, self.structure.icon_attribute)
        icon_type = getattr(node, self.structure.icon_type_attribute) or ICON_CSS
        position = writer.open("li", attrs)
        writer.raw(
            tag(
                "div",
                tag("div", indicators, {"class": "kv-node-indicators"})
                + tag(
                    "div",
                    self.render_node_icon(icon, icon_type, meta.is_leaf)
                    + tag("span", meta.name, {"class": "kv-node-label"}),
                    {"tabindex": -1, "class": "kv-node-detail"},
                ),
                {"tabindex": -1, "class": "kv-tree-list"},
            )
        )
        return position

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def render(self, nodes: Iterable[Any], context: RenderContext = None) -> RenderedTree:
        """
        Walk ``nodes`` once. Hidden or inactive nodes are skipped with
        their whole subtree, every opened level is closed at the end.
        """
        context = context or RenderContext()
        writer = _Writer()
        metas = []
        writer.open("ul", {"class": "kv-tree"})

        base_depth = None
        current = 0
        counter = 0
        skipped = None  # (tree, right) of the last hidden subtree
        ancestors = []
        last_seen = {}  # (tree, depth) -> last node seen there
        # (tree, depth) -> (meta index, tag position, node) of items
        # rendered without their parent, still waiting for a next sibling
        pending = {}
        prev_root = None
        roots_seen = 0

        for node in nodes:
            tree, left, right, depth = self._coords(node)
            if skipped and skipped[0] == tree and left < skipped[1]:
                continue
            skipped = None
            prev = last_seen.get((tree, depth))
            if prev is not None and self._coords(prev)[2] != left - 1:
                prev = None
            last_seen[(tree, depth)] = node
            waiting = pending.pop((tree, depth), None)
            if waiting is not None and self._coords(waiting[2])[2] == left - 1:
                self._set_movable_down(writer, metas, waiting, context)
            roots_before = roots_seen
            if depth == 0:
                prev, prev_root = prev_root, node
                roots_seen += 1
            if not self.is_displayed(node):
                skipped = (tree, right)
                continue

            if base_depth is None:
                base_depth = depth
            level = max(depth - base_depth, 0)
            if counter > 0:
                if level == current:
                    writer.close("li")
                elif level > current:
                    for unit in range(level - current):
                        writer.open_level(gap=unit > 0)
                else:
                    for _ in range(current - level):
                        writer.close_level()
                    writer.close("li")
            current = level

            while ancestors and not self._contains(ancestors[-1], tree, left, right):
                ancestors.pop()
            parent = None
            if ancestors and self._coords(ancestors[-1])[3] == depth - 1:
                parent = ancestors[-1]
            meta = self.node_meta(
                node,
                parent=parent,
                first=prev is None,
                # fixed up when a next sibling follows
                last=True,
                roots_before=roots_before,
                prev_sibling=prev,
            )
            position = self._write_node(writer, node, meta, context)
            if parent is None and depth > 0:
                pending[(tree, depth)] = (len(metas), position, node)
            metas.append(meta)
            ancestors.append(node)
            counter += 1

        if counter > 0:
            for _ in range(current):
                writer.close_level()
            writer.close("li")
        writer.close("ul")
        if counter == 0:
            writer.raw(tag("div", self.empty_message, {"class": "kv-tree-empty"}))
        log.debug("Rendered %s tree nodes", counter)
        return RenderedTree(
            html=writer.markup(), nodes=metas, opened=writer.opened, closed=writer.closed
        )

    def _set_movable_down(self, writer, metas, waiting, context):
        index, position, node = waiting
        meta = replace(
            metas[index], movable_d=node.is_movable(MOVE_DOWN)
        )
        metas[index] = meta
        writer.replace_tag(position, "li", self._node_attrs(node, meta, context))

    def _contains(self, ancestor, tree, left, right):
        a_tree, a_left, a_right, _ = self._coords(ancestor)
        return a_tree == tree and a_left < left and right < a_right
