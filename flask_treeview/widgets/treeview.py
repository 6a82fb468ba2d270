"""
Tree management widget.

Renders the searchable tree, the toolbar driving the node mutations
and the detail panel of the displayed node.
"""

import json
import logging
from typing import Any, Dict

from flask_babel import lazy_gettext
from markupsafe import escape, Markup

from ..config import TreeViewConfig
from ..const import (
    BTN_CREATE,
    BTN_CREATE_ROOT,
    BTN_MOVE_DOWN,
    BTN_MOVE_LEFT,
    BTN_MOVE_RIGHT,
    BTN_MOVE_UP,
    BTN_REFRESH,
    BTN_REMOVE,
    BTN_SEPARATOR,
    NODE_MANAGE,
    NODE_MOVE,
    NODE_REMOVE,
    NODE_SAVE,
    ROOT_KEY,
    SESSION_KEY_SUFFIX,
)
from ..context import RenderContext
from ..models.sqla.loader import TreeLoader
from ..renderer import TreeRenderer
from ..utils.html import add_css_class, tag

log = logging.getLogger(__name__)

DEFAULT_TOOLBAR_ORDER = (
    BTN_CREATE,
    BTN_CREATE_ROOT,
    BTN_REMOVE,
    BTN_SEPARATOR,
    BTN_MOVE_UP,
    BTN_MOVE_DOWN,
    BTN_MOVE_LEFT,
    BTN_MOVE_RIGHT,
    BTN_SEPARATOR,
    BTN_REFRESH,
)

# buttons enabled by the client once a node is selected
NODE_BUTTONS = (
    BTN_CREATE,
    BTN_REMOVE,
    BTN_MOVE_UP,
    BTN_MOVE_DOWN,
    BTN_MOVE_LEFT,
    BTN_MOVE_RIGHT,
)


def default_buttons(node_title="node"):
    return {
        BTN_CREATE: {
            "icon": "plus",
            "label": lazy_gettext("Add new"),
            "options": {"title": lazy_gettext("Add new %(node)s", node=node_title)},
        },
        BTN_CREATE_ROOT: {
            "icon": "tree",
            "label": lazy_gettext("Add new root"),
            "options": {"title": lazy_gettext("Add new root")},
        },
        BTN_REMOVE: {
            "icon": "trash",
            "label": lazy_gettext("Delete"),
            "options": {"title": lazy_gettext("Delete")},
        },
        BTN_MOVE_UP: {
            "icon": "arrow-up",
            "label": lazy_gettext("Move Up"),
            "options": {"title": lazy_gettext("Move Up")},
        },
        BTN_MOVE_DOWN: {
            "icon": "arrow-down",
            "label": lazy_gettext("Move Down"),
            "options": {"title": lazy_gettext("Move Down")},
        },
        BTN_MOVE_LEFT: {
            "icon": "arrow-left",
            "label": lazy_gettext("Move Left"),
            "options": {"title": lazy_gettext("Move Left")},
        },
        BTN_MOVE_RIGHT: {
            "icon": "arrow-right",
            "label": lazy_gettext("Move Right"),
            "options": {"title": lazy_gettext("Move Right")},
        },
        BTN_REFRESH: {
            "icon": "sync",
            "label": lazy_gettext("Refresh"),
            "options": {"title": lazy_gettext("Refresh")},
            "url": "",
        },
    }


class TreeView(object):
    """
    Manages a nested set tree: a searchable tree on the left, a detail
    panel on the right and a toolbar to create, remove and move nodes.

    ::

        query = db.session.query(Category).order_by(Category.root, Category.lft)
        tree = TreeView(query, get_treeview_config("admin"), id="categories")
        html = tree.render(RenderContext.from_request(session_key=tree.session_key))

    :param query: the ordered node query, validated at construction
    :param config: a :class:`TreeViewConfig`
    :param session: SQLAlchemy session, required for ``select()`` queries
    :param id: html id of the widget wrapper
    """

    wrapper_css = "kv-tree-wrapper"

    def __init__(
        self, query, config: TreeViewConfig = None, session=None, id="treeview"
    ):
        self.config = config or TreeViewConfig()
        self.id = id
        self.loader = TreeLoader(query, self.config.structure, session=session)
        self.renderer = TreeRenderer(self.config)

    @property
    def session_key(self) -> str:
        return self.id + SESSION_KEY_SUFFIX

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------
    def toolbar_buttons(self, request_url="") -> Dict[str, Dict[str, Any]]:
        """Default buttons merged with the configured overrides"""
        buttons = default_buttons(self.config.node_title)
        for key, value in self.config.toolbar.items():
            if value is False:
                buttons.pop(key, None)
            elif isinstance(value, dict) and key in buttons:
                merged = dict(buttons[key])
                merged.update(value)
                buttons[key] = merged
            elif isinstance(value, dict):
                buttons[key] = dict(value)
        if not self.config.allow_new_roots:
            buttons.pop(BTN_CREATE_ROOT, None)
        if BTN_REFRESH in buttons and not buttons[BTN_REFRESH].get("url"):
            buttons[BTN_REFRESH]["url"] = request_url
        return buttons

    def toolbar_order(self):
        return self.config.toolbar_order or DEFAULT_TOOLBAR_ORDER

    def messages(self) -> Dict[str, str]:
        title, plural = self.config.node_title, self.config.node_title_plural
        return {
            "invalidCreateNode": str(
                lazy_gettext("Cannot create node. Parent node is not saved or is invalid.")
            ),
            "emptyNode": str(lazy_gettext("(new)")),
            "removeNode": str(
                lazy_gettext("Are you sure you want to remove this %(node)s?", node=title)
            ),
            "nodeRemoved": str(
                lazy_gettext("The %(node)s was removed successfully.", node=title)
            ),
            "nodeRemoveError": str(
                lazy_gettext("Error while removing the %(node)s. Please try again later.", node=title)
            ),
            "nodeNewMove": str(
                lazy_gettext("Cannot move this %(node)s as the %(node)s details are not saved yet.", node=title)
            ),
            "nodeTop": str(
                lazy_gettext("Already at top-most %(node)s in the hierarchy.", node=title)
            ),
            "nodeBottom": str(
                lazy_gettext("Already at bottom-most %(node)s in the hierarchy.", node=title)
            ),
            "nodeLeft": str(
                lazy_gettext("Already at left-most %(node)s in the hierarchy.", node=title)
            ),
            "nodeRight": str(
                lazy_gettext("Already at right-most %(node)s in the hierarchy.", node=title)
            ),
            "emptyNodeRemoved": str(
                lazy_gettext("The untitled %(node)s was removed.", node=title)
            ),
            "selectNode": str(
                lazy_gettext("Select a %(node)s by clicking on one of the tree items.", node=title)
            ),
            "noNodes": str(lazy_gettext("No %(nodes)s found", nodes=plural)),
        }

    def client_options(self, context: RenderContext) -> Dict[str, Any]:
        """Options consumed by the client script, emitted as JSON"""
        config = self.config
        actions = {
            NODE_SAVE: "",
            NODE_MANAGE: "",
            NODE_REMOVE: "",
            NODE_MOVE: "",
        }
        actions.update(config.node_actions)
        return {
            "actions": actions,
            "messages": self.messages(),
            "formOptions": {"showFormButtons": config.show_form_buttons},
            "nodeSelected": self.session_key,
            "rootKey": ROOT_KEY,
            "isAdmin": config.is_admin,
            "softDelete": config.soft_delete,
            "showInactive": config.show_inactive,
            "multiple": config.multiple,
            "cascadeSelectChildren": config.cascade_select_children,
            "allowNewRoots": config.allow_new_roots,
            "hideUnmatchedSearchItems": config.hide_unmatched_search_items,
            "alertFadeDuration": config.alert_fade_duration,
            "showTooltips": config.show_tooltips,
            "enableCache": config.cache.enable,
            "cacheTimeout": config.cache.timeout,
            "breadcrumbs": {
                "depth": config.breadcrumbs.depth,
                "glue": config.breadcrumbs.glue,
                "activeCss": config.breadcrumbs.active_css,
                "untitled": config.breadcrumbs.untitled,
            },
            "iconsList": config.icon_edit.show,
            "refreshUrl": context.request_url,
        }

    def _options_json(self, context):
        return json.dumps(self.client_options(context), sort_keys=True)

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------
    def render_header(self):
        heading = ""
        if self.config.top_root_as_heading:
            heading = self.config.root_label
        elif self.config.heading_label:
            heading = self.config.heading_label
        search = tag(
            "input",
            attrs={
                "type": "text",
                "class": "form-control form-control-sm kv-search-input",
                "placeholder": lazy_gettext("Search..."),
            },
        ) + tag(
            "span",
            "×",
            {"class": "kv-search-clear", "title": lazy_gettext("Clear search results")},
        )
        return tag(
            "div",
            tag("div", heading, {"class": "kv-heading-container"})
            + tag("div", search, {"class": "kv-search-container"}),
            {"class": "kv-header-container"},
        )

    def render_root(self):
        if self.config.hide_top_root or self.config.top_root_as_heading:
            return Markup()
        toggle = self.renderer.render_toggle_icon_container(root=True)
        content = toggle
        if self.config.show_checkbox:
            content += self.renderer.render_checkbox_icon_container(root=True)
        content += tag("div", self.config.root_label, {"class": "kv-node-label"})
        return tag(
            "div", content, {"class": "kv-tree-root", "tabindex": -1}
        )

    def render_tree(self, nodes, context):
        rendered = self.renderer.render(nodes, context)
        if not rendered.balanced:
            # never expected, the renderer closes every level it opens
            log.error(
                "Unbalanced tree markup: %s opened, %s closed",
                rendered.opened,
                rendered.closed,
            )
        container = tag(
            "div",
            self.render_root() + rendered.html,
            {"id": self.id + "-tree", "class": "kv-tree-container"},
        )
        return container, rendered

    def render_button(self, key, button, enabled_keys):
        attrs = dict(button.get("options") or {})
        attrs.update({"type": "button", "data-button": key})
        add_css_class(attrs, "btn btn-outline-secondary kv-toolbar-btn kv-" + key)
        if not self.config.show_tooltips:
            attrs.pop("title", None)
        if button.get("always_disabled") or (
            key in NODE_BUTTONS and key not in enabled_keys
        ):
            attrs["disabled"] = True
        if key == BTN_REFRESH and button.get("url"):
            attrs["data-url"] = button["url"]
        icon = button.get("icon")
        content = Markup()
        if icon:
            content = tag("i", "", {"class": self.config.icon_prefix + icon})
        return tag("button", content, attrs)

    def render_toolbar(self, context=None, enabled_keys=()):
        """Footer toolbar, button groups are split on separators"""
        context = context or RenderContext()
        buttons = self.toolbar_buttons(context.request_url)
        groups = [[]]
        for key in self.toolbar_order():
            if key == BTN_SEPARATOR:
                if groups[-1]:
                    groups.append([])
                continue
            if key not in buttons:
                continue
            groups[-1].append(self.render_button(key, buttons[key], enabled_keys))
        markup = Markup().join(
            tag("div", Markup().join(group), {"class": "btn-group", "role": "group"})
            for group in groups
            if group
        )
        return tag(
            "div", markup, {"class": "kv-toolbar-container", "role": "toolbar"}
        )

    def _find(self, nodes, key):
        attribute = self.config.structure.key_attribute
        for node in nodes:
            if str(getattr(node, attribute)) == str(key):
                return node
        return None

    def breadcrumbs(self, nodes, node):
        """Breadcrumbs computed from the loaded nodes only"""
        s = self.config.structure
        settings = self.config.breadcrumbs
        tree = getattr(node, s.tree_attribute) if s.has_forest else None
        left, right = getattr(node, s.left_attribute), getattr(node, s.right_attribute)
        depth = getattr(node, s.depth_attribute)
        crumbs = []
        for item in nodes:
            if s.has_forest and getattr(item, s.tree_attribute) != tree:
                continue
            if getattr(item, s.left_attribute) < left and right < getattr(
                item, s.right_attribute
            ):
                crumbs.append(item)
        if settings.depth:
            crumbs = [
                item
                for item in crumbs
                if getattr(item, s.depth_attribute) > depth - settings.depth
            ]
        names = [escape(self.renderer.node_label(item)) for item in crumbs]
        current = self.renderer.node_label(node)
        if settings.active_css:
            current = tag("span", current, {"class": settings.active_css})
        names.append(escape(current))
        return Markup(settings.glue).join(names)

    def render_detail(self, nodes, context):
        node = None
        if context.display_value is not None:
            node = self._find(nodes, context.display_value)
        if node is None:
            return tag(
                "div",
                tag(
                    "div",
                    lazy_gettext(
                        "Select a %(node)s by clicking on one of the tree items.",
                        node=self.config.node_title,
                    ),
                    {"class": "kv-node-message"},
                ),
                {"class": "kv-detail-container"},
            )
        s = self.config.structure
        heading = tag(
            "div",
            tag("div", self.breadcrumbs(nodes, node), {"class": "kv-detail-crumbs"}),
            {"class": "kv-detail-heading"},
        )
        return tag(
            "div",
            heading,
            {
                "class": "kv-detail-container",
                "data-key": getattr(node, s.key_attribute),
            },
        )

    def render_hidden_input(self, context):
        value = "" if context.display_value is None else context.display_value
        return tag(
            "input",
            attrs={
                "type": "hidden",
                "id": self.session_key,
                "class": "kv-node-selected",
                "value": value,
            },
        )

    def render(self, context: RenderContext = None) -> Markup:
        """Render the whole widget for ``context``"""
        context = context or RenderContext()
        nodes = self.loader.load()
        tree, rendered = self.render_tree(nodes, context)
        enabled = ()
        if context.display_value is not None and rendered.get(context.display_value):
            meta = rendered.get(context.display_value)
            enabled = [BTN_REMOVE] if meta.removable else []
            if meta.child_allowed:
                enabled.append(BTN_CREATE)
            for direction, key in (
                ("u", BTN_MOVE_UP),
                ("d", BTN_MOVE_DOWN),
                ("l", BTN_MOVE_LEFT),
                ("r", BTN_MOVE_RIGHT),
            ):
                if meta.is_movable(direction):
                    enabled.append(key)
        body = tag(
            "div",
            tree + self.render_toolbar(context, enabled),
            {"class": "kv-tree-panel"},
        ) + self.render_detail(nodes, context)
        attrs = {
            "id": self.id,
            "class": self.wrapper_css,
            "data-krajee-treeview": self._options_json(context),
        }
        return tag(
            "div",
            self.render_header() + body + self.render_hidden_input(context),
            attrs,
        )

    def __html__(self):
        return self.render()
