"""
Tree picker input.

A :class:`TreeView` reduced to a checkbox tree bound to one hidden form
input holding the comma separated keys of the checked nodes.
"""

import logging

from flask_babel import lazy_gettext
from markupsafe import Markup

from ..config import TreeViewConfig
from ..const import BTN_CREATE, BTN_CREATE_ROOT, BTN_REMOVE
from ..context import parse_keys, RenderContext
from ..exceptions import ConfigurationError
from ..utils.html import tag
from .treeview import TreeView

log = logging.getLogger(__name__)


class TreeViewInput(TreeView):
    """
    Tree view rendered as a form input.

    :param name: name of the hidden input, required without ``field``
    :param field: a WTForms field, its name and id are used
    :param value: selected keys, a comma separated string or a list
    :param as_dropdown: render the tree inside a dropdown menu
    :param show_toolbar: keep the (move only) toolbar below the tree
    :param placeholder: dropdown label when nothing is selected
    :param auto_close_on_select: close the dropdown after a single pick
    """

    wrapper_css = "kv-tree-wrapper kv-tree-input-widget"

    def __init__(
        self,
        query,
        config: TreeViewConfig = None,
        session=None,
        id=None,
        name=None,
        field=None,
        value="",
        as_dropdown=True,
        show_toolbar=False,
        placeholder=None,
        auto_close_on_select=True,
    ):
        if name is None and field is None:
            raise ConfigurationError(
                "Either 'name' or 'field' must be set for the tree input"
            )
        self.field = field
        self.name = name or field.name
        id = id or (field.id if field is not None else self.name)
        config = config or TreeViewConfig()
        toolbar = dict(config.toolbar)
        toolbar.update({BTN_CREATE: False, BTN_CREATE_ROOT: False, BTN_REMOVE: False})
        config = config.replace(show_checkbox=True, toolbar=toolbar)
        super(TreeViewInput, self).__init__(query, config, session=session, id=id)
        self.value = parse_keys(value)
        self.as_dropdown = as_dropdown
        self.show_toolbar = show_toolbar
        self.placeholder = placeholder or lazy_gettext("Select...")
        self.auto_close_on_select = auto_close_on_select

    def client_options(self, context):
        options = super(TreeViewInput, self).client_options(context)
        options.update(
            {
                "autoCloseOnSelect": self.auto_close_on_select,
                "isInput": True,
                "inputId": self.id,
                "placeholder": str(self.placeholder),
            }
        )
        return options

    def render_hidden_input(self, context):
        return tag(
            "input",
            attrs={
                "type": "hidden",
                "id": self.id,
                "name": self.name,
                "class": "kv-tree-input-value",
                "value": context.value,
            },
        )

    def selected_label(self, nodes, context):
        labels = [
            self.renderer.node_label(node)
            for node in nodes
            if context.is_checked(getattr(node, self.config.structure.key_attribute))
        ]
        if not labels:
            return tag("span", self.placeholder, {"class": "kv-placeholder"})
        return Markup(", ").join(labels)

    def render_dropdown(self, content, nodes, context):
        toggle = tag(
            "div",
            tag("span", self.selected_label(nodes, context), {"class": "kv-tree-input-label"})
            + tag("span", "", {"class": "kv-tree-caret caret"}),
            {
                "class": "form-control dropdown-toggle kv-tree-input",
                "data-toggle": "dropdown",
                "tabindex": 0,
            },
        )
        menu = tag("div", content, {"class": "dropdown-menu kv-tree-dropdown"})
        return tag("div", toggle + menu, {"class": "kv-tree-dropdown-container dropdown"})

    def render(self, context: RenderContext = None) -> Markup:
        if context is None:
            context = RenderContext(checked=self.value)
        nodes = self.loader.load()
        tree, _ = self.render_tree(nodes, context)
        content = self.render_header() + tree
        if self.show_toolbar:
            content += self.render_toolbar(context)
        attrs = {
            "id": self.id + "-tree-input",
            "class": self.wrapper_css,
            "data-krajee-treeview": self._options_json(context),
        }
        body = tag("div", content, attrs)
        if self.as_dropdown:
            body = self.render_dropdown(body, nodes, context)
        return body + self.render_hidden_input(context)


class TreeViewInputWidget(object):
    """
    WTForms widget rendering a field through :class:`TreeViewInput`.

    :param query_factory: callable returning the ordered node query
    :param config: the widget configuration
    :param kwargs: :class:`TreeViewInput` options
    """

    def __init__(self, query_factory=None, config=None, **kwargs):
        self.query_factory = query_factory
        self.config = config
        self.options = kwargs

    def __call__(self, field, **kwargs):
        query_factory = self.query_factory or getattr(field, "query_factory", None)
        if query_factory is None:
            raise ConfigurationError(f"No query factory for field '{field.name}'")
        config = self.config or getattr(field, "treeview_config", None)
        options = dict(self.options)
        options.update(kwargs)
        tree_input = TreeViewInput(
            query_factory(), config, field=field, value=field._value(), **options
        )
        return tree_input.render()
