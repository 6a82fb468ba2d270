"""
JSON endpoints of the node mutations requested by the tree view client.
"""

import functools
import logging

from flask import current_app, jsonify, request, session
from flask_babel import lazy_gettext as _
from marshmallow import ValidationError
from werkzeug.exceptions import NotFound

from .baseviews import BaseView, expose
from .config import APP_CONFIG_SESSION_KEY, TreeViewConfig
from .const import (
    DEFAULT_SESSION_KEY,
    LOGMSG_WAR_SESSION_KEY,
    NODE_MANAGE,
    NODE_MOVE,
    NODE_REMOVE,
    NODE_SAVE,
    ROOT_KEY,
    SESSION_KEY_SUFFIX,
)
from .exceptions import BoundaryError, InvalidOperation, TreeViewError
from .manager import TreeManager
from .schemas import NodeKeySchema, NodeMoveSchema, NodeSaveSchema, NodeSchema
from .widgets.core import NodeDetailWidget

log = logging.getLogger(__name__)


def response(code, **kwargs):
    """JSON response with the ``status`` of the request"""
    kwargs.setdefault("status", "success" if code < 400 else "error")
    resp = jsonify(kwargs)
    resp.status_code = code
    return resp


def safe(f):
    """
    A decorator that maps the tree errors to JSON error responses,
    the tree state is unchanged on any of them.
    """

    @functools.wraps(f)
    def wraps(self, *args, **kwargs):
        try:
            return f(self, *args, **kwargs)
        except ValidationError as e:
            return response(
                400, message=str(_("Invalid request")), errors=e.messages
            )
        except NotFound as e:
            return response(404, message=e.description)
        except BoundaryError as e:
            return response(409, message=e.message, direction=e.direction)
        except InvalidOperation as e:
            return response(400, message=e.message)
        except TreeViewError as e:
            log.exception("Tree view error on %s", f.__name__)
            return response(500, message=e.message)
        except Exception as e:
            log.exception("Unexpected error on %s: %s", f.__name__, e)
            return response(500, message=str(_("Unexpected error")))

    return wraps


class TreeNodeView(BaseView):
    """
    Node mutation endpoints, register one per tree model::

        view = TreeNodeView(Category, db.session, config, route_base="/categories")
        view.register(app)

    ``node_actions`` of the widget configuration should point to
    :meth:`action_urls`.
    """

    route_base = "/treenode"
    default_view = "manage"
    save_schema = NodeSaveSchema()
    key_schema = NodeKeySchema()
    move_schema = NodeMoveSchema()

    def __init__(self, model, db_session, config: TreeViewConfig = None, **kwargs):
        super(TreeNodeView, self).__init__(**kwargs)
        self.model = model
        self.db_session = db_session
        self.config = config or TreeViewConfig()
        self.node_schema = NodeSchema(self.config.structure)
        self.detail_widget = NodeDetailWidget(self.config)

    def action_urls(self):
        return {
            NODE_SAVE: self.route_base + "/save",
            NODE_REMOVE: self.route_base + "/remove",
            NODE_MOVE: self.route_base + "/move",
            NODE_MANAGE: self.route_base + "/manage",
        }

    def get_manager(self):
        return TreeManager(self.db_session, self.model, self.config)

    @staticmethod
    def _payload():
        if request.is_json:
            return request.get_json() or {}
        return request.form.to_dict()

    def _get_node(self, manager, key):
        node = manager.get(key)
        if node is None:
            raise NotFound(str(_("Node %(key)s not found", key=key)))
        return node

    def _session_key(self, node_selected=None):
        """
        Session key receiving the saved node. A client may only name the
        configured key or a widget key ending with the selection suffix.
        """
        default = current_app.config.get(APP_CONFIG_SESSION_KEY, DEFAULT_SESSION_KEY)
        if not node_selected or node_selected == default:
            return default
        if node_selected.endswith(SESSION_KEY_SUFFIX) and len(node_selected) > len(
            SESSION_KEY_SUFFIX
        ):
            return node_selected
        log.warning(LOGMSG_WAR_SESSION_KEY.format(node_selected))
        return default

    def _attribute_values(self, values):
        """Rename the display fields of a payload to the model attributes"""
        s = self.config.structure
        names = {
            "name": s.name_attribute,
            "icon": s.icon_attribute,
            "icon_type": s.icon_type_attribute,
        }
        return {names.get(name, name): value for name, value in values.items()}

    @expose("/save", methods=["POST"])
    @safe
    def save(self):
        """Create a node (under ``parent`` or as a root) or update one"""
        values = self.save_schema.load(self._payload())
        key = values.pop("key")
        parent_key = values.pop("parent")
        session_key = self._session_key(values.pop("node_selected"))
        values = self._attribute_values(values)
        manager = self.get_manager()
        if key:
            node = manager.save(self._get_node(manager, key), **values)
            message = _("The %(node)s was saved.", node=self.config.node_title)
        elif not parent_key or parent_key == ROOT_KEY:
            node = manager.create_root(**values)
            message = _("The %(node)s was created.", node=self.config.node_title)
        else:
            parent = self._get_node(manager, parent_key)
            node = manager.create(parent, **values)
            message = _("The %(node)s was created.", node=self.config.node_title)
        key = manager.store.key_of(node)
        session[session_key] = key
        return response(
            200,
            message=str(message),
            node=self.node_schema.dump(node),
            coordinates=manager.coordinates(node),
        )

    @expose("/remove", methods=["POST"])
    @safe
    def remove(self):
        key = self.key_schema.load(self._payload())["key"]
        manager = self.get_manager()
        node = self._get_node(manager, key)
        plan = manager.remove(node)
        coordinates = []
        if plan.soft:
            coordinates = manager.coordinates(manager.get(key))
        return response(
            200,
            message=str(
                _("The %(node)s was removed successfully.", node=self.config.node_title)
            ),
            operation=plan.operation,
            soft=plan.soft,
            coordinates=coordinates,
        )

    @expose("/move", methods=["POST"])
    @safe
    def move(self):
        """Move one step in ``direction`` (u, d, l or r)"""
        values = self.move_schema.load(self._payload())
        manager = self.get_manager()
        node = self._get_node(manager, values["key"])
        manager.move(node, values["direction"])
        node = manager.get(values["key"])
        return response(
            200,
            message=str(_("The %(node)s was moved.", node=self.config.node_title)),
            node=self.node_schema.dump(node),
            coordinates=manager.coordinates(node),
        )

    @expose("/manage/<key>", methods=["GET"])
    @safe
    def manage(self, key):
        manager = self.get_manager()
        node = self._get_node(manager, key)
        breadcrumbs = manager.breadcrumbs(node)
        return response(
            200,
            node=self.node_schema.dump(node),
            breadcrumbs=str(breadcrumbs),
            html=str(self.detail_widget(node, breadcrumbs=breadcrumbs)),
        )
