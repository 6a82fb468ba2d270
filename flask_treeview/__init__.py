__author__ = "Flask-TreeView contributors"
__version__ = "1.0.0"

import logging

from flask import Blueprint

from .baseviews import BaseView, expose  # noqa: F401
from .config import (  # noqa: F401
    APP_CONFIG_SESSION_KEY,
    APP_CONFIG_SETTINGS_KEY,
    get_treeview_config,
    TreeStructure,
    TreeViewConfig,
)
from .const import DEFAULT_SESSION_KEY
from .context import RenderContext  # noqa: F401
from .exceptions import (  # noqa: F401
    BoundaryError,
    ConfigurationError,
    InvalidOperation,
    TreeViewError,
)
from .fields import TreeSelectField  # noqa: F401
from .manager import TreeManager  # noqa: F401
from .mixins import NestedSetMixin  # noqa: F401
from .models.sqla import Model, SQLA  # noqa: F401
from .models.sqla.loader import TreeLoader  # noqa: F401
from .models.sqla.nestedset import NestedSetStore  # noqa: F401
from .renderer import RenderedTree, TreeRenderer  # noqa: F401
from .validators import MutationValidator  # noqa: F401
from .views import TreeNodeView  # noqa: F401
from .widgets import TreeView, TreeViewInput, TreeViewInputWidget  # noqa: F401

log = logging.getLogger(__name__)


def init_app(app):
    """
    Register the tree view templates on ``app`` and set the
    configuration defaults.
    """
    app.config.setdefault(APP_CONFIG_SETTINGS_KEY, {})
    app.config.setdefault(APP_CONFIG_SESSION_KEY, DEFAULT_SESSION_KEY)
    if "treeview" not in app.blueprints:
        app.register_blueprint(
            Blueprint("treeview", __name__, template_folder="templates")
        )
    # fail fast on invalid application settings
    TreeViewConfig.from_app_config(app.config)
    log.debug("Tree view initialized for %s", app.name)
    return app
