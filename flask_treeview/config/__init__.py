"""
Flask-TreeView Configuration Package
"""

from .treeview import (
    APP_CONFIG_SESSION_KEY,
    APP_CONFIG_SETTINGS_KEY,
    BreadcrumbSettings,
    CacheSettings,
    IconEditSettings,
    TREEVIEW_CONFIG_PRESETS,
    TreeStructure,
    TreeViewConfig,
    create_custom_config,
    get_treeview_config,
)

__all__ = [
    "APP_CONFIG_SESSION_KEY",
    "APP_CONFIG_SETTINGS_KEY",
    "BreadcrumbSettings",
    "CacheSettings",
    "IconEditSettings",
    "TREEVIEW_CONFIG_PRESETS",
    "TreeStructure",
    "TreeViewConfig",
    "create_custom_config",
    "get_treeview_config",
]
