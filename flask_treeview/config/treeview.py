"""
Flask-TreeView Configuration

Immutable configuration for the tree view widgets. Every option that the
widgets understand is a named, validated field of a frozen dataclass;
changes are made by deriving a new configuration with ``replace``.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from ..const import (
    ICON_CSS,
    ICON_RAW,
    ICONS_SHOW_LIST,
    ICONS_SHOW_NONE,
    ICONS_SHOW_TEXT,
    NODE_MANAGE,
    NODE_MOVE,
    NODE_REMOVE,
    NODE_SAVE,
)
from ..exceptions import ConfigurationError

log = logging.getLogger(__name__)

APP_CONFIG_SETTINGS_KEY = "TREEVIEW_SETTINGS"
APP_CONFIG_SESSION_KEY = "TREEVIEW_SESSION_KEY"


def _plain(value):
    if dataclasses.is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, MappingProxyType):
        return {k: _plain(v) for k, v in value.items()}
    return value


def _freeze(mapping):
    if mapping is None:
        return MappingProxyType({})
    if isinstance(mapping, MappingProxyType):
        return mapping
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class TreeStructure:
    """Names of the node attributes holding the nested set coordinates"""

    key_attribute: str = "id"
    tree_attribute: Optional[str] = "root"
    left_attribute: str = "lft"
    right_attribute: str = "rgt"
    depth_attribute: str = "lvl"
    name_attribute: str = "name"
    icon_attribute: str = "icon"
    icon_type_attribute: str = "icon_type"

    def __post_init__(self):
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if f.name == "tree_attribute" and value is None:
                continue
            if not isinstance(value, str) or not value:
                raise ConfigurationError(
                    f"Tree structure attribute '{f.name}' must be a non empty string"
                )

    @property
    def has_forest(self) -> bool:
        return self.tree_attribute is not None

    def required_attributes(self) -> Tuple[str, ...]:
        names = [
            self.key_attribute,
            self.left_attribute,
            self.right_attribute,
            self.depth_attribute,
            self.name_attribute,
            self.icon_attribute,
            self.icon_type_attribute,
        ]
        if self.tree_attribute:
            names.insert(1, self.tree_attribute)
        return tuple(names)


@dataclass(frozen=True)
class IconEditSettings:
    """How node icons are edited in the detail form"""

    show: str = ICONS_SHOW_TEXT
    type: int = ICON_CSS
    list_data: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.show not in (ICONS_SHOW_TEXT, ICONS_SHOW_LIST, ICONS_SHOW_NONE):
            raise ConfigurationError(f"Invalid icon edit mode '{self.show}'")
        if self.type not in (ICON_CSS, ICON_RAW):
            raise ConfigurationError(f"Invalid icon type '{self.type}'")
        if self.show == ICONS_SHOW_LIST and not self.list_data:
            raise ConfigurationError(
                "Icon 'list_data' is mandatory when icons are shown as a list"
            )
        object.__setattr__(self, "list_data", _freeze(self.list_data))


@dataclass(frozen=True)
class BreadcrumbSettings:
    """Breadcrumbs displayed for the node in the detail panel"""

    depth: Optional[int] = None  # None or 0 digs up to the root
    glue: str = " &raquo; "
    active_css: str = "kv-crumb-active"
    untitled: str = "Untitled"

    def __post_init__(self):
        if self.depth is not None and self.depth < 0:
            raise ConfigurationError("Breadcrumb depth cannot be negative")


@dataclass(frozen=True)
class CacheSettings:
    """Client side cache of the node detail content"""

    enable: bool = True
    timeout: int = 300000  # milliseconds

    def __post_init__(self):
        if self.timeout < 0:
            raise ConfigurationError("Cache timeout cannot be negative")


@dataclass(frozen=True)
class TreeViewConfig:
    """Complete configuration of a TreeView widget"""

    structure: TreeStructure = field(default_factory=TreeStructure)

    # Behaviour
    is_admin: bool = False
    soft_delete: bool = True
    show_inactive: bool = False
    allow_new_roots: bool = True
    leaf_only: bool = False

    # Selection
    show_checkbox: bool = False
    multiple: bool = True
    cascade_select_children: bool = True

    # Root and heading
    hide_top_root: bool = False
    top_root_as_heading: bool = False
    root_label: str = "Root"
    heading_label: str = ""

    # Labels
    node_title: str = "node"
    node_title_plural: str = "nodes"
    node_label: Optional[Union[Mapping[Any, str], Callable[[Any], str]]] = None
    empty_node_msg: Optional[str] = None

    # Icons
    icon_prefix: str = "fas fa-"
    icon_edit: IconEditSettings = field(default_factory=IconEditSettings)

    # Toolbar
    toolbar: Mapping[str, Any] = field(default_factory=dict)
    toolbar_order: Tuple[str, ...] = ()
    show_tooltips: bool = True

    # Search and client behaviour
    hide_unmatched_search_items: bool = True
    alert_fade_duration: int = 1000
    cache: CacheSettings = field(default_factory=CacheSettings)

    # Detail panel
    breadcrumbs: BreadcrumbSettings = field(default_factory=BreadcrumbSettings)
    show_id_attribute: bool = True
    show_name_attribute: bool = True
    show_form_buttons: bool = True
    node_view: str = "treeview/node_detail.html"

    # Client endpoints
    node_actions: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.structure, TreeStructure):
            raise ConfigurationError("'structure' must be a TreeStructure")
        if not self.structure.has_forest and self.allow_new_roots:
            # a single tree table cannot hold more than one root
            object.__setattr__(self, "allow_new_roots", False)
        if self.node_label is not None and not (
            callable(self.node_label) or isinstance(self.node_label, Mapping)
        ):
            raise ConfigurationError("'node_label' must be a mapping or a callable")
        if self.alert_fade_duration < 0:
            raise ConfigurationError("'alert_fade_duration' cannot be negative")
        if not self.node_title or not self.node_title_plural:
            raise ConfigurationError("Node titles cannot be empty")
        unknown_actions = set(self.node_actions) - {
            NODE_SAVE,
            NODE_MANAGE,
            NODE_REMOVE,
            NODE_MOVE,
        }
        if unknown_actions:
            raise ConfigurationError(
                f"Unknown node actions: {', '.join(sorted(unknown_actions))}"
            )
        object.__setattr__(self, "toolbar_order", tuple(self.toolbar_order))
        for key in self.toolbar_order:
            if not isinstance(key, str):
                raise ConfigurationError("Toolbar order entries must be button keys")
        object.__setattr__(self, "toolbar", _freeze(self.toolbar))
        object.__setattr__(self, "node_actions", _freeze(self.node_actions))
        if isinstance(self.node_label, Mapping):
            object.__setattr__(self, "node_label", _freeze(self.node_label))

    def replace(self, **changes) -> "TreeViewConfig":
        """Return a new validated configuration with ``changes`` applied"""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            result[f.name] = _plain(value)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TreeViewConfig":
        """
        Build a configuration from plain values, nested settings may be
        given as dictionaries. Unknown keys are ignored with a warning.
        """
        nested = {
            "structure": TreeStructure,
            "icon_edit": IconEditSettings,
            "breadcrumbs": BreadcrumbSettings,
            "cache": CacheSettings,
        }
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                log.warning("Ignoring unknown tree view setting '%s'", key)
                continue
            if key in nested and isinstance(value, Mapping):
                try:
                    value = nested[key](**value)
                except TypeError as e:
                    raise ConfigurationError(f"Invalid '{key}' settings: {e}")
            kwargs[key] = value
        return cls(**kwargs)

    @classmethod
    def from_app_config(cls, app_config: Mapping[str, Any], **overrides):
        """
        Merge the application wide ``TREEVIEW_SETTINGS`` with the widget
        level ``overrides``. Nested settings are merged key by key.
        """
        settings = dict(app_config.get(APP_CONFIG_SETTINGS_KEY) or {})
        for key, value in overrides.items():
            base = settings.get(key)
            if isinstance(base, Mapping) and isinstance(value, Mapping):
                merged = dict(base)
                merged.update(value)
                settings[key] = merged
            else:
                settings[key] = value
        return cls.from_dict(settings)


TREEVIEW_CONFIG_PRESETS = {
    "default": TreeViewConfig(),
    "admin": TreeViewConfig(is_admin=True, show_inactive=True, soft_delete=True),
    "readonly": TreeViewConfig(
        allow_new_roots=False,
        show_form_buttons=False,
        toolbar_order=(),
        toolbar={
            "create": False,
            "create-root": False,
            "remove": False,
            "move-up": False,
            "move-down": False,
            "move-left": False,
            "move-right": False,
        },
    ),
    "picker": TreeViewConfig(show_checkbox=True, allow_new_roots=False),
}


def get_treeview_config(preset_name: str = "default") -> TreeViewConfig:
    """
    Get a tree view configuration by preset name

    Args:
        preset_name: Name of the preset configuration

    Returns:
        TreeViewConfig instance
    """
    if preset_name not in TREEVIEW_CONFIG_PRESETS:
        raise ConfigurationError(
            f"Unknown preset '{preset_name}'. "
            f"Available presets: {list(TREEVIEW_CONFIG_PRESETS.keys())}"
        )
    return TREEVIEW_CONFIG_PRESETS[preset_name]


def create_custom_config(**kwargs) -> TreeViewConfig:
    """Create a custom tree view configuration"""
    return TreeViewConfig.from_dict(kwargs)
