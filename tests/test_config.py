import dataclasses
import unittest

from flask_treeview.config import (
    BreadcrumbSettings,
    CacheSettings,
    create_custom_config,
    get_treeview_config,
    IconEditSettings,
    TREEVIEW_CONFIG_PRESETS,
    TreeStructure,
    TreeViewConfig,
)
from flask_treeview.const import ICONS_SHOW_LIST
from flask_treeview.exceptions import ConfigurationError


class TreeViewConfigTestCase(unittest.TestCase):
    def test_defaults(self):
        config = TreeViewConfig()
        self.assertTrue(config.soft_delete)
        self.assertTrue(config.allow_new_roots)
        self.assertFalse(config.is_admin)
        self.assertEqual(config.structure.left_attribute, "lft")
        self.assertEqual(config.cache.timeout, 300000)
        self.assertEqual(config.breadcrumbs.glue, " &raquo; ")

    def test_frozen(self):
        config = TreeViewConfig()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.is_admin = True
        with self.assertRaises(TypeError):
            config.toolbar["create"] = False

    def test_replace_validates(self):
        config = TreeViewConfig().replace(is_admin=True)
        self.assertTrue(config.is_admin)
        with self.assertRaises(ConfigurationError):
            config.replace(alert_fade_duration=-1)

    def test_single_tree_disables_new_roots(self):
        config = TreeViewConfig(structure=TreeStructure(tree_attribute=None))
        self.assertFalse(config.allow_new_roots)

    def test_invalid_values(self):
        with self.assertRaises(ConfigurationError):
            TreeStructure(left_attribute="")
        with self.assertRaises(ConfigurationError):
            TreeViewConfig(node_label="not a mapping")
        with self.assertRaises(ConfigurationError):
            TreeViewConfig(node_actions={"explode": "/boom"})
        with self.assertRaises(ConfigurationError):
            IconEditSettings(show=ICONS_SHOW_LIST)
        with self.assertRaises(ConfigurationError):
            CacheSettings(timeout=-5)
        with self.assertRaises(ConfigurationError):
            BreadcrumbSettings(depth=-1)

    def test_from_dict(self):
        config = TreeViewConfig.from_dict(
            {
                "is_admin": True,
                "breadcrumbs": {"depth": 2},
                "structure": {"name_attribute": "title"},
                "unknown_option": 1,
            }
        )
        self.assertTrue(config.is_admin)
        self.assertEqual(config.breadcrumbs.depth, 2)
        self.assertEqual(config.breadcrumbs.glue, " &raquo; ")
        self.assertEqual(config.structure.name_attribute, "title")
        with self.assertRaises(ConfigurationError):
            TreeViewConfig.from_dict({"cache": {"ttl": 1}})

    def test_from_app_config(self):
        app_config = {
            "TREEVIEW_SETTINGS": {
                "show_inactive": True,
                "cache": {"enable": False, "timeout": 10},
            }
        }
        config = TreeViewConfig.from_app_config(
            app_config, cache={"timeout": 20}, is_admin=True
        )
        self.assertTrue(config.show_inactive)
        self.assertTrue(config.is_admin)
        self.assertFalse(config.cache.enable)
        self.assertEqual(config.cache.timeout, 20)
        self.assertEqual(TreeViewConfig.from_app_config({}), TreeViewConfig())

    def test_to_dict(self):
        data = TreeViewConfig(toolbar={"create": False}).to_dict()
        self.assertEqual(data["toolbar"], {"create": False})
        self.assertEqual(data["structure"]["key_attribute"], "id")
        self.assertEqual(TreeViewConfig.from_dict(data), TreeViewConfig(toolbar={"create": False}))

    def test_presets(self):
        self.assertEqual(set(TREEVIEW_CONFIG_PRESETS), {"default", "admin", "readonly", "picker"})
        self.assertTrue(get_treeview_config("admin").is_admin)
        self.assertTrue(get_treeview_config("picker").show_checkbox)
        self.assertFalse(get_treeview_config("readonly").toolbar["remove"])
        with self.assertRaises(ConfigurationError):
            get_treeview_config("unknown")

    def test_create_custom_config(self):
        config = create_custom_config(multiple=False, node_title="category")
        self.assertFalse(config.multiple)
        self.assertEqual(config.node_title, "category")
