from werkzeug.datastructures import MultiDict
from wtforms import Form

from flask_treeview.config import TreeViewConfig
from flask_treeview.exceptions import ConfigurationError
from flask_treeview.fields import TreeSelectField
from flask_treeview.widgets import TreeViewInput

from .base import TreeTestCase


class TreeViewInputTestCase(TreeTestCase):
    def test_requires_name_or_field(self):
        with self.assertRaises(ConfigurationError):
            TreeViewInput(self.ordered_query())

    def test_render_dropdown(self):
        widget = TreeViewInput(self.ordered_query(), name="categories")
        html = str(widget.render())
        self.assertIn('name="categories"', html)
        self.assertIn("kv-tree-input-value", html)
        self.assertIn("kv-tree-dropdown-container", html)
        self.assertIn("kv-tree-caret", html)
        self.assertIn("Select...", html)
        self.assertIn("kv-node-checkbox", html)
        self.assertNotIn("kv-toolbar-container", html)

    def test_selected_value(self):
        value = "{0},{1}".format(self.dune.id, self.music.id)
        widget = TreeViewInput(self.ordered_query(), name="categories", value=value)
        html = str(widget.render())
        self.assertIn('value="{0}"'.format(value), html)
        self.assertIn("Dune, Music", html)
        self.assertEqual(html.count("kv-selected"), 2)
        self.assertNotIn("kv-placeholder", html)

    def test_without_dropdown_with_toolbar(self):
        widget = TreeViewInput(
            self.ordered_query(),
            name="categories",
            as_dropdown=False,
            show_toolbar=True,
            config=TreeViewConfig(show_checkbox=False),
        )
        self.assertTrue(widget.config.show_checkbox)
        html = str(widget.render())
        self.assertNotIn("kv-tree-dropdown-container", html)
        self.assertIn("kv-toolbar-container", html)
        self.assertIn('data-button="move-up"', html)
        self.assertNotIn('data-button="create"', html)
        self.assertNotIn('data-button="create-root"', html)
        self.assertNotIn('data-button="remove"', html)


class TreeSelectFieldTestCase(TreeTestCase):
    def form_class(self, **kwargs):
        query_factory = self.ordered_query

        class CategoryForm(Form):
            categories = TreeSelectField(
                "Categories", query_factory=query_factory, **kwargs
            )

        return CategoryForm

    def test_process_formdata(self):
        form = self.form_class(coerce=int)(MultiDict({"categories": "3, 4"}))
        self.assertEqual(form.categories.data, [3, 4])
        self.assertTrue(form.validate())

    def test_single_selection(self):
        form = self.form_class(multiple=False)(MultiDict({"categories": "3,4"}))
        self.assertFalse(form.validate())
        form = self.form_class(treeview_config=TreeViewConfig(multiple=False))(
            MultiDict({"categories": "3"})
        )
        self.assertTrue(form.validate())

    def test_invalid_keys(self):
        form = self.form_class(coerce=int)(MultiDict({"categories": "3,abc"}))
        self.assertFalse(form.validate())

    def test_render(self):
        form = self.form_class()(data={"categories": [str(self.fantasy.id)]})
        self.assertEqual(form.categories._value(), str(self.fantasy.id))
        html = str(form.categories())
        self.assertIn('name="categories"', html)
        self.assertIn('id="categories"', html)
        self.assertIn('<span class="kv-tree-input-label">Fantasy</span>', html)

    def test_empty(self):
        form = self.form_class()()
        self.assertEqual(form.categories.data, [])
        self.assertEqual(form.categories._value(), "")
        self.assertIn("Select...", str(form.categories()))

    def test_missing_query_factory(self):
        class BareForm(Form):
            categories = TreeSelectField("Categories")

        with self.assertRaises(ConfigurationError):
            BareForm().categories()
