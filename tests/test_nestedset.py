from flask_treeview.const import (
    POSITION_AFTER,
    POSITION_APPEND,
    POSITION_BEFORE,
    POSITION_PREPEND,
    POSITION_ROOT,
)
from flask_treeview.exceptions import ConfigurationError, InvalidOperation
from flask_treeview.models.sqla.nestedset import NestedSetStore

from .base import Category, MenuItem, SINGLE_TREE, Tag, TreeTestCase


class NestedSetStoreTestCase(TreeTestCase):
    def assertValid(self):
        self.assertEqual(self.store.validate_tree(), [])

    def names(self, nodes):
        return [node.name for node in nodes]

    def test_sample_forest(self):
        books, music = self.reload(self.books), self.reload(self.music)
        self.assertEqual((books.lft, books.rgt, books.lvl), (1, 8, 0))
        self.assertEqual(books.root, books.id)
        self.assertEqual((music.lft, music.rgt, music.root), (1, 2, music.id))
        scifi = self.reload(self.scifi)
        self.assertEqual((scifi.lft, scifi.rgt, scifi.lvl), (2, 5, 1))
        dune = self.reload(self.dune)
        self.assertEqual((dune.lft, dune.rgt, dune.lvl), (3, 4, 2))
        self.assertValid()

    def test_model_without_coordinates(self):
        with self.assertRaises(ConfigurationError):
            NestedSetStore(self.session, Tag)

    def test_queries(self):
        self.assertEqual(self.names(self.store.roots()), ["Books", "Music"])
        self.assertEqual(
            self.names(self.store.tree(self.books.id)),
            ["Books", "Sci-fi", "Dune", "Fantasy"],
        )
        self.assertEqual(
            self.names(self.store.children(self.books)), ["Sci-fi", "Fantasy"]
        )
        self.assertEqual(
            self.names(self.store.descendants(self.books)),
            ["Sci-fi", "Dune", "Fantasy"],
        )
        self.assertEqual(
            self.names(self.store.ancestors(self.dune)), ["Books", "Sci-fi"]
        )
        self.assertEqual(self.names(self.store.ancestors(self.dune, depth=1)), ["Sci-fi"])
        self.assertEqual(self.store.parent(self.dune).name, "Sci-fi")
        self.assertIsNone(self.store.parent(self.books))
        self.assertEqual(self.store.next_sibling(self.scifi).name, "Fantasy")
        self.assertEqual(self.store.prev_sibling(self.fantasy).name, "Sci-fi")
        self.assertIsNone(self.store.prev_sibling(self.scifi))
        self.assertIsNone(self.store.next_sibling(self.fantasy))
        self.assertEqual(self.store.prev_sibling(self.music).name, "Books")
        self.assertIsNone(self.store.prev_sibling(self.books))
        self.assertTrue(self.store.is_descendant_of(self.dune, self.books))
        self.assertFalse(self.store.is_descendant_of(self.books, self.dune))
        self.assertEqual(self.store.count(), 5)
        self.assertEqual(self.store.count(self.books.id), 4)

    def test_get(self):
        self.assertEqual(self.store.get(str(self.dune.id)).name, "Dune")
        self.assertIsNone(self.store.get("not-a-key"))
        self.assertIsNone(self.store.get(999))

    def test_insert_prepend_and_siblings(self):
        first = self.store.insert_child(
            self.books, Category(name="Poetry"), prepend=True
        )
        self.assertEqual(self.reload(first).lft, 2)
        self.store.insert_before(self.fantasy, Category(name="Horror"))
        self.store.insert_after(self.dune, Category(name="Foundation"))
        self.assertEqual(
            self.names(self.store.tree(self.books.id)),
            ["Books", "Poetry", "Sci-fi", "Dune", "Foundation", "Horror", "Fantasy"],
        )
        self.assertValid()

    def test_insert_next_to_root(self):
        with self.assertRaises(InvalidOperation):
            self.store.insert_before(self.books, Category(name="Nope"))
        with self.assertRaises(InvalidOperation):
            self.store.insert_after(self.books, Category(name="Nope"))

    def test_insert_under_unsaved_parent(self):
        with self.assertRaises(InvalidOperation):
            self.store.insert_child(Category(name="Ghost"), Category(name="Child"))

    def test_insert_saved_node(self):
        with self.assertRaises(InvalidOperation):
            self.store.insert_child(self.music, self.reload(self.dune))

    def test_move_before_and_after(self):
        self.store.move_subtree(self.fantasy, self.scifi, POSITION_BEFORE)
        self.assertEqual(
            self.names(self.store.tree(self.books.id)),
            ["Books", "Fantasy", "Sci-fi", "Dune"],
        )
        self.assertValid()
        self.store.move_subtree(self.fantasy, self.scifi, POSITION_AFTER)
        self.assertEqual(
            self.names(self.store.tree(self.books.id)),
            ["Books", "Sci-fi", "Dune", "Fantasy"],
        )
        self.assertValid()

    def test_move_append_and_prepend(self):
        self.store.move_subtree(self.fantasy, self.scifi, POSITION_APPEND)
        fantasy = self.reload(self.fantasy)
        self.assertEqual((fantasy.lft, fantasy.rgt, fantasy.lvl), (5, 6, 2))
        self.store.move_subtree(self.scifi, self.music, POSITION_PREPEND)
        self.assertEqual(
            self.names(self.store.tree(self.music.id)),
            ["Music", "Sci-fi", "Dune", "Fantasy"],
        )
        self.assertEqual(
            self.reload(self.books).rgt, 2
        )
        self.assertValid()

    def test_move_to_root(self):
        self.store.move_subtree(self.scifi, None, POSITION_ROOT)
        scifi = self.reload(self.scifi)
        self.assertEqual((scifi.root, scifi.lft, scifi.rgt, scifi.lvl), (scifi.id, 1, 4, 0))
        dune = self.reload(self.dune)
        self.assertEqual((dune.root, dune.lft, dune.lvl), (scifi.id, 2, 1))
        self.assertEqual(self.reload(self.books).rgt, 4)
        self.assertValid()

    def test_move_into_own_subtree(self):
        before = self.coordinates()
        with self.assertRaises(InvalidOperation):
            self.store.move_subtree(self.scifi, self.dune, POSITION_APPEND)
        with self.assertRaises(InvalidOperation):
            self.store.move_subtree(self.scifi, self.scifi, POSITION_APPEND)
        self.assertEqual(self.coordinates(), before)

    def test_move_in_place_is_noop(self):
        before = self.coordinates()
        self.store.move_subtree(self.scifi, self.fantasy, POSITION_BEFORE)
        self.assertEqual(self.coordinates(), before)

    def test_invalid_position(self):
        with self.assertRaises(InvalidOperation):
            self.store.move_subtree(self.scifi, self.fantasy, "sideways")

    def test_delete_subtree(self):
        count = self.store.delete_subtree(self.scifi)
        self.assertEqual(count, 2)
        self.assertEqual(self.names(self.store.tree(self.books.id)), ["Books", "Fantasy"])
        self.assertEqual(self.reload(self.fantasy).lft, 2)
        self.assertValid()

    def test_delete_node_lifts_children(self):
        dune_id = self.dune.id
        self.store.delete_node(self.scifi)
        dune = self.session.get(Category, dune_id)
        self.assertEqual((dune.lft, dune.rgt, dune.lvl), (2, 3, 1))
        self.assertEqual(
            self.names(self.store.tree(self.books.id)), ["Books", "Dune", "Fantasy"]
        )
        self.assertValid()

    def test_delete_root_with_children(self):
        with self.assertRaises(InvalidOperation):
            self.store.delete_node(self.books)

    def test_deactivate_keeps_intervals(self):
        before = self.coordinates()
        self.store.deactivate(self.scifi, cascade=True)
        self.assertEqual(self.coordinates(), before)
        self.assertFalse(self.reload(self.scifi).active)
        self.assertFalse(self.reload(self.dune).active)
        self.assertTrue(self.reload(self.fantasy).active)
        self.store.activate(self.scifi)
        self.assertTrue(self.reload(self.scifi).active)
        self.assertFalse(self.reload(self.dune).active)

    def test_validate_tree_reports_violations(self):
        dune = self.reload(self.dune)
        dune.lvl = 5
        self.session.commit()
        errors = self.store.validate_tree(self.books.id)
        self.assertEqual(len(errors), 1)
        self.assertIn("depth 5", errors[0])

    def test_failed_mutation_rolls_back(self):
        before = self.coordinates()
        # name is not nullable, the insert fails after the shift
        with self.assertRaises(Exception):
            self.store.insert_child(self.books, Category())
        self.assertEqual(self.coordinates(), before)


class SingleTreeTestCase(TreeTestCase):
    def setUp(self):
        super(SingleTreeTestCase, self).setUp()
        self.menu = NestedSetStore(self.session, MenuItem, SINGLE_TREE)

    def test_single_root(self):
        root = self.menu.make_root(MenuItem(name="Home"))
        self.menu.insert_child(root, MenuItem(name="About"))
        self.assertIsNone(self.session.get(MenuItem, root.id).root)
        with self.assertRaises(InvalidOperation):
            self.menu.make_root(MenuItem(name="Second"))
        self.assertEqual(self.menu.validate_tree(), [])
