from flask_treeview.config import BreadcrumbSettings, TreeViewConfig
from flask_treeview.const import MOVE_DOWN, MOVE_LEFT, MOVE_RIGHT, MOVE_UP
from flask_treeview.exceptions import BoundaryError, InvalidOperation
from flask_treeview.manager import TreeManager
from flask_treeview.validators import REMOVE_DEACTIVATE, REMOVE_SUBTREE

from .base import Category, TreeTestCase


class TreeManagerTestCase(TreeTestCase):
    def manager(self, **config):
        return TreeManager(self.session, Category, TreeViewConfig(**config))

    def names(self, tree):
        return [node.name for node in self.store.tree(tree)]

    def test_create(self):
        node = self.manager().create(self.fantasy, name="Epic", icon="dragon")
        self.assertEqual(node.lvl, 2)
        self.assertEqual(node.icon, "dragon")
        self.assertEqual(self.names(self.books.id)[-1], "Epic")
        self.assertEqual(self.store.validate_tree(), [])

    def test_create_rejected_is_logged(self):
        with self.assertLogs("flask_treeview.manager", level="WARNING") as cm:
            with self.assertRaises(InvalidOperation):
                self.manager(leaf_only=True).create(self.books, name="Nope")
        self.assertIn("Rejected create", cm.output[0])

    def test_create_root(self):
        node = self.manager().create_root(name="Films")
        self.assertEqual((node.lft, node.rgt, node.root), (1, 2, node.id))
        with self.assertRaises(InvalidOperation):
            self.manager(allow_new_roots=False).create_root(name="Games")

    def test_edit_coordinates_rejected(self):
        with self.assertRaises(InvalidOperation):
            self.manager().save(self.dune, lft=10)

    def test_save(self):
        node = self.manager().save(self.dune, name="Dune Messiah", collapsed=True)
        node = self.reload(node)
        self.assertEqual(node.name, "Dune Messiah")
        self.assertTrue(node.collapsed)
        with self.assertRaises(InvalidOperation):
            self.manager().save(Category(name="Transient"), name="x")

    def test_soft_remove_keeps_coordinates(self):
        before = self.coordinates()
        plan = self.manager().remove(self.scifi)
        self.assertEqual(plan.operation, REMOVE_DEACTIVATE)
        self.assertEqual(self.coordinates(), before)
        self.assertFalse(self.reload(self.scifi).active)
        self.assertTrue(self.reload(self.dune).active)
        self.manager().activate(self.scifi)
        self.assertTrue(self.reload(self.scifi).active)

    def test_hard_remove(self):
        scifi = self.reload(self.scifi)
        scifi.removable_all = True
        self.session.commit()
        plan = self.manager(soft_delete=False).remove(scifi)
        self.assertEqual(plan.operation, REMOVE_SUBTREE)
        self.assertEqual(self.names(self.books.id), ["Books", "Fantasy"])
        self.assertEqual(self.store.validate_tree(), [])

    def test_move_sequence(self):
        manager = self.manager()
        manager.move(self.fantasy, MOVE_UP)
        self.assertEqual(self.names(self.books.id), ["Books", "Fantasy", "Sci-fi", "Dune"])
        manager.move(self.fantasy, MOVE_DOWN)
        self.assertEqual(self.names(self.books.id), ["Books", "Sci-fi", "Dune", "Fantasy"])
        manager.move(self.fantasy, MOVE_RIGHT)
        self.assertEqual(self.reload(self.fantasy).lvl, 2)
        manager.move(self.fantasy, MOVE_LEFT)
        self.assertEqual(self.reload(self.fantasy).lvl, 1)
        self.assertEqual(self.names(self.books.id), ["Books", "Sci-fi", "Dune", "Fantasy"])
        self.assertEqual(self.store.validate_tree(), [])

    def test_move_left_to_new_root(self):
        self.manager().move(self.scifi, MOVE_LEFT)
        scifi = self.reload(self.scifi)
        self.assertTrue(scifi.is_root())
        self.assertEqual(len(self.store.roots()), 3)
        self.assertEqual(self.store.validate_tree(), [])

    def test_move_root_right(self):
        self.manager().move(self.music, MOVE_RIGHT)
        self.assertEqual(self.names(self.books.id)[-1], "Music")
        self.assertEqual(self.reload(self.music).lvl, 1)

    def test_only_child_move_up(self):
        before = self.coordinates()
        with self.assertLogs("flask_treeview.manager", level="WARNING"):
            with self.assertRaises(BoundaryError):
                self.manager().move(self.dune, MOVE_UP)
        self.assertEqual(self.coordinates(), before)

    def test_coordinates(self):
        coordinates = self.manager().coordinates(self.scifi)
        self.assertEqual(
            coordinates,
            [
                {"key": self.scifi.id, "lft": 2, "rgt": 5, "lvl": 1, "root": self.books.id},
                {"key": self.dune.id, "lft": 3, "rgt": 4, "lvl": 2, "root": self.books.id},
            ],
        )

    def test_breadcrumbs(self):
        manager = self.manager()
        self.assertEqual(
            str(manager.breadcrumbs(self.dune)),
            'Books &raquo; Sci-fi &raquo; <span class="kv-crumb-active">Dune</span>',
        )
        settings = BreadcrumbSettings(depth=2, glue=" / ", active_css="")
        self.assertEqual(str(manager.breadcrumbs(self.dune, settings)), "Sci-fi / Dune")
        self.assertEqual(
            str(manager.breadcrumbs(Category(name="New"))),
            '<span class="kv-crumb-active">Untitled</span>',
        )
