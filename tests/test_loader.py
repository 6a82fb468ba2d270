import pytest
from sqlalchemy import select

from flask_treeview.config import TreeStructure
from flask_treeview.exceptions import ConfigurationError
from flask_treeview.models.sqla.loader import TreeLoader

from .base import Category, Tag


def names(nodes):
    return [node.name for node in nodes]


def test_load_ordered_forest(db, forest):
    query = db.session.query(Category).order_by(Category.root, Category.lft)
    nodes = TreeLoader(query).load()
    assert names(nodes) == ["Books", "Sci-fi", "Dune", "Fantasy", "Music"]


def test_for_model(db, forest):
    loader = TreeLoader.for_model(db.session, Category, tree=forest["books"].id)
    assert names(loader.load()) == ["Books", "Sci-fi", "Dune", "Fantasy"]


def test_unsorted_query_is_sorted(db, forest, caplog):
    query = db.session.query(Category).order_by(Category.name)
    with caplog.at_level("WARNING", logger="flask_treeview.models.sqla.loader"):
        nodes = TreeLoader(query).load()
    assert names(nodes) == ["Books", "Sci-fi", "Dune", "Fantasy", "Music"]
    assert "not ordered" in caplog.text


def test_select_statement(db, forest):
    stmt = select(Category).order_by(Category.root, Category.lft)
    nodes = TreeLoader(stmt, session=db.session).load()
    assert len(nodes) == 5


def test_select_requires_session(db):
    with pytest.raises(ConfigurationError):
        TreeLoader(select(Category))


def test_invalid_query_type():
    with pytest.raises(ConfigurationError):
        TreeLoader([1, 2, 3])


def test_query_of_columns(db):
    with pytest.raises(ConfigurationError):
        TreeLoader(db.session.query(Category.id, Category.name))


def test_query_of_one_column(db):
    with pytest.raises(ConfigurationError):
        TreeLoader(db.session.query(Category.lft))
    with pytest.raises(ConfigurationError):
        TreeLoader(select(Category.lft), session=db.session)


def test_model_without_tree_columns(db):
    with pytest.raises(ConfigurationError) as excinfo:
        TreeLoader(db.session.query(Tag))
    assert "lft" in str(excinfo.value)


def test_custom_structure_columns(db):
    structure = TreeStructure(left_attribute="left_bound")
    with pytest.raises(ConfigurationError):
        TreeLoader(db.session.query(Category), structure)
