"""
Pytest fixtures shared by the function style tests.
"""

import pytest

from flask_treeview import SQLA
from flask_treeview.models.sqla.nestedset import NestedSetStore

from .base import Category, create_app


@pytest.fixture
def app():
    app = create_app()
    with app.test_request_context():
        yield app


@pytest.fixture
def db(app):
    db = SQLA(app)
    db.create_all()
    yield db
    db.session.remove()
    db.drop_all()


@pytest.fixture
def store(db):
    return NestedSetStore(db.session, Category)


@pytest.fixture
def forest(store):
    """Books > (Sci-fi > Dune, Fantasy) and Music"""
    books = store.make_root(Category(name="Books"))
    scifi = store.insert_child(books, Category(name="Sci-fi"))
    dune = store.insert_child(scifi, Category(name="Dune"))
    fantasy = store.insert_child(books, Category(name="Fantasy"))
    music = store.make_root(Category(name="Music"))
    return {
        "books": books,
        "scifi": scifi,
        "dune": dune,
        "fantasy": fantasy,
        "music": music,
    }
