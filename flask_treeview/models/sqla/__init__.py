import logging
import re

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import as_declarative, DeclarativeMeta

log = logging.getLogger(__name__)

_camelcase_re = re.compile(r"([A-Z]+)(?=[a-z0-9])")


class SQLA(SQLAlchemy):
    """
    This is a child class of flask_SQLAlchemy
    It's purpose is to bind the declarative base of the original
    package to the tree view Model class, so that tree node models
    and the application models share one metadata.

    Use it and configure it just like flask_SQLAlchemy
    """

    def __init__(self, app=None, **kwargs):
        kwargs.setdefault("model_class", Model)
        super(SQLA, self).__init__(app, **kwargs)


class ModelDeclarativeMeta(DeclarativeMeta):
    """
    Base Model declarative meta for all Models definitions.
    Setup the table name based on the class camelcase name.
    """

    def __new__(cls, name, bases, namespace, **kwargs):
        if (
            "__tablename__" not in namespace
            and name != "Model"
            and not namespace.get("__abstract__", False)
        ):
            table_name = _camelcase_re.sub(r"_\1", name).lower().lstrip("_")
            namespace["__tablename__"] = table_name

        return super().__new__(cls, name, bases, namespace, **kwargs)


@as_declarative(name="Model", metaclass=ModelDeclarativeMeta)
class Model(object):
    """
    Use this class has the base for your models,
    it will define your table names automatically
    MyTree will be called my_tree on the database.

    ::

        from sqlalchemy import Integer, String
        from flask_treeview import Model
        from flask_treeview.mixins import NestedSetMixin

        class Category(NestedSetMixin, Model):
            id = Column(Integer, primary_key=True)

    """

    __table_args__ = {"extend_existing": True}
