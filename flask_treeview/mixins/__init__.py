"""
Flask-TreeView Model Mixins
"""

from .tree_mixins import NestedSetMixin

__all__ = ["NestedSetMixin"]
