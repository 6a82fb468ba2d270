from .core import NodeDetailWidget, RenderTemplateWidget  # noqa: F401
from .treeview import TreeView  # noqa: F401
from .treeview_input import TreeViewInput, TreeViewInputWidget  # noqa: F401
