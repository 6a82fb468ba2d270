"""
Payloads of the node mutation endpoints.
"""

from marshmallow import EXCLUDE, fields, Schema, validate

from .config import TreeStructure
from .const import ICON_CSS, ICON_RAW, MOVE_DIRECTIONS


class NodeKeySchema(Schema):
    """Schema of the requests addressing one node."""

    class Meta:
        unknown = EXCLUDE

    key = fields.Str(required=True, validate=validate.Length(min=1))


class NodeMoveSchema(NodeKeySchema):
    direction = fields.Str(required=True, validate=validate.OneOf(MOVE_DIRECTIONS))


class NodeSaveSchema(Schema):
    """
    Create or update request. Without ``key`` a new node is created under
    ``parent``, the root key as parent creates a new root.
    """

    class Meta:
        unknown = EXCLUDE

    key = fields.Str(load_default=None, allow_none=True)
    parent = fields.Str(load_default=None, allow_none=True)
    node_selected = fields.Str(data_key="nodeSelected", load_default=None)
    name = fields.Str(required=True, validate=validate.Length(min=1, max=60))
    icon = fields.Str(allow_none=True, validate=validate.Length(max=255))
    icon_type = fields.Int(validate=validate.OneOf((ICON_CSS, ICON_RAW)))
    description = fields.Str(allow_none=True)
    active = fields.Bool()
    selected = fields.Bool()
    disabled = fields.Bool()
    readonly = fields.Bool()
    visible = fields.Bool()
    collapsed = fields.Bool()
    movable_u = fields.Bool()
    movable_d = fields.Bool()
    movable_l = fields.Bool()
    movable_r = fields.Bool()
    removable = fields.Bool()
    removable_all = fields.Bool()
    child_allowed = fields.Bool()


class NodeSchema(Schema):
    """
    Serialized node of a ``NestedSetMixin`` model. The wire names are
    fixed, the attributes they are read from follow ``structure``.
    """

    key = fields.Raw()
    root = fields.Raw()
    lft = fields.Int()
    rgt = fields.Int()
    lvl = fields.Int()
    name = fields.Str()
    icon = fields.Str(allow_none=True)
    icon_type = fields.Int()
    description = fields.Str(allow_none=True)
    active = fields.Bool()
    selected = fields.Bool()
    disabled = fields.Bool()
    readonly = fields.Bool()
    visible = fields.Bool()
    collapsed = fields.Bool()
    movable_u = fields.Bool()
    movable_d = fields.Bool()
    movable_l = fields.Bool()
    movable_r = fields.Bool()
    removable = fields.Bool()
    removable_all = fields.Bool()
    child_allowed = fields.Bool()

    def __init__(self, structure: TreeStructure = None, **kwargs):
        structure = structure or TreeStructure()
        if not structure.has_forest:
            kwargs["exclude"] = tuple(kwargs.get("exclude", ())) + ("root",)
        super(NodeSchema, self).__init__(**kwargs)
        attributes = {
            "key": structure.key_attribute,
            "root": structure.tree_attribute,
            "lft": structure.left_attribute,
            "rgt": structure.right_attribute,
            "lvl": structure.depth_attribute,
            "name": structure.name_attribute,
            "icon": structure.icon_attribute,
            "icon_type": structure.icon_type_attribute,
        }
        for name, attribute in attributes.items():
            if name in self.fields:
                self.fields[name].attribute = attribute
