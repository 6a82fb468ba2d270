import logging

from flask_babel import lazy_gettext as _
from wtforms.fields import Field
from wtforms.validators import ValidationError

from .context import parse_keys
from .widgets.treeview_input import TreeViewInputWidget

log = logging.getLogger(__name__)


class TreeSelectField(Field):
    """
    Selects nodes of a nested set tree. The form data is the comma
    separated list of keys posted by the hidden tree input, ``data`` is
    the list of selected keys.

    ::

        class ProductForm(FlaskForm):
            categories = TreeSelectField(
                "Categories",
                query_factory=lambda: Category.query.order_by(
                    Category.root, Category.lft
                ),
            )
    """

    widget = TreeViewInputWidget()

    def __init__(
        self,
        label=None,
        validators=None,
        query_factory=None,
        treeview_config=None,
        multiple=None,
        coerce=str,
        **kwargs
    ):
        super(TreeSelectField, self).__init__(label, validators, **kwargs)
        self.query_factory = query_factory
        self.treeview_config = treeview_config
        if multiple is None:
            multiple = treeview_config.multiple if treeview_config else True
        self.multiple = multiple
        self.coerce = coerce

    def _value(self):
        if not self.data:
            return ""
        return ",".join(str(key) for key in self.data)

    def process_data(self, value):
        try:
            self.data = [self.coerce(key) for key in parse_keys(value)]
        except (TypeError, ValueError):
            self.data = []

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        keys = parse_keys(valuelist[0] if len(valuelist) == 1 else valuelist)
        try:
            self.data = [self.coerce(key) for key in keys]
        except (TypeError, ValueError):
            raise ValueError(self.gettext("Invalid node key"))

    def pre_validate(self, form):
        if not self.multiple and len(self.data or []) > 1:
            raise ValidationError(_("Only one node can be selected"))
