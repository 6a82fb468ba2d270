import logging

from flask import current_app
from markupsafe import Markup

log = logging.getLogger(__name__)


class RenderTemplateWidget(object):
    """
    Base template for the template driven widgets.
    Enables the possibility of rendering a template inside a template
    with run time options.
    """

    template = "treeview/node_detail.html"
    template_args = None

    def __init__(self, template=None, **kwargs):
        if template:
            self.template = template
        self.template_args = kwargs

    def __call__(self, **kwargs):
        jinja_env = current_app.jinja_env
        template = jinja_env.get_template(self.template)
        args = self.template_args.copy()
        args.update(kwargs)
        return Markup(template.render(args))


class NodeDetailWidget(RenderTemplateWidget):
    """
    Detail panel of one node: breadcrumbs, attributes and the
    flags the node form may change.
    """

    def __init__(self, config, template=None, **kwargs):
        super(NodeDetailWidget, self).__init__(
            template=template or config.node_view, **kwargs
        )
        self.config = config

    def __call__(self, node, breadcrumbs="", **kwargs):
        s = self.config.structure
        return super(NodeDetailWidget, self).__call__(
            node=node,
            key=getattr(node, s.key_attribute),
            name=getattr(node, s.name_attribute),
            icon=getattr(node, s.icon_attribute),
            breadcrumbs=breadcrumbs,
            config=self.config,
            **kwargs
        )
