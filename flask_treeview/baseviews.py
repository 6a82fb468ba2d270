import logging

from flask import Blueprint

log = logging.getLogger(__name__)


def expose(url="/", methods=("GET",)):
    """
    Use this decorator to expose views on your view classes.

    :param url:
        Relative URL for the view
    :param methods:
        Allowed HTTP methods. By default only GET is allowed.
    """

    def wrap(f):
        if not hasattr(f, "_urls"):
            f._urls = []
        f._urls.append((url, methods))
        return f

    return wrap


class BaseView(object):
    """
    All views inherit from this class.
    It's constructor will register your exposed urls on a Flask blueprint.
    """

    route_base = None
    """ Override this if you want to define your own relative url """
    endpoint = None
    template_folder = "templates"
    static_folder = None
    default_view = "index"
    blueprint = None

    def __init__(self, endpoint=None, route_base=None):
        if endpoint:
            self.endpoint = endpoint
        if route_base is not None:
            self.route_base = route_base
        self.endpoint = self.endpoint or self.__class__.__name__.lower()
        if self.route_base is None:
            self.route_base = "/" + self.__class__.__name__.lower()

    def create_blueprint(self, endpoint=None, static_folder=None):
        """
        Create Flask blueprint. You will generally not use it
        """
        if endpoint:
            self.endpoint = endpoint
        self.blueprint = Blueprint(
            self.endpoint,
            self.__module__,
            url_prefix=self.route_base,
            template_folder=self.template_folder,
            static_folder=static_folder or self.static_folder,
        )
        self._register_urls()
        return self.blueprint

    def _register_urls(self):
        for attr_name in dir(self):
            attr = getattr(self, attr_name)
            if hasattr(attr, "_urls"):
                for url, methods in attr._urls:
                    log.debug(
                        "Registering route %s%s %s", self.route_base, url, methods
                    )
                    self.blueprint.add_url_rule(
                        url, attr_name, attr, methods=list(methods)
                    )

    def register(self, app):
        """Create the blueprint and register it on ``app``"""
        app.register_blueprint(self.create_blueprint())
        return self
