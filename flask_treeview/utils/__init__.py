from .html import add_css_class, begin_tag, end_tag, parse_bool, tag  # noqa: F401
