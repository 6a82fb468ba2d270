"""
Small markup helpers shared by the renderer and the widgets.
"""

from markupsafe import escape, Markup
from wtforms.widgets import html_params

# void elements have no closing tag
VOID_ELEMENTS = frozenset(("input", "br", "hr", "img", "meta", "link"))


def add_css_class(attrs, classes):
    """
    Append ``classes`` (a string or a list) to the ``class`` entry of
    ``attrs`` without duplicates. Returns ``attrs``.
    """
    if isinstance(classes, str):
        classes = classes.split()
    current = attrs.get("class", "").split()
    for css in classes:
        css = css.strip()
        if css and css not in current:
            current.append(css)
    if current:
        attrs["class"] = " ".join(current)
    return attrs


def begin_tag(name, attrs=None):
    params = html_params(**(attrs or {}))
    if params:
        return Markup("<%s %s>") % (Markup(name), Markup(params))
    return Markup("<%s>") % Markup(name)


def end_tag(name):
    return Markup("</%s>") % Markup(name)


def tag(name, content="", attrs=None):
    """Build ``<name attrs>content</name>``, content is escaped unless Markup"""
    if name in VOID_ELEMENTS:
        return begin_tag(name, attrs)
    return begin_tag(name, attrs) + escape(content) + end_tag(name)


def parse_bool(value):
    """Booleans as 1/0 for data attributes"""
    return 1 if value else 0
