"""
Request scoped state handed to the tree view render call.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from flask import current_app, has_request_context, request, session

from .config import APP_CONFIG_SESSION_KEY
from .const import DEFAULT_SESSION_KEY

log = logging.getLogger(__name__)


def parse_keys(value) -> Tuple[str, ...]:
    """Split the comma separated hidden input value into node keys"""
    if value is None:
        return ()
    if isinstance(value, (list, tuple, set)):
        items = value
    else:
        items = str(value).split(",")
    return tuple(str(item).strip() for item in items if str(item).strip())


@dataclass(frozen=True)
class RenderContext:
    """
    State of one render: the node shown in the detail panel, the keys
    checked in the selector and the url used by the refresh button.
    """

    display_value: Any = None
    checked: Tuple[str, ...] = field(default_factory=tuple)
    request_url: str = ""

    def __post_init__(self):
        object.__setattr__(self, "checked", parse_keys(self.checked))

    @property
    def value(self) -> str:
        return ",".join(self.checked)

    def is_checked(self, key) -> bool:
        return str(key) in self.checked

    @classmethod
    def from_request(
        cls, display_value=None, value=None, session_key: Optional[str] = None
    ):
        """
        Build the context of the current request. The key of the node
        saved by the previous request (stored in the session by the node
        views) wins over ``display_value`` and is consumed.
        """
        if not has_request_context():
            return cls(display_value=display_value, checked=value)
        session_key = session_key or current_app.config.get(
            APP_CONFIG_SESSION_KEY, DEFAULT_SESSION_KEY
        )
        selected = session.pop(session_key, None)
        if selected:
            log.debug("Displaying node %s selected in previous request", selected)
            display_value = selected
        return cls(display_value=display_value, checked=value, request_url=request.url)
