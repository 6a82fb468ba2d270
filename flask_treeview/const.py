"""
Constants shared by the tree view widgets, the nested set store
and the node mutation views.
"""

# Key posted by the client when a new root node is requested
ROOT_KEY = "KRAJEE~!~ROOT~!~NODE"

# Toolbar buttons
BTN_CREATE_ROOT = "create-root"
BTN_CREATE = "create"
BTN_REMOVE = "remove"
BTN_MOVE_UP = "move-up"
BTN_MOVE_DOWN = "move-down"
BTN_MOVE_LEFT = "move-left"
BTN_MOVE_RIGHT = "move-right"
BTN_REFRESH = "refresh"
BTN_SEPARATOR = "separator"

# Node icon storage types
ICON_CSS = 1
ICON_RAW = 2

# Move directions
MOVE_UP = "u"
MOVE_DOWN = "d"
MOVE_LEFT = "l"
MOVE_RIGHT = "r"
MOVE_DIRECTIONS = (MOVE_UP, MOVE_DOWN, MOVE_LEFT, MOVE_RIGHT)

# Positions understood by NestedSetStore.move_subtree
POSITION_APPEND = "append"
POSITION_PREPEND = "prepend"
POSITION_BEFORE = "before"
POSITION_AFTER = "after"
POSITION_ROOT = "root"
POSITIONS = (
    POSITION_APPEND,
    POSITION_PREPEND,
    POSITION_BEFORE,
    POSITION_AFTER,
    POSITION_ROOT,
)

# Node actions (client endpoints)
NODE_SAVE = "save"
NODE_MANAGE = "manage"
NODE_REMOVE = "remove"
NODE_MOVE = "move"

# Icon edit modes
ICONS_SHOW_TEXT = "text"
ICONS_SHOW_LIST = "list"
ICONS_SHOW_NONE = "none"

DEFAULT_SESSION_KEY = "kvNodeId"
SESSION_KEY_SUFFIX = "-nodesel"

LOGMSG_ERR_TREE_QUERY = "Tree query is invalid: {0}"
LOGMSG_WAR_TREE_UNSORTED = "Tree rows for {0} not ordered by (root, left), re-sorting"
LOGMSG_INF_NODE_MOVED = "Moved node {0} in direction {1}"
LOGMSG_WAR_NODE_REJECTED = "Rejected {0} on node {1}: {2}"
LOGMSG_WAR_SESSION_KEY = "Ignoring session key {0} requested by the client"
