# Event name constants (stringly-typed protocol; canonical list lives here)

# server -> client, once per connection
T_HELLO = "hello"

# client -> server
T_JOIN_BOARD = "join-board"

# client -> server (and fanned out to the room)
T_DRAW_STROKE = "draw-stroke"
T_CURSOR_MOVE = "cursor-move"
T_CLEAR_BOARD = "clear-board"

# server -> client
T_LOAD_HISTORY = "load-history"
T_USER_LEFT = "user-left"
T_ERROR = "error"

CLIENT_EVENTS = frozenset({T_JOIN_BOARD, T_DRAW_STROKE, T_CURSOR_MOVE, T_CLEAR_BOARD})

# error codes carried by T_ERROR
E_INVALID_JSON = "invalid-json"
E_UNKNOWN_EVENT = "unknown-event"
E_MALFORMED_PAYLOAD = "malformed-payload"
