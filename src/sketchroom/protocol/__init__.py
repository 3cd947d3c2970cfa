from .constants import (
    T_CLEAR_BOARD,
    T_CURSOR_MOVE,
    T_DRAW_STROKE,
    T_ERROR,
    T_HELLO,
    T_JOIN_BOARD,
    T_LOAD_HISTORY,
    T_USER_LEFT,
)

__all__ = [
    "T_CLEAR_BOARD",
    "T_CURSOR_MOVE",
    "T_DRAW_STROKE",
    "T_ERROR",
    "T_HELLO",
    "T_JOIN_BOARD",
    "T_LOAD_HISTORY",
    "T_USER_LEFT",
]
