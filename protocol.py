"""
Web-rooms wire format.

Every frame is a JSON array with the selector first:
  ["*enter-room*", "hand-sphere-room"]
  ["*broadcast-message*", ["move", 3, 0.42, 0.61]]
  ["*client-id*", 3]
Empty frames are keep-alives.
"""

from __future__ import annotations

import json
import math
import numbers

ENTER_ROOM = "*enter-room*"
EXIT_ROOM = "*exit-room*"
SUBSCRIBE_CLIENT_COUNT = "*subscribe-client-count*"
UNSUBSCRIBE_CLIENT_COUNT = "*unsubscribe-client-count*"
BROADCAST_MESSAGE = "*broadcast-message*"

CLIENT_ID = "*client-id*"
CLIENT_COUNT = "*client-count*"

MOVE = "move"
END = "end"

KEEPALIVE = ""

# Normalised coordinates; slack for fingertips tracked just off the frame.
MOVE_MIN = -0.5
MOVE_MAX = 1.5


def encode(selector: str, *args) -> str:
    return json.dumps([selector, *args])


def decode(text):
    """Parse one inbound frame. Returns a non-empty list or None."""
    if not text:
        return None
    try:
        msg = json.loads(text)
    except (TypeError, ValueError):
        return None
    if not isinstance(msg, list) or not msg or not isinstance(msg[0], str):
        return None
    return msg


def move_message(client_id: int, nx: float, ny: float) -> list:
    return [MOVE, int(client_id), float(nx), float(ny)]


def end_message(client_id: int) -> list:
    return [END, int(client_id)]


def _is_int(v) -> bool:
    return isinstance(v, numbers.Integral) and not isinstance(v, bool)


def _is_real(v) -> bool:
    return isinstance(v, numbers.Real) and not isinstance(v, bool)


def parse_int(msg):
    """[selector, int] -> int, else None."""
    if len(msg) < 2 or not _is_int(msg[1]):
        return None
    return int(msg[1])


def parse_move(msg):
    """["move", id, nx, ny] -> (id, nx, ny), else None."""
    if len(msg) < 4 or not _is_int(msg[1]):
        return None
    if not (_is_real(msg[2]) and _is_real(msg[3])):
        return None
    nx, ny = float(msg[2]), float(msg[3])
    if not (math.isfinite(nx) and math.isfinite(ny)):
        return None
    if not (MOVE_MIN <= nx <= MOVE_MAX and MOVE_MIN <= ny <= MOVE_MAX):
        return None
    return int(msg[1]), nx, ny
