from __future__ import annotations

import json

import pytest

import protocol


def test_encode_is_selector_first_array() -> None:
    assert json.loads(protocol.encode(protocol.ENTER_ROOM, "hand-sphere-room")) == [
        "*enter-room*",
        "hand-sphere-room",
    ]
    assert json.loads(protocol.encode(protocol.SUBSCRIBE_CLIENT_COUNT)) == ["*subscribe-client-count*"]


def test_broadcast_wraps_move() -> None:
    text = protocol.encode(protocol.BROADCAST_MESSAGE, protocol.move_message(3, 0.25, 0.75))
    assert json.loads(text) == ["*broadcast-message*", ["move", 3, 0.25, 0.75]]


def test_end_message() -> None:
    assert protocol.end_message(9) == ["end", 9]


@pytest.mark.parametrize("text", ["", None, "not json", "{}", "[]", "[1, 2]", '"move"', "[null]"])
def test_decode_rejects_empty_and_malformed(text) -> None:
    assert protocol.decode(text) is None


def test_decode_accepts_arrays() -> None:
    assert protocol.decode('["*client-count*", 4]') == ["*client-count*", 4]
    assert protocol.decode('["whatever"]') == ["whatever"]


def test_parse_int() -> None:
    assert protocol.parse_int(["*client-id*", 7]) == 7
    assert protocol.parse_int(["*client-id*"]) is None
    assert protocol.parse_int(["*client-id*", "7"]) is None
    assert protocol.parse_int(["*client-id*", True]) is None
    assert protocol.parse_int(["*client-id*", 7.5]) is None


def test_parse_move() -> None:
    assert protocol.parse_move(["move", 2, 0.5, 1]) == (2, 0.5, 1.0)
    assert protocol.parse_move(["move", 2, 0.5]) is None
    assert protocol.parse_move(["move", "2", 0.5, 0.5]) is None
    assert protocol.parse_move(["move", 2, "x", 0.5]) is None
    assert protocol.parse_move(["move", 2, float("nan"), 0.5]) is None
    assert protocol.parse_move(json.loads('["move", 2, Infinity, 0.5]')) is None


@pytest.mark.parametrize("nx, ny", [(1e308, 0.5), (0.5, -1e308), (2.0, 0.5), (0.5, -0.6)])
def test_parse_move_rejects_far_off_canvas(nx, ny) -> None:
    assert protocol.parse_move(["move", 2, nx, ny]) is None


def test_parse_move_allows_slight_overshoot() -> None:
    assert protocol.parse_move(["move", 2, -0.05, 1.05]) == (2, -0.05, 1.05)
