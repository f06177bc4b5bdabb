from __future__ import annotations

import json

import pytest

from params import Params
from pointers import OFFSCREEN, CoordinateSpace, InteractionPoint, LocalPointer, PointSource
from session import ClientSession
from sync_client import ConnectionState, SyncClient


def test_local_pointer_starts_offscreen() -> None:
    pointer = LocalPointer()
    assert not pointer.valid
    assert (pointer.x, pointer.y) == (OFFSCREEN, OFFSCREEN)


def test_local_pointer_scales_and_clears() -> None:
    pointer = LocalPointer()
    pointer.set_normalized(0.25, 0.5, 800, 600)
    assert pointer.valid
    assert (pointer.x, pointer.y) == (200.0, 300.0)

    pointer.clear()
    assert not pointer.valid


def test_collect_excludes_sentinel_local_point() -> None:
    session = ClientSession()
    session.upsert_remote(4, 0.5, 0.5)
    source = PointSource(session, LocalPointer())

    points = source.collect(800, 600)

    assert [p.identity for p in points] == [4]


def test_collect_local_first_then_remotes_in_raster_space() -> None:
    session = ClientSession()
    session.assign_id(1)
    session.upsert_remote(7, 0.1, 0.2)
    session.upsert_remote(3, 1.0, 1.0)
    pointer = LocalPointer()
    pointer.set_normalized(0.5, 0.5, 800, 600)

    points = PointSource(session, pointer).collect(800, 600)

    assert [p.identity for p in points] == [1, 7, 3]
    assert all(p.space is CoordinateSpace.LOCAL for p in points)
    assert (points[0].x, points[0].y) == (400.0, 300.0)
    assert (points[1].x, points[1].y) == pytest.approx((80.0, 120.0))
    assert (points[2].x, points[2].y) == (800.0, 600.0)


def test_local_point_carries_unassigned_identity() -> None:
    pointer = LocalPointer()
    pointer.set_normalized(0.5, 0.5, 100, 100)
    points = PointSource(ClientSession(), pointer).collect(100, 100)
    assert points[0].identity is None


def test_local_point_is_not_rescaled() -> None:
    p = InteractionPoint(1, 300.0, 200.0, CoordinateSpace.LOCAL)
    assert p.to_raster(800, 600) is p


@pytest.mark.parametrize("viewport", [(800, 600), (1920, 1080), (333, 777)])
def test_coordinate_round_trip_between_clients(viewport) -> None:
    params = Params()
    sender_session = ClientSession()
    sender = SyncClient(sender_session, params)
    sender.state = ConnectionState.JOINED
    wire = []
    sender._transmit = wire.append
    sender.handle_message('["*client-id*", 2]')

    assert sender.move_pointer(0.3, 0.65)

    # relay unwraps the broadcast payload
    receiver_session = ClientSession()
    receiver = SyncClient(receiver_session, params)
    receiver.handle_message('["*client-id*", 5]')
    receiver.handle_message(json.dumps(json.loads(wire[0])[1]))

    w, h = viewport
    points = PointSource(receiver_session, LocalPointer()).collect(w, h)
    assert len(points) == 1
    assert points[0].identity == 2
    assert (points[0].x, points[0].y) == pytest.approx((0.3 * w, 0.65 * h))
