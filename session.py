from __future__ import annotations

from pointers import CoordinateSpace, InteractionPoint


class ClientSession:
    """
    Shared registry between the relay connection and the frame loop.

    Only mutated from the frame loop thread (via SyncClient.pump), so the
    per-frame read never sees a half-applied message.
    """

    def __init__(self):
        self.own_id = None
        self.participant_count = 0
        self.remote_points = {}  # identity -> InteractionPoint (normalised)

    def assign_id(self, client_id: int) -> bool:
        if self.own_id is not None:
            return False
        self.own_id = int(client_id)
        # A point we stored before learning our id may have been our own echo.
        self.remote_points.pop(self.own_id, None)
        return True

    def set_count(self, count: int) -> None:
        self.participant_count = int(count)

    def upsert_remote(self, identity: int, nx: float, ny: float) -> bool:
        if self.own_id is not None and identity == self.own_id:
            return False
        self.remote_points[identity] = InteractionPoint(
            identity, float(nx), float(ny), CoordinateSpace.NORMALIZED
        )
        return True

    def remove_remote(self, identity: int) -> None:
        self.remote_points.pop(identity, None)

    def reset(self) -> None:
        self.own_id = None
        self.participant_count = 0
        self.remote_points.clear()
