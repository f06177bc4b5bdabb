"""
Interaction points fed to the particle field.

The local pointer already lives in raster pixels. Remote pointers arrive in
normalised [0..1] coordinates and are scaled by the current canvas size.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


OFFSCREEN = -2000.0


class CoordinateSpace(Enum):
    LOCAL = "local"
    NORMALIZED = "normalized"


@dataclass(frozen=True)
class InteractionPoint:
    identity: int | None
    x: float
    y: float
    space: CoordinateSpace = CoordinateSpace.NORMALIZED

    def to_raster(self, width: float, height: float) -> "InteractionPoint":
        if self.space is CoordinateSpace.LOCAL:
            return self
        return InteractionPoint(
            self.identity,
            float(self.x) * float(width),
            float(self.y) * float(height),
            CoordinateSpace.LOCAL,
        )


class LocalPointer:
    """Fingertip position of this client, in raster pixels."""

    def __init__(self):
        self.x = OFFSCREEN
        self.y = OFFSCREEN

    @property
    def valid(self) -> bool:
        return self.x > OFFSCREEN and self.y > OFFSCREEN

    def set_normalized(self, nx: float, ny: float, width: int, height: int) -> None:
        self.x = float(nx) * float(width)
        self.y = float(ny) * float(height)

    def clear(self) -> None:
        self.x = OFFSCREEN
        self.y = OFFSCREEN


class PointSource:
    def __init__(self, session, pointer: LocalPointer):
        self.session = session
        self.pointer = pointer

    def collect(self, width: int, height: int) -> list[InteractionPoint]:
        points = []
        if self.pointer.valid:
            points.append(InteractionPoint(
                self.session.own_id, self.pointer.x, self.pointer.y, CoordinateSpace.LOCAL
            ))
        for remote in self.session.remote_points.values():
            points.append(remote.to_raster(width, height))
        return points
