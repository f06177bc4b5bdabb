from __future__ import annotations

import cv2
import numpy as np

from sync_client import ConnectionState


def hex_to_bgr(color: str):
    c = color.lstrip("#")
    r, g, b = int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)
    return (b, g, r)


class Renderer:
    """Trail-fade canvas with one filled circle per particle and a status line."""

    def __init__(self, params):
        self.params = params
        self.palette = [hex_to_bgr(c) for c in params.palette]
        self.neutral = hex_to_bgr(params.neutral_color)
        self.canvas = None
        self._black = None

    def resize(self, width: int, height: int):
        self.canvas = np.zeros((int(height), int(width), 3), dtype=np.uint8)
        self._black = np.zeros_like(self.canvas)

    def color_of(self, index: int):
        return self.neutral if index < 0 else self.palette[index % len(self.palette)]

    def fade(self):
        a = self.params.fade_alpha
        cv2.addWeighted(self.canvas, 1.0 - a, self._black, a, 0.0, dst=self.canvas)

    def draw_particles(self, particles):
        img = self.canvas
        for (x, y), size, ci in zip(particles.pos, particles.size, particles.color):
            r = max(1, int(round(size)))
            cv2.circle(img, (int(x), int(y)), r, self.color_of(int(ci)), -1, cv2.LINE_AA)

    def draw_status(self, state, session, hand_found, camera_ok, audio_ok):
        img = self.canvas
        online = {
            ConnectionState.JOINED: "Online",
            ConnectionState.CONNECTING: "Connecting...",
            ConnectionState.DISCONNECTED: "Offline",
        }[state]
        own = "-" if session.own_id is None else f"#{session.own_id}"
        if not camera_ok:
            hand = "No camera"
        else:
            hand = "Hand detected" if hand_found else "Searching for hand..."
        lines = [
            online,
            f"User: {own} / Total: {session.participant_count}",
            hand,
        ]
        if not audio_ok:
            lines.append("Audio off")

        y = 24
        for text in lines:
            cv2.putText(img, text, (12, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (10, 10, 10), 3, cv2.LINE_AA)
            cv2.putText(img, text, (12, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (230, 245, 255), 1, cv2.LINE_AA)
            y += 22

        if session.own_id is not None:
            swatch = self.palette[session.own_id % len(self.palette)]
            cv2.circle(img, (img.shape[1] - 24, 24), 10, swatch, -1, cv2.LINE_AA)
