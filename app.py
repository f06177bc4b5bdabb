# app.py - shared hand sphere
import time
import importlib

import cv2

from feedback import FeedbackEmitter
from params import Params
from particles import ForceField
from pointers import LocalPointer, PointSource
from render import Renderer
from session import ClientSession
from sync_client import SyncClient

WINDOW_NAME = "Hand Sphere"
CAMERA_SEARCH = 6


def open_camera(max_index=CAMERA_SEARCH):
    for i in range(max_index):
        cap = cv2.VideoCapture(i)
        if cap.isOpened():
            ok, _ = cap.read()
            if ok:
                print(f"✅ Using camera index: {i}")
                return cap
        cap.release()
    print(f"⚠️  No working camera found (0–{max_index-1}); remote hands only.")
    return None


def _init_tracker():
    try:
        hands_mod = importlib.import_module("hands")
        return hands_mod.HandTracker()
    except ImportError:
        print("⚠️  mediapipe not available - hand tracking disabled")
        return None
    except Exception as e:
        print(f"⚠️  Hand tracker init failed: {e}")
        return None


class FrameLoop:
    """
    One iteration per displayed frame:
      relay inbox -> session -> points -> force field -> canvas

    Camera results arrive through on_hand(), mouse clicks through on_mouse().
    """

    def __init__(self, params, session, sync, feedback):
        self.params = params
        self.session = session
        self.sync = sync
        self.feedback = feedback

        self.pointer = LocalPointer()
        self.points = PointSource(session, self.pointer)
        self.field = ForceField(params, on_feedback=feedback.on_event)
        self.renderer = Renderer(params)

        self.width = 0
        self.height = 0
        self.hand_found = False
        self.camera_ok = True

        self.resize(params.canvas_width, params.canvas_height)

    def resize(self, width: int, height: int) -> bool:
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            return False
        if (width, height) == (self.width, self.height):
            return False
        self.width, self.height = width, height
        self.field.init_scene(width, height)
        self.renderer.resize(width, height)
        self.feedback.height = height
        return True

    def on_hand(self, uv):
        if uv is None:
            self.hand_found = False
            self.pointer.clear()
            self.sync.release_pointer()
            return
        self.hand_found = True
        nx, ny = uv
        self.pointer.set_normalized(nx, ny, self.width, self.height)
        self.sync.move_pointer(nx, ny)

    def on_mouse(self, event, x, y, flags, param):
        if event in (cv2.EVENT_LBUTTONDOWN, cv2.EVENT_RBUTTONDOWN):
            self.feedback.resume()

    def step(self):
        self.sync.pump()
        points = self.points.collect(self.width, self.height)
        self.field.update(points)

        r = self.renderer
        r.fade()
        r.draw_particles(self.field.particles)
        r.draw_status(
            self.sync.state,
            self.session,
            self.hand_found,
            self.camera_ok,
            self.feedback.available,
        )
        return r.canvas


def _window_size():
    try:
        _, _, w, h = cv2.getWindowImageRect(WINDOW_NAME)
    except cv2.error:
        return 0, 0
    return w, h


def main():
    params = Params()

    cap = open_camera()
    tracker = _init_tracker() if cap is not None else None

    session = ClientSession()
    sync = SyncClient(session, params)
    feedback = FeedbackEmitter(params)
    loop = FrameLoop(params, session, sync, feedback)
    loop.camera_ok = tracker is not None

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW_NAME, params.canvas_width, params.canvas_height)
    cv2.setMouseCallback(WINDOW_NAME, loop.on_mouse)

    sync.start()

    print("\n" + "="*60)
    print("🌐 HAND SPHERE")
    print("="*60)
    print(f"   Relay: {params.relay_url}  room: {params.room}")
    print("   Move your index finger in front of the camera")
    print("   Click the window to unmute audio")
    print("   ESC - Exit")
    print("="*60 + "\n")

    prev = time.time()
    fps_smooth = 0.0

    while True:
        if tracker is not None:
            ok, frame = cap.read()
            if ok:
                frame = cv2.flip(frame, 1)
                loop.on_hand(tracker.process(frame))

        loop.resize(*_window_size())
        composed = loop.step()

        now = time.time()
        dt = max(1e-6, now - prev)
        prev = now
        fps_smooth = 1.0 / dt if fps_smooth == 0 else 0.9 * fps_smooth + 0.1 / dt

        fps_text = f"FPS: {fps_smooth:5.1f}"
        cv2.putText(composed, fps_text, (12, composed.shape[0] - 12), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (120, 120, 120), 1, cv2.LINE_AA)

        cv2.imshow(WINDOW_NAME, composed)

        key = cv2.waitKey(1) & 0xFF
        if key == 27:
            break

    if sync.release_pointer():
        time.sleep(0.1)  # let the writer flush the end frame
    sync.stop()
    feedback.close()
    if tracker is not None:
        tracker.close()
    if cap is not None:
        cap.release()
    cv2.destroyAllWindows()

    print("\n✅ Hand sphere shutdown complete")


if __name__ == "__main__":
    main()
