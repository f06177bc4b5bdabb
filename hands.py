import cv2

import mediapipe as mp

INDEX_TIP = 8


class HandTracker:
    """
    MediaPipe hands wrapper.

    process(frame) returns the index fingertip as normalised (x, y), or None
    when no hand is found. Flip the frame first for a mirrored view.
    """

    def __init__(self, det_conf=0.5, track_conf=0.5):
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            model_complexity=1,
            min_detection_confidence=float(det_conf),
            min_tracking_confidence=float(track_conf),
        )

    def process(self, frame_bgr):
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        # Fixes NORM_RECT without IMAGE_DIMENSIONS warning
        self.hands._image_width, self.hands._image_height = frame_bgr.shape[1], frame_bgr.shape[0]  # type: ignore[attr-defined]

        res = self.hands.process(frame_rgb)

        if not res.multi_hand_landmarks:
            return None

        tip = res.multi_hand_landmarks[0].landmark[INDEX_TIP]
        return (float(tip.x), float(tip.y))

    def close(self):
        self.hands.close()
