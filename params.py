class Params:
    """
    All tunable knobs live here so you don't hunt through code.
    """
    def __init__(self):
        # Particle sphere
        self.num_particles = 1000
        self.sphere_radius = 200.0       # px
        self.particle_size_min = 1.0
        self.particle_size_max = 3.0
        self.seed = 0

        # Pointer interaction
        self.interaction_radius = 120.0  # px, exclusive boundary
        self.repulsion = 40.0            # max push per frame (px)
        self.spring = 0.15               # pull back toward rest, per frame
        self.min_distance = 1e-6         # closer than this => no push
        self.feedback_probability = 0.01 # per (particle, point) pair per frame

        # Colours (hex, one per participant slot)
        self.palette = [
            "#FFD700", "#00FFFF", "#FF00FF", "#7FFF00",
            "#FF4500", "#00BFFF", "#FFFFFF", "#FF1493",
        ]
        self.neutral_color = "#444444"

        # Relay
        self.relay_url = "wss://nosch.uber.space/web-rooms/"
        self.room = "hand-sphere-room"
        self.keepalive_sec = 30.0
        self.connect_timeout_sec = 10.0
        self.send_end_on_release = True

        # Reconnect (0 => never, a reload is the only recovery)
        self.reconnect_attempts = 0
        self.reconnect_backoff = 1.0
        self.reconnect_backoff_max = 30.0

        # Audio feedback
        self.sample_rate = 44100
        self.tone_duration = 0.5
        self.tone_gain = 0.05
        self.tone_floor = 0.0001
        self.tone_drop = 0.2             # end frequency as fraction of start
        self.tone_base_hz = 100.0
        self.tone_step_hz = 50.0
        self.tone_span_hz = 300.0
        self.tone_pitch_hz = 400.0       # added at the top of the canvas
        self.max_voices = 32

        # Canvas
        self.canvas_width = 1280
        self.canvas_height = 720
        self.fade_alpha = 0.2
