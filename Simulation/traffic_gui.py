import cv2
import numpy as np

from approach import OperatingMode, SignalPhase

# --- Colors (BGR, as OpenCV expects) ---
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
RED = (0, 0, 255)
YELLOW = (0, 255, 255)
GREEN = (0, 255, 0)
ORANGE = (0, 140, 255)

HOUSING_COLOR = (30, 30, 30)
BULB_OFF_COLOR = (20, 20, 20)
ROAD_COLOR = (60, 55, 50)

BULB_COLORS = {
    SignalPhase.RED: RED,
    SignalPhase.YELLOW: YELLOW,
    SignalPhase.GREEN: GREEN,
}

MODE_COLORS = {
    OperatingMode.NORMAL: WHITE,
    OperatingMode.EMERGENCY: ORANGE,
    OperatingMode.HAZARD: YELLOW,
}


class TrafficLight:
    """
    A single signal head: housing, three bulbs and the remaining seconds.
    """
    def __init__(self, x, y, radius=20):
        self.x = x
        self.y = y  # Center of the middle (yellow) bulb
        self.radius = radius
        self.phase = SignalPhase.RED
        self.timer = 0

    def set_light(self, phase, timer=0):
        self.phase = SignalPhase(phase)
        self.timer = timer

    def bulb_centers(self):
        offset = int(self.radius * 2.2)
        return {
            SignalPhase.RED: (self.x, self.y - offset),
            SignalPhase.YELLOW: (self.x, self.y),
            SignalPhase.GREEN: (self.x, self.y + offset),
        }

    def draw(self, frame):
        half_w = int(self.radius * 1.25)
        half_h = int(self.radius * 3.5)
        cv2.rectangle(frame, (self.x - half_w, self.y - half_h), (self.x + half_w, self.y + half_h),
                      HOUSING_COLOR, -1)
        for phase, center in self.bulb_centers().items():
            color = BULB_COLORS[phase] if phase == self.phase else BULB_OFF_COLOR
            cv2.circle(frame, center, self.radius, color, -1)
        cv2.putText(frame, f"{self.timer}s", (self.x - half_w, self.y + half_h + 22),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, WHITE, 2)
        return frame


def draw_lights_on_frame(frame, approach):
    """
    Draws an approach's current signal and mode onto a copy of its preview frame.
    """
    if frame is None:
        return None
    frame = frame.copy()
    pos = (frame.shape[1] - 30, 30)  # Top-right corner
    cv2.circle(frame, pos, 15, BULB_COLORS[approach.phase], -1)
    if approach.mode != OperatingMode.NORMAL:
        cv2.putText(frame, approach.mode.value.upper(), (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, MODE_COLORS[approach.mode], 2)
    return frame


def render_intersection(approaches, size=480):
    """
    Renders the whole intersection: two crossing roads with a signal head
    on each side, labelled with direction and mode.
    """
    canvas = np.zeros((size, size, 3), dtype=np.uint8)
    road = size // 4
    mid = size // 2
    cv2.rectangle(canvas, (mid - road // 2, 0), (mid + road // 2, size), ROAD_COLOR, -1)
    cv2.rectangle(canvas, (0, mid - road // 2), (size, mid + road // 2), ROAD_COLOR, -1)

    radius = max(6, size // 48)
    margin = int(radius * 4.5)
    positions = {
        'North': (mid, margin),
        'South': (mid, size - margin - 20),
        'East': (size - margin, mid),
        'West': (margin, mid),
    }
    for approach in approaches:
        x, y = positions[approach.direction.value]
        light = TrafficLight(x, y, radius=radius)
        light.set_light(approach.phase, approach.timer)
        light.draw(canvas)
        label = approach.direction.value
        if approach.mode != OperatingMode.NORMAL:
            label = f"{label} ({approach.mode.value})"
        cv2.putText(canvas, label, (max(0, x - 40), max(12, y - int(radius * 4))),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.45, MODE_COLORS[approach.mode], 1)
    return canvas
