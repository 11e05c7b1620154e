# traffic_system.py

import threading
from enum import Enum

from approach import Approach, Direction, OperatingMode
from axis_cycle import AxisCycleEngine
from emergency import EmergencyArbiter
from event_log import EventLog


class InvariantViolation(RuntimeError):
    """The controller found itself in a state that should be unreachable."""


class TickMode(str, Enum):
    EMERGENCY = 'emergency'
    NORMAL = 'normal'


def decide_tick_mode(approaches):
    """Emergency preemption wins over the normal cycle. Hazards are handled inside the cycle."""
    if any(a.mode == OperatingMode.EMERGENCY for a in approaches):
        return TickMode.EMERGENCY
    return TickMode.NORMAL


class IntersectionController:
    """
    Encapsulates the entire state and logic of the four-way intersection.

    Two entry points mutate state: tick(), called once per second by the
    scheduler, and ingest_analysis(), called whenever a vision analysis
    completes. Both run under one lock so neither can interleave with the
    other halfway through an update. Everything handed out is a frozen
    snapshot.
    """
    def __init__(self, event_log=None, approaches=None):
        self.events = event_log if event_log is not None else EventLog()
        self._lock = threading.Lock()
        if approaches is None:
            approaches = [Approach(direction) for direction in Direction]
        approaches = list(approaches)
        by_direction = {a.direction: a for a in approaches}
        if set(by_direction) != set(Direction) or len(by_direction) != len(approaches):
            raise InvariantViolation("Exactly one approach per direction is required")
        # Fixed North, South, East, West order
        self._approaches = {direction: by_direction[direction] for direction in Direction}

        self._arbiter = EmergencyArbiter(self.events)
        self._axis_engine = AxisCycleEngine(self.events)

        # --- Tick strategies, selected once per tick ---
        self.tick_handlers = {
            TickMode.EMERGENCY: self._emergency_step,
            TickMode.NORMAL: self._normal_step,
        }

    def _emergency_step(self):
        self._arbiter.step(list(self._approaches.values()))

    def _normal_step(self):
        self._axis_engine.step(self._approaches)

    def _get(self, direction):
        try:
            return self._approaches[Direction(direction)]
        except (KeyError, ValueError):
            raise InvariantViolation(f"No approach for direction {direction!r}")

    def _snapshot_all(self):
        return tuple(approach.snapshot() for approach in self._approaches.values())

    def tick(self):
        """Executes one second of the state machine and returns the new state of all approaches."""
        with self._lock:
            self.tick_handlers[decide_tick_mode(self._approaches.values())]()
            return self._snapshot_all()

    def ingest_analysis(self, direction, result):
        """Applies a completed vision analysis to one approach and returns its new state."""
        with self._lock:
            approach = self._get(direction)
            previous_mode = approach.mode
            approach.apply_analysis(result)
            name = approach.direction.value

            if approach.mode == OperatingMode.EMERGENCY:
                self.events.warning(f"AMBULANCE DETECTED AT {name}! INITIATING EMERGENCY PROTOCOL.")
            elif approach.mode == OperatingMode.HAZARD:
                self.events.error(f"HAZARD DETECTED AT {name}! Lane closed.")
            elif previous_mode != OperatingMode.NORMAL:
                self.events.info(f"{name} back to normal operation.")
            return approach.snapshot()

    def snapshot(self):
        """Returns the current state of all four approaches, North, South, East, West."""
        with self._lock:
            return self._snapshot_all()

    def approach(self, direction):
        with self._lock:
            return self._get(direction).snapshot()

    @property
    def tick_mode(self):
        with self._lock:
            return decide_tick_mode(self._approaches.values())
