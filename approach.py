# approach.py

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    NORTH = 'North'
    SOUTH = 'South'
    EAST = 'East'
    WEST = 'West'

    @classmethod
    def parse(cls, name):
        """Case-insensitive lookup, e.g. 'north' or 'NORTH'. Raises ValueError if unknown."""
        for direction in cls:
            if direction.value.lower() == str(name).strip().lower():
                return direction
        raise ValueError(f"Unknown direction: {name!r}")


class SignalPhase(str, Enum):
    RED = 'RED'
    YELLOW = 'YELLOW'
    GREEN = 'GREEN'


class OperatingMode(str, Enum):
    NORMAL = 'Normal'
    EMERGENCY = 'Emergency'
    HAZARD = 'Hazard'


class TrafficDensity(str, Enum):
    LOW = 'Low'
    MEDIUM = 'Medium'
    HIGH = 'High'


class AnalysisFormatError(ValueError):
    """Raised when an analysis payload does not match the expected shape."""


def _require_bool(data, key):
    value = data.get(key)
    if not isinstance(value, bool):
        raise AnalysisFormatError(f"'{key}' must be a boolean, got {value!r}")
    return value


def _require_count(data, key):
    value = data.get(key)
    # bool is a subclass of int, but True is not a vehicle count
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise AnalysisFormatError(f"'{key}' must be a non-negative integer, got {value!r}")
    return value


@dataclass(frozen=True)
class VehicleCounts:
    trucks: int = 0
    cars: int = 0
    bikes: int = 0

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise AnalysisFormatError(f"'vehicle_counts' must be an object, got {data!r}")
        return cls(
            trucks=_require_count(data, 'trucks'),
            cars=_require_count(data, 'cars'),
            bikes=_require_count(data, 'bikes'),
        )

    def to_dict(self):
        return {'trucks': self.trucks, 'cars': self.cars, 'bikes': self.bikes}


@dataclass(frozen=True)
class AnalysisResult:
    """
    What the vision service saw on one approach.

    Only the three flags and the vehicle counts drive the signals;
    traffic_density and summary are carried along for display.
    """
    ambulance_present: bool
    accident_present: bool
    fight_present: bool
    vehicle_counts: VehicleCounts
    traffic_density: TrafficDensity
    summary: str

    @classmethod
    def from_dict(cls, data):
        """Builds a result from the service's JSON object, validating every field."""
        if not isinstance(data, dict):
            raise AnalysisFormatError(f"Analysis must be a JSON object, got {type(data).__name__}")
        try:
            density = TrafficDensity(data.get('traffic_density'))
        except ValueError:
            raise AnalysisFormatError(f"Unknown traffic density: {data.get('traffic_density')!r}")
        summary = data.get('summary')
        if not isinstance(summary, str):
            raise AnalysisFormatError(f"'summary' must be a string, got {summary!r}")
        return cls(
            ambulance_present=_require_bool(data, 'ambulance_present'),
            accident_present=_require_bool(data, 'accident_present'),
            fight_present=_require_bool(data, 'fight_present'),
            vehicle_counts=VehicleCounts.from_dict(data.get('vehicle_counts')),
            traffic_density=density,
            summary=summary,
        )

    def to_dict(self):
        return {
            'ambulance_present': self.ambulance_present,
            'accident_present': self.accident_present,
            'fight_present': self.fight_present,
            'vehicle_counts': self.vehicle_counts.to_dict(),
            'traffic_density': self.traffic_density.value,
            'summary': self.summary,
        }


@dataclass(frozen=True)
class ApproachSnapshot:
    """Read-only copy of an approach, safe to hand to other threads."""
    direction: Direction
    phase: SignalPhase
    timer: int
    mode: OperatingMode
    last_analysis: Optional[AnalysisResult]

    def to_dict(self):
        return {
            'direction': self.direction.value,
            'phase': self.phase.value,
            'timer': self.timer,
            'mode': self.mode.value,
            'last_analysis': self.last_analysis.to_dict() if self.last_analysis else None,
        }


@dataclass
class Approach:
    """
    Live signal state for one direction of the intersection.

    Phase and timer are only changed by the tick engines; apply_analysis only
    changes the mode (and forces Red for a hazard).
    """
    direction: Direction
    phase: SignalPhase = SignalPhase.RED
    timer: int = 0
    mode: OperatingMode = OperatingMode.NORMAL
    last_analysis: Optional[AnalysisResult] = field(default=None)

    @property
    def vehicle_counts(self):
        """Counts from the latest analysis, or None if this approach was never analysed."""
        return self.last_analysis.vehicle_counts if self.last_analysis else None

    def apply_analysis(self, result):
        """Records a new analysis and updates the operating mode from its flags."""
        self.last_analysis = result

        # An ambulance overrides everything else.
        if result.ambulance_present:
            self.mode = OperatingMode.EMERGENCY
            return

        # A hazard is an immediate stop, not deferred to the next tick.
        if result.accident_present or result.fight_present:
            self.mode = OperatingMode.HAZARD
            self.phase = SignalPhase.RED
            return

        self.mode = OperatingMode.NORMAL

    def count_down(self):
        """Consumes one second of the timer, never going below zero."""
        if self.timer > 0:
            self.timer -= 1

    def set_signal(self, phase, timer):
        self.phase = phase
        self.timer = timer

    def snapshot(self):
        return ApproachSnapshot(
            direction=self.direction,
            phase=self.phase,
            timer=self.timer,
            mode=self.mode,
            last_analysis=self.last_analysis,
        )
