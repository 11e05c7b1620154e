"""
Pytest configuration and fixtures for the intersection controller tests.

Provides:
- a quiet event log and a controller built on it
- factories for analysis results and pre-set approaches
"""

import os
import sys

import pytest

# Modules live at the repository root
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from approach import (AnalysisResult, Approach, Direction, OperatingMode,
                      SignalPhase, TrafficDensity, VehicleCounts)
from event_log import EventLog
from traffic_system import IntersectionController


@pytest.fixture
def events():
    """Event log that does not echo to stdout."""
    return EventLog(echo=False)


@pytest.fixture
def controller(events):
    return IntersectionController(events)


@pytest.fixture
def make_result():
    """Build an AnalysisResult with sensible defaults."""
    def _make(ambulance=False, accident=False, fight=False, trucks=0, cars=0, bikes=0,
              density=TrafficDensity.LOW, summary="Road is clear."):
        return AnalysisResult(
            ambulance_present=ambulance,
            accident_present=accident,
            fight_present=fight,
            vehicle_counts=VehicleCounts(trucks=trucks, cars=cars, bikes=bikes),
            traffic_density=density,
            summary=summary,
        )
    return _make


@pytest.fixture
def make_approaches():
    """
    Build the four approaches from (phase, timer[, mode]) tuples, e.g.
    make_approaches(North=('GREEN', 0), South=('GREEN', 0)).
    Unlisted directions start Red with timer 0.
    """
    def _make(**states):
        approaches = {}
        for direction in Direction:
            phase, timer, mode = (states.get(direction.value, ('RED', 0)) + ('Normal',))[:3]
            approaches[direction] = Approach(
                direction,
                phase=SignalPhase(phase),
                timer=timer,
                mode=OperatingMode(mode),
            )
        return approaches
    return _make


@pytest.fixture
def sample_payload():
    """Analysis JSON as returned by the vision service."""
    return {
        "ambulance_present": False,
        "accident_present": False,
        "fight_present": False,
        "vehicle_counts": {"trucks": 2, "cars": 3, "bikes": 1},
        "traffic_density": "Medium",
        "summary": "Moderate traffic moving steadily.",
    }
