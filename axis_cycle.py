# axis_cycle.py

from approach import Direction, OperatingMode, SignalPhase
from timing import counts_duration
import constants

# Opposite approaches share one signal phase: 'NS' -> (North, South), 'EW' -> (East, West)
AXES = {name: tuple(Direction(d) for d in pair) for name, pair in constants.AXES.items()}


def axis_label(axis):
    return '/'.join(d.value for d in AXES[axis])


class AxisCycleEngine:
    """
    Normal operation: NS_GREEN -> NS_YELLOW -> EW_GREEN -> EW_YELLOW -> NS_GREEN ...

    There is no stored cycle position. Each tick the position is read back
    from the phases of the four approaches, so a pair counts as Green if
    either member is Green. An approach in Hazard mode is never given
    Green or Yellow and stays Red while its partner keeps cycling.
    """
    def __init__(self, event_log):
        self.events = event_log

    def step(self, approaches):
        ns = [approaches[d] for d in AXES['NS']]
        ew = [approaches[d] for d in AXES['EW']]

        # Every timer loses a second before any transition is considered.
        for approach in approaches.values():
            approach.count_down()

        if self._shows(ns, SignalPhase.GREEN):
            self._begin_yellow('NS', ns)
        elif self._shows(ns, SignalPhase.YELLOW):
            self._hand_over(ns, 'EW', ew)
        elif self._shows(ew, SignalPhase.GREEN):
            self._begin_yellow('EW', ew)
        elif self._shows(ew, SignalPhase.YELLOW):
            self._hand_over(ew, 'NS', ns)
        else:
            # All Red: system start, or every active approach was stopped.
            self._start_cycle(ns, ew)

    @staticmethod
    def _shows(pair, phase):
        return any(a.phase == phase for a in pair)

    @staticmethod
    def _expired(pair):
        return all(a.timer == 0 for a in pair)

    def _begin_yellow(self, axis, pair):
        if not self._expired(pair):
            return
        for approach in pair:
            if approach.mode != OperatingMode.HAZARD:
                approach.set_signal(SignalPhase.YELLOW, constants.YELLOW_DURATION)
        self.events.info(f"{axis_label(axis)} switching to Yellow")

    def _hand_over(self, stopping, axis, starting):
        """Turns the yellow pair Red and gives the other axis its adaptive green."""
        if not self._expired(stopping):
            return
        for approach in stopping:
            approach.set_signal(SignalPhase.RED, 0)

        duration = max(
            max(counts_duration(a.vehicle_counts) for a in starting),
            constants.MIN_GREEN_DURATION,
        )
        held = self._grant(starting, duration)
        # The partners are out of step from here on. Reported, not repaired.
        for approach in held:
            self.events.warning(f"{approach.direction.value} held at Red (hazard)")
        if len(held) < len(starting):
            self.events.success(f"{axis_label(axis)} Axis Green for {duration}s")

    def _start_cycle(self, ns, ew):
        for axis, pair in (('NS', ns), ('EW', ew)):
            if len(self._grant(pair, constants.STARTUP_GREEN_DURATION)) < len(pair):
                self.events.success(f"System Start: {axis_label(axis)} Green")
                return

    @staticmethod
    def _grant(pair, duration):
        """Turns every non-hazard member of the pair Green. Returns the members held at Red."""
        held = []
        for approach in pair:
            if approach.mode == OperatingMode.HAZARD:
                held.append(approach)
                continue
            approach.set_signal(SignalPhase.GREEN, duration)
        return held
