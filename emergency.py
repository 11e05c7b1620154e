# emergency.py

from approach import OperatingMode, SignalPhase
import constants


class EmergencyArbiter:
    """
    Runs the emergency protocol for one tick.

    Conflicting approaches are first brought to a safe stop (Green, then a
    Yellow buffer, then Red). Only once nothing else is Green or Yellow does
    an emergency approach get its Green.
    """
    def __init__(self, event_log):
        self.events = event_log

    def step(self, approaches):
        emergency = [a for a in approaches if a.mode == OperatingMode.EMERGENCY]
        others = [a for a in approaches if a.mode != OperatingMode.EMERGENCY]
        unsafe = [a for a in others if a.phase in (SignalPhase.GREEN, SignalPhase.YELLOW)]

        if unsafe:
            self._clear_intersection(unsafe, emergency)
        else:
            self._grant_green(emergency)

    def _clear_intersection(self, unsafe, emergency):
        """Stops conflicting traffic. No emergency Green is granted this tick."""
        for approach in unsafe:
            if approach.phase == SignalPhase.GREEN:
                approach.set_signal(SignalPhase.YELLOW, constants.YELLOW_DURATION)
                self.events.warning(
                    f"Emergency Protocol: Switching {approach.direction.value} "
                    f"to Yellow ({constants.YELLOW_DURATION}s)."
                )
            elif approach.timer > 0:
                approach.timer -= 1
            else:
                approach.set_signal(SignalPhase.RED, 0)
                self.events.info(f"Emergency Protocol: {approach.direction.value} Stopped.")

        # An emergency approach must not be mid-transition while others clear.
        for approach in emergency:
            if approach.phase == SignalPhase.YELLOW:
                approach.phase = SignalPhase.RED

    def _grant_green(self, emergency):
        for approach in emergency:
            if approach.phase != SignalPhase.GREEN:
                approach.set_signal(SignalPhase.GREEN, constants.EMERGENCY_GREEN_DURATION)
                self.events.warning(f"EMERGENCY: Green for {approach.direction.value}")

            # The granting tick consumes its own second as well.
            approach.count_down()

            if approach.timer <= 0:
                approach.mode = OperatingMode.NORMAL
                self.events.info(f"Emergency cleared at {approach.direction.value}")
