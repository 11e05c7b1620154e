# timing.py

import constants


def compute_duration(trucks, cars, bikes):
    """
    Converts vehicle counts into green-light seconds.

    Heavier vehicles get more time (truck 5s, car 2s, bike 1s) and the result
    is clamped between MIN_GREEN_DURATION and MAX_GREEN_DURATION.
    """
    weights = constants.VEHICLE_WEIGHTS
    weighted = trucks * weights['trucks'] + cars * weights['cars'] + bikes * weights['bikes']
    return max(constants.MIN_GREEN_DURATION, min(weighted, constants.MAX_GREEN_DURATION))


def counts_duration(counts):
    """Green seconds for a VehicleCounts record. No analysis counts as an empty road."""
    if counts is None:
        return compute_duration(0, 0, 0)
    return compute_duration(counts.trucks, counts.cars, counts.bikes)
