"""
Mode Signal

The particle cloud is driven by one discrete value per frame, supplied by
an external gesture classifier:

    SETTLED    particles home in on the silhouette (closed fist / no hand)
    DISPERSED  particles drift and fall like snow (open palm)
    UNKNOWN    anything else; behaves exactly like SETTLED
"""

import enum


class Mode(enum.Enum):
    SETTLED = "settled"
    DISPERSED = "dispersed"
    UNKNOWN = "unknown"


# Gesture names emitted by the hand classifier
GESTURE_MODES = {
    "FIST": Mode.SETTLED,
    "NONE": Mode.SETTLED,
    "OPEN_PALM": Mode.DISPERSED,
}


def coerce_mode(value):
    """Map a Mode, mode name, or gesture name to a Mode. Never raises."""
    if isinstance(value, Mode):
        return value
    if isinstance(value, str):
        key = value.strip()
        if key.upper() in GESTURE_MODES:
            return GESTURE_MODES[key.upper()]
        try:
            return Mode(key.lower())
        except ValueError:
            return Mode.UNKNOWN
    return Mode.UNKNOWN


def is_dispersed(mode):
    return coerce_mode(mode) is Mode.DISPERSED


def toggled(mode):
    """DISPERSED <-> SETTLED (UNKNOWN counts as SETTLED)."""
    return Mode.SETTLED if is_dispersed(mode) else Mode.DISPERSED
