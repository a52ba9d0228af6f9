"""
EMA-Smoothed Parameter

Drives every scalar in the scene that should ease rather than snap:
the bauble and star scale (shown in tree mode, hidden when the cloud
disperses) and the camera orbit speed.

All smoothing is frame-rate independent via delta-time integration.
"""

import math


class SmoothedParameter:
    """EMA wrapper for a single numeric parameter.

    Provides frame-rate-independent exponential moving average smoothing
    with configurable time constant. A scale target flipping from 1 to 0
    shrinks the decorations over a fraction of a second instead of
    popping them out of existence.

    Time constant controls the "feel":
    - tau=0.25s: baubles (rate 4/s)
    - tau=0.33s: tree-top star (rate 3/s)
    - tau=1.0s: camera orbit easing
    """

    def __init__(self, initial_value, time_constant=0.25):
        """Initialize smoothed parameter.

        Args:
            initial_value: Starting value (both current and target)
            time_constant: Time in seconds to reach ~63% of target (tau)
        """
        if time_constant <= 0:
            raise ValueError(f"time_constant must be positive, got {time_constant!r}")
        self.target = initial_value
        self.current = initial_value
        self.tau = time_constant

    @classmethod
    def from_rate(cls, initial_value, rate):
        """Build from a per-second approach rate (tau = 1 / rate)."""
        return cls(initial_value, time_constant=1.0 / rate)

    def set_target(self, new_target):
        """Set new target value to drift toward."""
        self.target = new_target

    def update(self, dt):
        """Advance EMA by delta-time (called each frame).

        Uses frame-rate-independent exponential smoothing:
        alpha = 1 - exp(-dt / tau)
        current += alpha * (target - current)

        Args:
            dt: Time elapsed in seconds since last update
        """
        if dt <= 0:
            return
        alpha = 1.0 - math.exp(-dt / self.tau)
        self.current += alpha * (self.target - self.current)

    def get_value(self):
        return self.current

    def snap(self, value):
        """Immediately set both target and current (for reset).

        Args:
            value: Value to snap to (no smoothing)
        """
        self.target = value
        self.current = value
