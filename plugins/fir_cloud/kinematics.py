"""
Per-Frame Kinematics for the Particle Cloud

Two interchangeable update rules, selected each frame by the mode signal:

- Homing:    exponential smoothing toward the cached silhouette, plus a
             tiny sideways shimmer
- Dispersal: constant per-particle velocity, vertical wrap-around and
             a sideways swirl (the snow-globe)

Both are element-wise maps over the live buffer and write in place into
scratch arrays sized at construction, so a frame allocates nothing.

`frames` is the number of reference frames the step represents: 1.0 for
the classic per-call behavior, dt * fps when frame-rate independent.
"""

from abc import ABC, abstractmethod
import numpy as np


class Kinematics(ABC):
    """Base class for particle update rules."""

    kinematics_name = ""   # e.g. "homing"
    kinematics_label = ""  # e.g. "Homing"

    def __init__(self, size):
        self.size = size
        self._delta = np.zeros((size, 3), dtype=np.float32)
        self._wave = np.zeros(size, dtype=np.float32)

    @abstractmethod
    def advance(self, particles, elapsed, frames=1.0):
        """Update particles.live in place. Returns the live buffer."""

    @abstractmethod
    def get_params(self):
        """Return dict of current parameter values."""


class Homing(Kinematics):

    kinematics_name = "homing"
    kinematics_label = "Homing"

    def __init__(self, size, lerp_factor=0.08, shimmer_amplitude=0.002,
                 shimmer_speed=1.5):
        """
        Args:
            size: Particle count
            lerp_factor: Fraction of the remaining distance covered per frame
            shimmer_amplitude: Peak sideways shimmer offset (world units)
            shimmer_speed: Shimmer angular speed (rad/s)
        """
        super().__init__(size)
        if not 0.0 < lerp_factor <= 1.0:
            raise ValueError(f"lerp_factor must be in (0, 1], got {lerp_factor!r}")
        self.lerp_factor = lerp_factor
        self.shimmer_amplitude = shimmer_amplitude
        self.shimmer_speed = shimmer_speed

        # X offset currently baked into the live buffer by the shimmer
        self.shimmer = np.zeros(size, dtype=np.float32)

    def blend(self, frames):
        if frames == 1.0:
            return self.lerp_factor
        return 1.0 - (1.0 - self.lerp_factor) ** max(frames, 0.0)

    def advance(self, particles, elapsed, frames=1.0):
        live = particles.live
        target = particles.target

        # Shimmer is an offset, not a velocity: take last frame's out first
        live[:, 0] -= self.shimmer

        np.subtract(target, live, out=self._delta)
        self._delta *= self.blend(frames)
        live += self._delta

        np.add(target[:, 1], elapsed * self.shimmer_speed, out=self.shimmer)
        np.sin(self.shimmer, out=self.shimmer)
        self.shimmer *= self.shimmer_amplitude
        live[:, 0] += self.shimmer
        return live

    def release(self):
        """Leave the current shimmer offset in place as real displacement."""
        self.shimmer[:] = 0.0

    def get_params(self):
        return {
            "lerp_factor": self.lerp_factor,
            "shimmer_amplitude": self.shimmer_amplitude,
            "shimmer_speed": self.shimmer_speed,
        }


class Dispersal(Kinematics):

    kinematics_name = "dispersal"
    kinematics_label = "Dispersal"

    # Vertical band: leaving it below respawns at the top and vice versa
    FLOOR = -6.0
    CEILING = 12.0
    RESPAWN_TOP = 10.0
    RESPAWN_BOTTOM = -5.0

    def __init__(self, velocities, swirl_amplitude=0.02):
        """
        Args:
            velocities: (N, 3) per-particle velocity, reused on every entry
            swirl_amplitude: Peak sideways swirl per frame (world units)
        """
        super().__init__(len(velocities))
        self.velocities = velocities
        self.swirl_amplitude = swirl_amplitude
        self._mask = np.zeros(self.size, dtype=bool)

    def advance(self, particles, elapsed, frames=1.0):
        live = particles.live
        velocities = self.velocities

        if frames == 1.0:
            live += velocities
        else:
            np.multiply(velocities, max(frames, 0.0), out=self._delta)
            live += self._delta

        self.wrap(live[:, 1])

        np.add(live[:, 1], elapsed, out=self._wave)
        np.sin(self._wave, out=self._wave)
        self._wave *= self.swirl_amplitude * max(frames, 0.0)
        live[:, 0] += self._wave
        return live

    def wrap(self, y):
        """Recycle heights leaving [FLOOR, CEILING], in place."""
        np.less(y, self.FLOOR, out=self._mask)
        np.copyto(y, self.RESPAWN_TOP, where=self._mask)
        np.greater(y, self.CEILING, out=self._mask)
        np.copyto(y, self.RESPAWN_BOTTOM, where=self._mask)
        return y

    def get_params(self):
        return {
            "swirl_amplitude": self.swirl_amplitude,
            "floor": self.FLOOR,
            "ceiling": self.CEILING,
        }
