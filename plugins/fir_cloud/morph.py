"""
MorphEngine - Live Particle Buffer and Frame Update

Owns the N-particle live position buffer and advances it once per render
tick. Which kinematics run is decided by the mode passed to step(); there
is no transition state, so a mode switch simply continues from wherever
the particles are.

Usage:
    particles = ParticleSet(generate_tree(8000), generate_colors(8000))
    engine = MorphEngine(particles, VelocityField.random(8000))
    live = engine.step(Mode.SETTLED, dt=0.016, elapsed=t)
"""

import numpy as np

from .kinematics import Homing, Dispersal
from .modes import Mode, coerce_mode, is_dispersed


VELOCITY_RANGE = 0.075
LERP_FACTOR = 0.08
REFERENCE_FPS = 60.0


def _frozen(array, count=None, name="buffer"):
    """float32 (N, 3) read-only copy, validated."""
    out = np.array(array, dtype=np.float32, copy=True)
    if out.ndim == 1 and out.size % 3 == 0:
        out = out.reshape(-1, 3)
    if out.ndim != 2 or out.shape[1] != 3:
        raise ValueError(f"{name} must have shape (N, 3), got {np.shape(array)}")
    if count is not None and len(out) != count:
        raise ValueError(f"{name} has {len(out)} rows, expected {count}")
    if not np.all(np.isfinite(out)):
        raise ValueError(f"{name} contains NaN or infinite values")
    out.flags.writeable = False
    return out


class ParticleSet:
    """Index-aligned live positions, target positions and colors.

    The live buffer starts as a copy of the target, so the first frame
    needs no transition. Target and colors are read-only; the live buffer
    is mutated in place by the engine only.
    """

    def __init__(self, target, colors):
        target = _frozen(target, name="target")
        if len(target) == 0:
            raise ValueError("ParticleSet needs at least one particle")
        self.target = target
        self.colors = _frozen(colors, count=len(target), name="colors")
        self.live = np.array(target, dtype=np.float32, copy=True)

    def __len__(self):
        return len(self.live)

    @property
    def live_flat(self):
        """Length-3N view of the live buffer (X, Y, Z triples)."""
        return self.live.reshape(-1)

    @property
    def colors_flat(self):
        return self.colors.reshape(-1)

    def retarget(self, points):
        """Home toward another cached silhouette of the same size."""
        self.target = _frozen(points, count=len(self.live), name="target")

    def recolor(self, colors):
        self.colors = _frozen(colors, count=len(self.live), name="colors")


class VelocityField:
    """Per-particle dispersal velocity, drawn once and never re-randomized."""

    def __init__(self, velocities):
        self.velocities = _frozen(velocities, name="velocities")

    @classmethod
    def random(cls, count, spread=VELOCITY_RANGE, rng=None):
        if count <= 0:
            raise ValueError(f"Particle count must be positive, got {count!r}")
        rng = np.random.default_rng(rng)
        return cls(rng.uniform(-spread, spread, (count, 3)))

    def __len__(self):
        return len(self.velocities)


class MorphEngine:
    """Per-frame update of a ParticleSet.

    Frame-rate behavior:
    - frame_rate_independent=False (default): every call moves particles
      by a fixed increment, matching the classic 60 fps pacing
    - frame_rate_independent=True: increments are scaled to dt, so the
      motion looks the same at any frame rate
    """

    def __init__(self, particles, velocities, lerp_factor=LERP_FACTOR,
                 frame_rate_independent=False, reference_fps=REFERENCE_FPS):
        if len(velocities) != len(particles):
            raise ValueError(
                f"Velocity field has {len(velocities)} entries for "
                f"{len(particles)} particles"
            )
        if reference_fps <= 0:
            raise ValueError(f"reference_fps must be positive, got {reference_fps!r}")
        self.particles = particles
        self.velocities = velocities
        self.frame_rate_independent = frame_rate_independent
        self.reference_fps = reference_fps

        self.homing = Homing(len(particles), lerp_factor=lerp_factor)
        self.dispersal = Dispersal(velocities.velocities)

        self.mode = Mode.SETTLED
        self.frame = 0

    def _frames(self, dt):
        if not self.frame_rate_independent:
            return 1.0
        return max(dt, 0.0) * self.reference_fps

    def _check_buffers(self):
        n = len(self.particles.live)
        sizes = (len(self.particles.target), len(self.particles.colors),
                 len(self.velocities), self.homing.size, self.dispersal.size)
        if any(s != n for s in sizes):
            raise RuntimeError(f"Particle buffers out of alignment: {n} live vs {sizes}")

    def step(self, mode, dt, elapsed):
        """Advance one frame. Returns the live (N, 3) buffer.

        Args:
            mode: Mode (or anything coerce_mode accepts)
            dt: Seconds since the previous frame
            elapsed: Seconds since the session started
        """
        self._check_buffers()
        mode = coerce_mode(mode)
        frames = self._frames(dt)

        if is_dispersed(mode):
            self.homing.release()
            self.dispersal.advance(self.particles, elapsed, frames)
        else:
            self.homing.advance(self.particles, elapsed, frames)

        self.mode = mode
        self.frame += 1
        return self.particles.live

    def step_n(self, n, mode, dt, elapsed=0.0):
        """Advance n frames of dt each. Returns final live buffer."""
        for k in range(n):
            self.step(mode, dt, elapsed + k * dt)
        return self.particles.live

    @property
    def active(self):
        """Kinematics used by the most recent step."""
        return self.dispersal if is_dispersed(self.mode) else self.homing

    def get_params(self):
        return {k.kinematics_name: k.get_params() for k in (self.homing, self.dispersal)}

    def mean_distance(self):
        """Mean Euclidean distance from live to target positions."""
        diff = self.particles.live - self.particles.target
        return float(np.sqrt((diff * diff).sum(axis=1)).mean())

    @property
    def stats(self):
        y = self.particles.live[:, 1]
        return {
            "frame": self.frame,
            "mode": self.mode.value,
            "kinematics": self.active.kinematics_name,
            "particles": len(self.particles),
            "mean_distance": self.mean_distance(),
            "y_min": float(y.min()),
            "y_max": float(y.max()),
        }
