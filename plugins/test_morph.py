#!/usr/bin/env python3
"""
Tests for the per-frame morph engine.

Verifies:
1. Buffer construction and validation
2. Homing: no drift from rest, convergence from far away
3. Dispersal: wrap rule, velocity reuse across mode switches
4. Mode handling and frame-rate independent pacing
"""

import numpy as np
import pytest

from fir_cloud.kinematics import Dispersal
from fir_cloud.modes import Mode
from fir_cloud.morph import MorphEngine, ParticleSet, VelocityField
from fir_cloud.palette import generate_colors
from fir_cloud.shapes import generate_tree


def _engine(n=1000, seed=0, **kwargs):
    rng = np.random.default_rng(seed)
    particles = ParticleSet(generate_tree(n, rng=rng), generate_colors(n, rng=rng))
    velocities = VelocityField.random(n, rng=rng)
    return MorphEngine(particles, velocities, **kwargs)


def test_particle_set_construction():
    target = generate_tree(100, rng=1)
    colors = generate_colors(100, rng=1)
    ps = ParticleSet(target, colors)

    assert len(ps) == 100
    assert np.array_equal(ps.live, ps.target), "Live buffer starts on the tree"
    assert not np.shares_memory(ps.live, ps.target)
    assert ps.live_flat.size == 300 and np.shares_memory(ps.live_flat, ps.live)
    assert ps.colors_flat.size == 300

    with pytest.raises(ValueError):
        ps.target[0, 0] = 1.0
    with pytest.raises(ValueError):
        ps.colors[0, 0] = 1.0


def test_particle_set_rejects_bad_buffers():
    target = generate_tree(10, rng=1)
    with pytest.raises(ValueError):
        ParticleSet(target, generate_colors(9))
    with pytest.raises(ValueError):
        ParticleSet(np.zeros((0, 3)), np.zeros((0, 3)))
    bad = target.copy()
    bad[3, 1] = np.nan
    with pytest.raises(ValueError):
        ParticleSet(bad, generate_colors(10))

    ps = ParticleSet(target, generate_colors(10))
    with pytest.raises(ValueError):
        ps.retarget(generate_tree(11))
    with pytest.raises(ValueError):
        MorphEngine(ps, VelocityField.random(11))


def test_velocity_field_bounds():
    vf = VelocityField.random(5000, rng=3)
    assert vf.velocities.shape == (5000, 3)
    assert np.abs(vf.velocities).max() <= 0.075
    with pytest.raises(ValueError):
        vf.velocities[0, 0] = 0.0


def test_settled_rest_does_not_drift():
    """Starting on target, shimmer stays within its amplitude forever."""
    print("Testing homing at rest...")
    engine = _engine()
    target = engine.particles.target
    for k in range(600):
        engine.step(Mode.SETTLED, 1 / 60, k / 60)
        offset = np.abs(engine.particles.live - target)
        assert offset[:, 0].max() <= 0.002 + 1e-4, f"Drift at frame {k}: {offset[:, 0].max()}"
        assert offset[:, 1:].max() <= 1e-4, "Only X carries the shimmer"
    print("  ✓ No drift")


def test_settled_converges_from_origin():
    """Mean distance shrinks on every frame and reaches 1% within 150 frames."""
    print("Testing homing convergence...")
    engine = _engine()
    # Shimmer is a bounded offset on top of homing; take it out to see the pure decay
    engine.homing.shimmer_amplitude = 0.0
    engine.particles.live[:] = 0.0
    d0 = engine.mean_distance()

    distances = [d0]
    for k in range(150):
        engine.step(Mode.SETTLED, 1 / 60, k / 60)
        distances.append(engine.mean_distance())

    for k, (a, b) in enumerate(zip(distances, distances[1:])):
        assert b < a, f"Distance grew at frame {k}: {a} -> {b}"
    assert distances[-1] <= 0.01 * d0, f"Not converged: {distances[-1]} vs {d0}"
    print("  ✓ Converged")


def test_mode_changes_without_step_leave_buffer_alone():
    engine = _engine()
    engine.step_n(3, Mode.DISPERSED, 1 / 60)
    before = engine.particles.live.copy()
    frame = engine.frame

    for mode in (Mode.SETTLED, Mode.DISPERSED, Mode.SETTLED):
        engine.mode = mode
    assert np.array_equal(engine.particles.live, before), "Choosing a mode must not move particles"
    assert engine.frame == frame

    engine.step(Mode.SETTLED, 1 / 60, 0.1)
    assert not np.array_equal(engine.particles.live, before), "Only step moves particles"


def test_dispersed_wrap_rule():
    engine = _engine(n=3)
    live = engine.particles.live
    live[0, 1] = 20.0
    live[1, 1] = -10.0
    live[2, 1] = 0.0
    v = engine.velocities.velocities

    engine.step(Mode.DISPERSED, 1 / 60, 0.0)
    assert live[0, 1] == -5.0, f"Above the ceiling resets to -5: {live[0, 1]}"
    assert live[1, 1] == 10.0, f"Below the floor resets to 10: {live[1, 1]}"
    assert live[2, 1] == pytest.approx(v[2, 1], abs=1e-6)


def test_dispersed_heights_stay_in_band():
    engine = _engine()
    for k in range(800):
        engine.step(Mode.DISPERSED, 1 / 60, k / 60)
        y = engine.particles.live[:, 1]
        assert y.min() >= -6.0 and y.max() <= 12.0, f"Escaped band at frame {k}"
    assert np.all(np.isfinite(engine.particles.live))


def test_dispersal_reuses_velocities():
    """Each entry into dispersal replays the same velocity, never re-drawn."""
    engine = _engine()
    engine.dispersal.swirl_amplitude = 0.0
    v = engine.velocities.velocities.copy()

    before = engine.particles.live.copy()
    engine.step(Mode.DISPERSED, 1 / 60, 0.0)
    first = engine.particles.live - before

    engine.step_n(5, Mode.SETTLED, 1 / 60, elapsed=0.1)

    before = engine.particles.live.copy()
    engine.step(Mode.DISPERSED, 1 / 60, 0.5)
    second = engine.particles.live - before

    assert np.allclose(first, v, atol=1e-5)
    assert np.allclose(second, v, atol=1e-5)
    assert np.array_equal(engine.velocities.velocities, v)


def test_unknown_mode_behaves_like_settled():
    a = _engine(seed=9)
    b = _engine(seed=9)
    c = _engine(seed=9)
    for engine in (a, b, c):
        engine.particles.live[:] = 0.0
    for k in range(10):
        a.step(Mode.SETTLED, 1 / 60, k / 60)
        b.step(Mode.UNKNOWN, 1 / 60, k / 60)
        c.step("not-a-mode", 1 / 60, k / 60)
    assert np.array_equal(a.particles.live, b.particles.live)
    assert np.array_equal(a.particles.live, c.particles.live)
    assert c.mode is Mode.UNKNOWN


def test_frame_rate_independent_pacing():
    """One 1/30 s step covers the same ground as two 1/60 s steps."""
    coarse = _engine(seed=4, frame_rate_independent=True)
    fine = _engine(seed=4, frame_rate_independent=True)
    for engine in (coarse, fine):
        engine.particles.live[:] = 0.0

    coarse.step(Mode.SETTLED, 1 / 30, 1 / 30)
    fine.step(Mode.SETTLED, 1 / 60, 1 / 60)
    fine.step(Mode.SETTLED, 1 / 60, 1 / 30)
    assert np.allclose(coarse.particles.live, fine.particles.live, atol=1e-5)

    # dt = 0 holds position apart from the shimmer offset
    still = _engine(seed=4, frame_rate_independent=True)
    still.particles.live[:] = 0.0
    still.step(Mode.SETTLED, 0.0, 0.0)
    assert np.abs(still.particles.live[:, 1:]).max() == 0.0


def test_frame_rate_dependent_default_ignores_dt():
    a = _engine(seed=5)
    b = _engine(seed=5)
    a.step(Mode.DISPERSED, 1 / 60, 0.0)
    b.step(Mode.DISPERSED, 1 / 10, 0.0)
    assert np.array_equal(a.particles.live, b.particles.live)


def test_misaligned_buffers_are_fatal():
    engine = _engine(n=10)
    engine.particles.live = np.zeros((11, 3), dtype=np.float32)
    with pytest.raises(RuntimeError):
        engine.step(Mode.SETTLED, 1 / 60, 0.0)


def test_wrap_helper_in_place():
    d = Dispersal(np.zeros((4, 3), dtype=np.float32))
    y = np.array([-7.0, 13.0, 3.0, -6.0], dtype=np.float32)
    d.wrap(y)
    assert list(y) == [10.0, -5.0, 3.0, -6.0]


def test_stats():
    engine = _engine(n=50)
    assert engine.stats["kinematics"] == "homing"
    engine.step(Mode.DISPERSED, 1 / 60, 0.0)
    stats = engine.stats
    assert stats["frame"] == 1
    assert stats["mode"] == "dispersed"
    assert stats["kinematics"] == "dispersal"
    assert engine.active.kinematics_label == "Dispersal"
    assert stats["particles"] == 50
    assert stats["mean_distance"] > 0

    params = engine.get_params()
    assert params["homing"]["lerp_factor"] == 0.08
    assert params["dispersal"]["floor"] == -6.0


if __name__ == "__main__":
    print("\n=== Testing Morph Engine ===\n")

    test_particle_set_construction()
    test_particle_set_rejects_bad_buffers()
    test_velocity_field_bounds()
    test_settled_rest_does_not_drift()
    test_settled_converges_from_origin()
    test_mode_changes_without_step_leave_buffer_alone()
    test_dispersed_wrap_rule()
    test_dispersed_heights_stay_in_band()
    test_dispersal_reuses_velocities()
    test_unknown_mode_behaves_like_settled()
    test_frame_rate_independent_pacing()
    test_frame_rate_dependent_default_ignores_dt()
    test_misaligned_buffers_are_fatal()
    test_wrap_helper_in_place()
    test_stats()

    print("\n✓ All tests passed!\n")
