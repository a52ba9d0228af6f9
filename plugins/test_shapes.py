#!/usr/bin/env python3
"""
Tests for the silhouette generators.

Verifies:
1. Tree size, finiteness and the shared radius law
2. Heart rejection sampling and its bounded fallback
3. Text rasterization, cyclic reuse and degenerate input
"""

import numpy as np
import pytest

from fir_cloud.shapes import (
    GOLDEN_ANGLE, RADIUS_JITTER, TREE_HEIGHT, TREE_RADIUS, cone_radius,
    cycle_candidates, generate_heart, generate_text, generate_tree,
    get_silhouette, text_candidates, tier_factor, tree_radius,
)


def _heart_value(points):
    """Implicit heart function in unit space (negative inside)."""
    p = points.astype(np.float64)
    x, y, z = p[:, 0] / 2.5, (p[:, 1] - 1.0) / 2.5, p[:, 2] / 2.5
    a = x * x + 2.25 * y * y + z * z - 1.0
    return a ** 3 - x * x * z ** 3 - 0.1125 * y * y * z ** 3


def test_tree_size_and_finite():
    for n in (1, 7, 8000):
        pts = generate_tree(n)
        assert pts.shape == (n, 3), f"Wrong shape for {n}: {pts.shape}"
        assert pts.dtype == np.float32
        assert np.all(np.isfinite(pts)), f"Non-finite values for n={n}"
        assert pts.reshape(-1).size == 3 * n


def test_tree_heights_span_the_trunk():
    n = 1000
    pts = generate_tree(n, height=TREE_HEIGHT)
    y = pts[:, 1]
    assert y[0] == pytest.approx(-TREE_HEIGHT / 2)
    assert np.all(np.diff(y) > 0), "Heights must increase with the index"
    assert y[-1] < TREE_HEIGHT / 2


def test_radius_law_bounds():
    theta = np.linspace(0, 20, 500)
    y = np.linspace(-4, 4, 500)

    base = tree_radius(0.0, y, theta, TREE_RADIUS)
    assert np.all(base >= 0) and np.all(base <= TREE_RADIUS), \
        f"Base radius out of [0, R]: {base.min()}..{base.max()}"

    apex = tree_radius(0.999, y, theta, TREE_RADIUS)
    assert np.all(apex <= TREE_RADIUS * 0.001 + 1e-12), "Apex radius should vanish"

    tiers = tier_factor(y)
    assert tiers.min() >= 0.4 - 1e-12 and tiers.max() <= 1.0 + 1e-12
    assert cone_radius(0.5, 2.0) == pytest.approx(1.0)


def test_tree_points_follow_radius_law():
    n = 4000
    pts = generate_tree(n, rng=3)
    i = np.arange(n)
    y_norm = i / n
    y = y_norm * TREE_HEIGHT - TREE_HEIGHT / 2
    law = tree_radius(y_norm, y, i * GOLDEN_ANGLE, TREE_RADIUS)
    r = np.hypot(pts[:, 0], pts[:, 2])
    assert np.all(np.abs(r - law) <= RADIUS_JITTER + 1e-3), \
        f"Radius strays beyond jitter: {np.abs(r - law).max()}"


def test_tree_jitter_is_fresh_per_call():
    a = generate_tree(500)
    b = generate_tree(500)
    assert np.array_equal(a[:, 1], b[:, 1]), "Macro-structure must not change"
    assert not np.array_equal(a, b), "Each call should draw new jitter"
    assert np.array_equal(generate_tree(500, rng=5), generate_tree(500, rng=5))


def test_tree_rejects_bad_configuration():
    with pytest.raises(ValueError):
        generate_tree(0)
    with pytest.raises(ValueError):
        generate_tree(10, height=0)
    with pytest.raises(ValueError):
        generate_tree(10, radius=-1)


def test_heart_points_inside_surface():
    pts = generate_heart(3000, rng=11)
    assert pts.shape == (3000, 3)
    assert np.all(np.isfinite(pts))
    assert np.all(_heart_value(pts) < 1e-3), "Heart samples must lie inside the surface"


def test_heart_fallback_is_bounded():
    # No rounds at all: every particle falls back to the heart center
    pts = generate_heart(50, max_rounds=0)
    assert np.allclose(pts, [0.0, 1.0, 0.0]), "Expected center fallback"

    # One round: unresolved particles reuse the last accepted sample
    pts = generate_heart(200, rng=4, max_rounds=1)
    assert np.all(_heart_value(pts) < 1e-3)
    unique = np.unique(pts, axis=0)
    assert len(unique) < 200, "Fallback should duplicate accepted samples"


def test_text_candidates_and_cycling():
    pts = generate_text("HI", 500, rng=1)
    assert pts.shape == (500, 3)
    assert np.all(np.isfinite(pts))
    assert np.all(np.abs(pts[:, 0]) <= 7.5)
    assert np.all(np.abs(pts[:, 1]) <= 2.25)
    assert np.all(np.abs(pts[:, 2]) <= 0.1 + 1e-6)

    cands = text_candidates("HI", rng=1)
    assert len(cands) > 0, "Text should light some pixels"
    assert len(np.unique(pts, axis=0)) <= len(cands)


def test_cycle_candidates_wraps_indices():
    cands = np.array([[0, 0, 0], [1, 1, 1]], dtype=np.float32)
    out = cycle_candidates(cands, 5)
    assert out.shape == (5, 3)
    assert np.array_equal(out[:, 0], [0, 1, 0, 1, 0])
    with pytest.raises(ValueError):
        cycle_candidates(np.zeros((0, 3)), 5)


def test_text_degenerate_input_falls_back():
    fallback = generate_tree(10, rng=2)
    out = generate_text("", 10, fallback=fallback)
    assert np.array_equal(out, fallback), "Empty text should reuse the fallback"
    assert out is not fallback

    out = generate_text("   ", 10)
    assert out.shape == (10, 3)
    assert out[0, 1] == pytest.approx(-TREE_HEIGHT / 2), "Blank text falls back to a tree"


def test_silhouette_registry():
    assert get_silhouette("heart", 50).shape == (50, 3)
    assert get_silhouette("tree", 50).shape == (50, 3)
    assert get_silhouette("text", 50, text="A").shape == (50, 3)

    untitled = get_silhouette("text", 50)
    assert untitled.shape == (50, 3)
    assert untitled[0, 1] == pytest.approx(-TREE_HEIGHT / 2), "No text falls back to a tree"
    with pytest.raises(KeyError):
        get_silhouette("star", 50)


if __name__ == "__main__":
    print("\n=== Testing Silhouette Generators ===\n")

    test_tree_size_and_finite()
    test_tree_heights_span_the_trunk()
    test_radius_law_bounds()
    test_tree_points_follow_radius_law()
    test_tree_jitter_is_fresh_per_call()
    test_tree_rejects_bad_configuration()
    test_heart_points_inside_surface()
    test_heart_fallback_is_bounded()
    test_text_candidates_and_cycling()
    test_cycle_candidates_wraps_indices()
    test_text_degenerate_input_falls_back()
    test_silhouette_registry()

    print("\n✓ All tests passed!\n")
