"""
Ornament Anchors

A sparse set of points (120 by default) where rigid baubles hang. They
follow the tree silhouette law so the decorations sit just inside the
particle foliage:

- same golden-angle spiral, but with a 13x angular multiplier so anchors
  do not line up with particles
- heights restricted to the inner 80% of the tree (no tip or base)
- radius = cone taper * branch tier factor * 0.95 (no clumping, no jitter)

Visibility is a single scale per decoration group, eased toward 1 in
tree mode and 0 when the cloud disperses.
"""

import math
from collections import namedtuple
import numpy as np

from .modes import is_dispersed
from .shapes import GOLDEN_ANGLE, TREE_HEIGHT, TREE_RADIUS, cone_radius, tier_factor
from .smoothing import SmoothedParameter


ORNAMENT_COUNT = 120
ORNAMENT_ANGLE_MULTIPLIER = 13
ORNAMENT_BAND = (0.1, 0.9)
ORNAMENT_INSET = 0.95
RED_THRESHOLD = 0.6      # draw > 0.6 -> red (~40%), else gold (~60%)

ORNAMENT_TIERS = ("gold", "red")

STAR_LIFT = 0.2
BAUBLE_RATE = 4.0
STAR_RATE = 3.0


OrnamentAnchor = namedtuple("OrnamentAnchor", ["position", "tier"])


def place_ornaments(count=ORNAMENT_COUNT, height=TREE_HEIGHT, radius=TREE_RADIUS,
                    rng=None):
    """
    Anchor points for baubles.

    Args:
        count: Number of anchors
        height: Tree height (same as the particle tree)
        radius: Tree base radius
        rng: numpy Generator, seed, or None (only the color draw is random)

    Returns:
        List of OrnamentAnchor(position=(x, y, z), tier="gold" | "red")
    """
    if count <= 0:
        raise ValueError(f"Ornament count must be positive, got {count!r}")
    if height <= 0 or radius <= 0:
        raise ValueError(f"Invalid tree geometry: height={height!r}, radius={radius!r}")
    rng = np.random.default_rng(rng)

    lo, hi = ORNAMENT_BAND
    i = np.arange(count, dtype=np.float64)
    band_norm = (i / count) * (hi - lo) + lo
    y = band_norm * height - height / 2.0
    r = cone_radius(band_norm, radius) * tier_factor(y) * ORNAMENT_INSET
    theta = i * GOLDEN_ANGLE * ORNAMENT_ANGLE_MULTIPLIER
    red = rng.random(count) > RED_THRESHOLD

    x = r * np.cos(theta)
    z = r * np.sin(theta)
    return [
        OrnamentAnchor((float(x[k]), float(y[k]), float(z[k])),
                       "red" if red[k] else "gold")
        for k in range(count)
    ]


def split_by_tier(anchors):
    """Group anchors by color tier (one instanced mesh per tier)."""
    groups = {tier: [] for tier in ORNAMENT_TIERS}
    for anchor in anchors:
        groups[anchor.tier].append(anchor)
    return groups


def anchor_positions(anchors):
    """(n, 3) float32 positions of the anchors."""
    if not anchors:
        return np.zeros((0, 3), dtype=np.float32)
    return np.array([a.position for a in anchors], dtype=np.float32)


def star_position(height=TREE_HEIGHT):
    return (0.0, height / 2.0 + STAR_LIFT, 0.0)


def star_rotation(elapsed):
    """Euler rotation (x, y, z) of the tree-top star at time elapsed."""
    return (0.0, elapsed * 0.5, math.sin(elapsed) * 0.1)


class DecorationVisibility:
    """Eased scale factors for the baubles and the star.

    The target is 1 in tree mode and 0 when dispersed; the current value
    is what renderers multiply decoration sizes by.
    """

    def __init__(self, visible=True):
        start = 1.0 if visible else 0.0
        self.baubles = SmoothedParameter.from_rate(start, BAUBLE_RATE)
        self.star = SmoothedParameter.from_rate(start, STAR_RATE)

    def update(self, mode, dt, shown=True):
        """Ease toward visible (tree mode) or hidden (dispersed, or shown=False)."""
        target = 1.0 if shown and not is_dispersed(mode) else 0.0
        for param in (self.baubles, self.star):
            param.set_target(target)
            param.update(dt)

    @property
    def bauble_scale(self):
        return self.baubles.get_value()

    @property
    def star_scale(self):
        return self.star.get_value()
