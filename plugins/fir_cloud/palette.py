"""
Particle Palettes

Every particle gets one of four tier colors, drawn independently:

    r > 0.96   accent     (~4%)   sparkles
    r > 0.75   highlight  (~21%)  bright branch tips
    r > 0.30   body       (~45%)  main foliage
    else       depth      (~30%)  shadowed interior

Colors are stored per particle as RGB float triples in [0, 1], so the
buffer can be uploaded directly as vertex colors.
"""

import numpy as np


COLORS = {
    "emerald_dark": "#004d3b",
    "emerald": "#008050",
    "emerald_light": "#3CB371",
    "gold": "#FFD700",
    "gold_dim": "#B8860B",
    "red": "#D6001C",
    "trunk": "#4A3728",
}

TIER_NAMES = ("depth", "body", "highlight", "accent")
TIER_THRESHOLDS = (0.30, 0.75, 0.96)
TIER_EXPECTED = (0.30, 0.45, 0.21, 0.04)


def hex_to_rgb(value):
    """'#RRGGBB' -> (r, g, b) floats in [0, 1]."""
    value = value.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #RRGGBB color, got {value!r}")
    return tuple(int(value[i:i + 2], 16) / 255.0 for i in (0, 2, 4))


# --- Palette Definitions ---
# Each palette lists tier colors in TIER_NAMES order.

def emerald():
    """Emerald fir with gold sparkles."""
    return np.array([
        hex_to_rgb(COLORS["emerald_dark"]),
        hex_to_rgb(COLORS["emerald"]),
        hex_to_rgb(COLORS["emerald_light"]),
        hex_to_rgb(COLORS["gold"]),
    ], dtype=np.float32)


def frost():
    """Snow-dusted blue spruce, silver sparkles."""
    return np.array([
        hex_to_rgb("#0b2a3a"),
        hex_to_rgb("#2f6f8f"),
        hex_to_rgb("#9fd3e6"),
        hex_to_rgb("#f4fbff"),
    ], dtype=np.float32)


def ember():
    """Warm candle-lit tree, red accents."""
    return np.array([
        hex_to_rgb("#1d2b12"),
        hex_to_rgb("#3f6b22"),
        hex_to_rgb(COLORS["gold_dim"]),
        hex_to_rgb(COLORS["red"]),
    ], dtype=np.float32)


# Registry of all palettes
PALETTES = {
    "emerald": emerald,
    "frost": frost,
    "ember": ember,
}

PALETTE_ORDER = list(PALETTES.keys())


def get_palette(name):
    """Get a palette (4, 3) float32 array by name."""
    return PALETTES[name]()


def assign_tiers(count, rng=None):
    """Draw one tier index per particle (0=depth ... 3=accent)."""
    if count <= 0:
        raise ValueError(f"Particle count must be positive, got {count!r}")
    rng = np.random.default_rng(rng)
    return tiers_from_uniform(rng.random(count))


def tiers_from_uniform(r):
    """Map uniform draws in [0, 1) to tier indices."""
    # Strict '>' on every threshold: r == 0.30 stays in the depth tier
    return np.searchsorted(TIER_THRESHOLDS, r, side="left").astype(np.int8)


def tier_fractions(tiers):
    """Observed share of each tier, in TIER_NAMES order."""
    counts = np.bincount(np.asarray(tiers, dtype=np.int64), minlength=len(TIER_NAMES))
    return counts / max(1, counts.sum())


def generate_colors(count, palette="emerald", rng=None, tiers=None):
    """
    Per-particle colors.

    Args:
        count: Number of particles
        palette: Palette name from PALETTES
        rng: numpy Generator, seed, or None
        tiers: Precomputed tier indices; reuse them to recolor a session
            without reshuffling which particle is which tier

    Returns:
        (count, 3) float32 RGB, one independent row per particle
    """
    lut = get_palette(palette)
    if tiers is None:
        tiers = assign_tiers(count, rng)
    elif len(tiers) != count:
        raise ValueError(f"Got {len(tiers)} tier indices for {count} particles")
    return lut[tiers]
