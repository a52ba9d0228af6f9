"""
Silhouette Generators - Target Point Clouds for the Particle Tree

Each generator returns a fresh (count, 3) float32 array of world-space
target points:

- tree:  golden-angle spiral up a tiered cone (the fir tree)
- heart: rejection-sampled solid heart
- text:  rasterized string, scanned into a flat point sheet

Generators are stochastic in fine detail only (jitter), so callers that
need a stable target must generate once and keep the array.

The tree radius law is exported on its own (cone_radius, tier_factor,
tree_radius) because ornament placement has to follow the same silhouette.
"""

import math
import numpy as np
from PIL import Image, ImageDraw, ImageFont


# Golden angle in radians: successive points never line up radially
GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))

PARTICLE_COUNT = 8000
TREE_HEIGHT = 8.0
TREE_RADIUS = 3.5

LAYER_FREQUENCY = 12   # branch tiers up the trunk
BRANCH_COUNT = 7       # branches per tier
RADIUS_JITTER = 0.15

# Heart sampling box (unit space) and world mapping
HEART_BOX = ((-2.0, 2.0), (-2.0, 2.0), (-1.0, 1.0))
HEART_SCALE = 2.5
HEART_Y_OFFSET = 1.0
HEART_MAX_ROUNDS = 200

# Text rasterization
TEXT_CANVAS = (500, 150)
TEXT_FONT_SIZE = 60
TEXT_STRIDE = 3
TEXT_THRESHOLD = 128
TEXT_WORLD_WIDTH = 15.0
TEXT_WORLD_HEIGHT = 4.5
TEXT_DEPTH_JITTER = 0.1
TEXT_FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")


def _check_count(count):
    if count <= 0:
        raise ValueError(f"Particle count must be positive, got {count!r}")


def _check_geometry(height, radius):
    if height <= 0:
        raise ValueError(f"Tree height must be positive, got {height!r}")
    if radius <= 0:
        raise ValueError(f"Tree radius must be positive, got {radius!r}")


# --- Tree silhouette law ---

def cone_radius(y_norm, radius=TREE_RADIUS):
    """Linear taper: full radius at the base, zero at the apex."""
    return radius * (1.0 - y_norm)


def tier_factor(y):
    """Branch tiers: ~12 radius oscillations up the height, in [0.4, 1]."""
    return 0.4 + 0.6 * ((np.sin(y * LAYER_FREQUENCY) + 1.0) / 2.0) ** 2


def branch_clump(theta, y):
    """Angular clumping into BRANCH_COUNT branches per tier, in [0.6, 1]."""
    return 0.8 + 0.2 * np.cos(theta * BRANCH_COUNT + y * 2.0)


def tree_radius(y_norm, y, theta, radius=TREE_RADIUS):
    """Silhouette radius without jitter. Works on scalars and arrays."""
    return cone_radius(y_norm, radius) * tier_factor(y) * branch_clump(theta, y)


# --- Generators ---

def generate_tree(count=PARTICLE_COUNT, height=TREE_HEIGHT, radius=TREE_RADIUS,
                  rng=None):
    """Fir tree: particle i sits at height i/count on a golden-angle spiral.

    Args:
        count: Number of particles
        height: Total tree height (centered on y=0)
        radius: Base radius of the cone
        rng: numpy Generator, seed, or None

    Returns:
        (count, 3) float32 array
    """
    _check_count(count)
    _check_geometry(height, radius)
    rng = np.random.default_rng(rng)

    i = np.arange(count, dtype=np.float64)
    y_norm = i / count
    y = y_norm * height - height / 2.0
    theta = i * GOLDEN_ANGLE

    r = tree_radius(y_norm, y, theta, radius)
    r += rng.uniform(-RADIUS_JITTER, RADIUS_JITTER, count)

    points = np.empty((count, 3), dtype=np.float32)
    points[:, 0] = r * np.cos(theta)
    points[:, 1] = y
    points[:, 2] = r * np.sin(theta)
    return points


def heart_inside(x, y, z):
    """Implicit heart surface: True where (x, y, z) lies inside."""
    a = x * x + 2.25 * y * y + z * z - 1.0
    z3 = z * z * z
    return a * a * a - x * x * z3 - 0.1125 * y * y * z3 < 0


def generate_heart(count=PARTICLE_COUNT, rng=None, max_rounds=HEART_MAX_ROUNDS):
    """Solid heart by rejection sampling.

    All unresolved particles are redrawn together each round. After
    max_rounds, any particle still without a sample takes the last
    accepted one (or the heart center if nothing was ever accepted),
    so generation is always bounded.
    """
    _check_count(count)
    rng = np.random.default_rng(rng)
    (x0, x1), (y0, y1), (z0, z1) = HEART_BOX

    unit = np.zeros((count, 3), dtype=np.float64)
    pending = np.arange(count)
    for _ in range(max_rounds):
        if pending.size == 0:
            break
        n = pending.size
        x = rng.uniform(x0, x1, n)
        y = rng.uniform(y0, y1, n)
        z = rng.uniform(z0, z1, n)
        ok = heart_inside(x, y, z)
        hit = pending[ok]
        unit[hit, 0] = x[ok]
        unit[hit, 1] = y[ok]
        unit[hit, 2] = z[ok]
        pending = pending[~ok]

    if pending.size:
        accepted = np.setdiff1d(np.arange(count), pending)
        if accepted.size:
            unit[pending] = unit[accepted[-1]]
        else:
            unit[pending] = 0.0

    points = (unit * HEART_SCALE).astype(np.float32)
    points[:, 1] += HEART_Y_OFFSET
    return points


def _load_font(font_path, size):
    if font_path is not None:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError:
            print(f"[fir_cloud] Font not found: {font_path}, using default")
    for name in TEXT_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def text_candidates(text, font_path=None, rng=None):
    """Rasterize text and return the (n, 3) candidate points (n may be 0)."""
    rng = np.random.default_rng(rng)
    width, height = TEXT_CANVAS
    if not text or not text.strip():
        return np.zeros((0, 3), dtype=np.float32)

    font = _load_font(font_path, TEXT_FONT_SIZE)
    with Image.new("L", TEXT_CANVAS, 0) as canvas:
        draw = ImageDraw.Draw(canvas)
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        origin = ((width - (right - left)) / 2 - left,
                  (height - (bottom - top)) / 2 - top)
        draw.text(origin, text, fill=255, font=font)
        pixels = np.asarray(canvas)

    lit = pixels[::TEXT_STRIDE, ::TEXT_STRIDE] > TEXT_THRESHOLD
    rows, cols = np.nonzero(lit)
    px = cols * TEXT_STRIDE
    py = rows * TEXT_STRIDE

    candidates = np.empty((rows.size, 3), dtype=np.float32)
    candidates[:, 0] = (px / width - 0.5) * TEXT_WORLD_WIDTH
    candidates[:, 1] = -(py / height - 0.5) * TEXT_WORLD_HEIGHT
    candidates[:, 2] = rng.uniform(-TEXT_DEPTH_JITTER, TEXT_DEPTH_JITTER, rows.size)
    return candidates


def cycle_candidates(candidates, count):
    """Fill count slots as candidates[i % n] (n must be > 0)."""
    if len(candidates) == 0:
        raise ValueError("Cannot fill particle slots from an empty candidate set")
    return np.asarray(candidates, dtype=np.float32)[np.arange(count) % len(candidates)]


def generate_text(text="", count=PARTICLE_COUNT, font_path=None, fallback=None,
                  rng=None):
    """Text silhouette with cyclic reuse of the lit-pixel candidates.

    Particle i takes candidate[i % n], so sparse text stacks several
    particles on the same spot. With no candidates (empty string, blank
    glyphs) the result is a copy of `fallback`, or a fresh tree.

    Args:
        text: String to rasterize
        count: Number of particles
        font_path: Optional TrueType font file
        fallback: (count, 3) array to reuse for degenerate input
        rng: numpy Generator, seed, or None
    """
    _check_count(count)
    rng = np.random.default_rng(rng)
    candidates = text_candidates(text, font_path=font_path, rng=rng)

    if len(candidates) == 0:
        if fallback is not None and len(fallback) == count:
            return np.array(fallback, dtype=np.float32)
        return generate_tree(count, rng=rng)

    return cycle_candidates(candidates, count)


# Registry of all silhouettes
SILHOUETTES = {
    "tree": generate_tree,
    "heart": generate_heart,
    "text": generate_text,
}

SILHOUETTE_ORDER = list(SILHOUETTES.keys())


def get_silhouette(name, count=PARTICLE_COUNT, **kwargs):
    """Generate a silhouette by name. Text without a `text` keyword is a tree."""
    return SILHOUETTES[name](count=count, **kwargs)
