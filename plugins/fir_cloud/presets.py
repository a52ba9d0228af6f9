"""
Scene Presets

Each preset fixes the static configuration of a session: particle count,
tree geometry, ornament count, palette and the silhouette the particles
home in on. Everything here is read once at construction.
"""

from .shapes import PARTICLE_COUNT, TREE_HEIGHT, TREE_RADIUS
from .ornaments import ORNAMENT_COUNT


PRESETS = {
    "classic": {
        "name": "Classic Fir",
        "description": "Emerald fir, gold sparkles, 120 baubles",
        "count": PARTICLE_COUNT, "height": TREE_HEIGHT, "radius": TREE_RADIUS,
        "ornaments": ORNAMENT_COUNT, "palette": "emerald",
        "silhouette": "tree",
    },
    "dense": {
        "name": "Dense Fir",
        "description": "Twice the particles, fuller foliage",
        "count": 16000, "height": TREE_HEIGHT, "radius": TREE_RADIUS,
        "ornaments": 160, "palette": "emerald",
        "silhouette": "tree",
    },
    "sparse": {
        "name": "Sparse Fir",
        "description": "Light cloud for slow machines",
        "count": 3000, "height": TREE_HEIGHT, "radius": TREE_RADIUS,
        "ornaments": 60, "palette": "emerald",
        "silhouette": "tree",
    },
    "frost": {
        "name": "Frosted Spruce",
        "description": "Tall blue spruce, paced by wall-clock time",
        "count": PARTICLE_COUNT, "height": 9.0, "radius": 3.0,
        "ornaments": 100, "palette": "frost",
        "silhouette": "tree",
        "frame_rate_independent": True,
    },
    "heart": {
        "name": "Heart",
        "description": "Particles settle into a solid heart",
        "count": PARTICLE_COUNT, "height": TREE_HEIGHT, "radius": TREE_RADIUS,
        "ornaments": ORNAMENT_COUNT, "palette": "ember",
        "silhouette": "heart",
    },
    "noel": {
        "name": "Noel",
        "description": "Particles spell out a greeting",
        "count": PARTICLE_COUNT, "height": TREE_HEIGHT, "radius": TREE_RADIUS,
        "ornaments": ORNAMENT_COUNT, "palette": "emerald",
        "silhouette": "text", "text": "NOEL",
    },
}

PRESET_ORDER = list(PRESETS.keys())


def get_preset(key):
    """Return preset dict by key, or None if not found."""
    return PRESETS.get(key)


def list_presets():
    """Return list of (key, name, description) tuples."""
    return [(k, PRESETS[k]["name"], PRESETS[k]["description"]) for k in PRESET_ORDER]
