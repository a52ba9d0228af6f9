"""
TreeScene - Headless session core

Builds every buffer once from a preset (tree target, colors, velocities,
ornament anchors, then the live buffer seeded from the tree), and advances
the session one frame at a time with zero pygame dependency.

Used by the viewer (which adds the window and keys) and by the CLI's
headless snapshot mode.

Usage:
    from fir_cloud.scene import TreeScene
    scene = TreeScene("classic")
    scene.set_mode("OPEN_PALM")
    live = scene.update(0.016)          # (N, 3) float32
    rgb = scene.render_rgb(512, 512)    # (H, W, 3) uint8
"""

import math
import numpy as np
from PIL import Image
from scipy.ndimage import gaussian_filter

from .modes import Mode, coerce_mode, is_dispersed
from .morph import MorphEngine, ParticleSet, VelocityField
from .ornaments import (
    DecorationVisibility, anchor_positions, place_ornaments, star_position,
)
from .palette import COLORS, PALETTES, assign_tiers, generate_colors, hex_to_rgb
from .presets import PRESET_ORDER, get_preset
from .shapes import (
    SILHOUETTE_ORDER, SILHOUETTES, cycle_candidates, generate_heart, generate_tree,
    text_candidates,
)
from .smoothing import SmoothedParameter


# Camera: 45 deg vertical fov, 11 units back, orbiting around Y
CAMERA_DISTANCE = 11.0
CAMERA_FOV = 45.0
NEAR_PLANE = 0.5
ORBIT_SPEED = 0.4          # rad/s, tree mode only

# Render look
POINT_GAIN = 0.35
BAUBLE_RADIUS = 0.12
BAUBLE_GLOW = 1.5
STAR_RADIUS = 0.45
STAR_GLOW = 3.0
BLOOM_SIGMA = 12.0
BLOOM_INTENSITY = 0.6
MIN_DISC_PIXELS = 0.5     # smaller discs are not drawn


class TreeScene:
    """One session: cached targets, live buffer, decorations, camera orbit."""

    def __init__(self, preset_key="classic", count=None, text=None,
                 font_path=None, seed=None, verbose=False):
        preset = get_preset(preset_key)
        if preset is None:
            raise ValueError(f"Unknown preset: {preset_key!r}. "
                             f"Available: {PRESET_ORDER}")

        self.preset_key = preset_key
        self.count = int(count if count is not None else preset["count"])
        self.height = float(preset["height"])
        self.radius = float(preset["radius"])
        self.palette = preset["palette"]
        self.text = text if text is not None else preset.get("text")
        self.font_path = font_path
        self.rng = np.random.default_rng(seed)

        # One-shot buffers, in dependency order
        tree = generate_tree(self.count, self.height, self.radius, rng=self.rng)
        self.tiers = assign_tiers(self.count, rng=self.rng)
        colors = generate_colors(self.count, self.palette, tiers=self.tiers)
        velocities = VelocityField.random(self.count, rng=self.rng)
        self.ornaments = place_ornaments(preset["ornaments"], self.height,
                                         self.radius, rng=self.rng)
        self._ornament_xyz = anchor_positions(self.ornaments)
        self._ornament_rgb = np.array(
            [hex_to_rgb(COLORS[a.tier]) for a in self.ornaments], dtype=np.float32
        )

        self.particles = ParticleSet(tree, colors)
        self.engine = MorphEngine(
            self.particles, velocities,
            frame_rate_independent=preset.get("frame_rate_independent", False),
        )
        self._targets = {"tree": self.particles.target}

        self.decorations = DecorationVisibility()
        self.orbit_speed = SmoothedParameter(ORBIT_SPEED, time_constant=1.0)
        self.orbit_angle = 0.0
        self.mode = Mode.SETTLED
        self.elapsed = 0.0
        self.silhouette = "tree"

        if preset["silhouette"] != "tree":
            self.show_silhouette(preset["silhouette"], text=self.text)

        if verbose:
            print(f"[fir_cloud] Scene '{preset_key}': {self.count} particles, "
                  f"{len(self.ornaments)} ornaments, palette {self.palette}")
            for name, params in self.engine.get_params().items():
                print(f"[fir_cloud]   {name}: {params}")

    # --- Mode and silhouettes ---

    def set_mode(self, mode):
        """Store the mode for the next update. Never touches the buffers."""
        self.mode = coerce_mode(mode)
        return self.mode

    def _build_target(self, name, text):
        if name == "heart":
            return generate_heart(self.count, rng=self.rng)
        candidates = text_candidates(text, font_path=self.font_path, rng=self.rng)
        if len(candidates) == 0:
            return None
        return cycle_candidates(candidates, self.count)

    def show_silhouette(self, name, text=None):
        """Home toward another silhouette. Returns False if it was degenerate.

        Targets are cached per silhouette (and per string for text), so
        flipping back and forth never regenerates jitter.
        """
        if name not in SILHOUETTES:
            raise ValueError(f"Unknown silhouette: {name!r}. "
                             f"Available: {SILHOUETTE_ORDER}")
        if name == "text":
            text = text if text is not None else self.text
            key = ("text", text)
        else:
            key = name

        target = self._targets.get(key)
        if target is None:
            target = self._build_target(name, text)
            if target is None:
                print(f"[fir_cloud] Nothing to draw for text {text!r}, "
                      f"keeping {self.silhouette}")
                return False
            self._targets[key] = target

        self.particles.retarget(target)
        self._targets[key] = self.particles.target
        self.silhouette = name
        if name == "text":
            self.text = text
        return True

    def set_palette(self, name):
        """Rebuild the color buffer once with another palette, same tiers."""
        if name not in PALETTES:
            raise ValueError(f"Unknown palette: {name!r}. Available: {list(PALETTES)}")
        self.palette = name
        self.particles.recolor(generate_colors(self.count, name, tiers=self.tiers))

    # --- Frame update ---

    def update(self, dt):
        """Advance the session by dt seconds. Returns the live buffer."""
        dt = max(0.0, float(dt))
        self.elapsed += dt
        self.engine.step(self.mode, dt, self.elapsed)
        self.decorations.update(self.mode, dt, shown=self.silhouette == "tree")

        self.orbit_speed.set_target(0.0 if is_dispersed(self.mode) else ORBIT_SPEED)
        self.orbit_speed.update(dt)
        self.orbit_angle = (self.orbit_angle + self.orbit_speed.get_value() * dt) % (2 * math.pi)
        return self.particles.live

    def run(self, steps, dt=1 / 60):
        for _ in range(steps):
            self.update(dt)
        return self.particles.live

    # --- Rendering ---

    def _project(self, points, width, height):
        """Orbit + perspective. Returns (u, v, depth, focal)."""
        c, s = math.cos(self.orbit_angle), math.sin(self.orbit_angle)
        x = points[:, 0] * c + points[:, 2] * s
        z = -points[:, 0] * s + points[:, 2] * c
        y = points[:, 1]
        depth = CAMERA_DISTANCE - z
        focal = (height / 2.0) / math.tan(math.radians(CAMERA_FOV) / 2.0)
        safe = np.maximum(depth, NEAR_PLANE)
        u = width / 2.0 + focal * x / safe
        v = height / 2.0 - focal * y / safe
        return u, v, depth, focal

    def _splat_points(self, image, width, height):
        u, v, depth, _ = self._project(self.particles.live, width, height)
        ui = np.round(u).astype(np.int64)
        vi = np.round(v).astype(np.int64)
        ok = (depth > NEAR_PLANE) & (ui >= 0) & (ui < width) & (vi >= 0) & (vi < height)
        # Closer particles are larger on screen; fold that into brightness
        weight = POINT_GAIN * (CAMERA_DISTANCE / depth[ok]) ** 2
        np.add.at(image, (vi[ok], ui[ok]), self.particles.colors[ok] * weight[:, None])

    def _draw_discs(self, image, points, colors, world_radius, gain, scale=1.0):
        """Glowing discs shrunk and dimmed by a visibility scale in [0, 1]."""
        height, width = image.shape[:2]
        world_radius *= scale
        gain *= scale
        if world_radius <= 0.0 or len(points) == 0:
            return
        u, v, depth, focal = self._project(points, width, height)
        for k in range(len(points)):
            if depth[k] <= NEAR_PLANE:
                continue
            rad = focal * world_radius / depth[k]
            if rad < MIN_DISC_PIXELS:
                continue
            x0, x1 = int(max(0, u[k] - rad)), int(min(width, u[k] + rad + 1))
            y0, y1 = int(max(0, v[k] - rad)), int(min(height, v[k] + rad + 1))
            if x0 >= x1 or y0 >= y1:
                continue
            Y, X = np.ogrid[y0:y1, x0:x1]
            inside = (X - u[k]) ** 2 + (Y - v[k]) ** 2 <= rad * rad
            patch = image[y0:y1, x0:x1]
            patch[inside] = np.maximum(patch[inside], colors[k] * gain)

    def _apply_bloom(self, image, sigma=BLOOM_SIGMA, intensity=BLOOM_INTENSITY):
        """Glow halo via 4x downsample-blur-upsample additive blend."""
        h, w = image.shape[:2]
        factor = 4
        small = image[::factor, ::factor, :]
        small_sigma = max(1.0, sigma / factor)
        glow = gaussian_filter(small, [small_sigma, small_sigma, 0])
        glow = np.repeat(np.repeat(glow, factor, axis=0), factor, axis=1)[:h, :w, :]
        return image + glow * intensity

    def render_float(self, width=512, height=512):
        """(H, W, 3) float32 linear image, before bloom and clipping."""
        image = np.zeros((height, width, 3), dtype=np.float32)
        self._splat_points(image, width, height)
        self._draw_discs(image, self._ornament_xyz, self._ornament_rgb,
                         BAUBLE_RADIUS, BAUBLE_GLOW,
                         scale=self.decorations.bauble_scale)
        star = np.array([star_position(self.height)], dtype=np.float32)
        gold = np.array([hex_to_rgb(COLORS["gold"])], dtype=np.float32)
        self._draw_discs(image, star, gold, STAR_RADIUS, STAR_GLOW,
                         scale=self.decorations.star_scale)
        return image

    def render_rgb(self, width=512, height=512):
        """(H, W, 3) uint8 frame with bloom."""
        image = self._apply_bloom(self.render_float(width, height))
        np.clip(image * 255.0, 0, 255, out=image)
        return image.astype(np.uint8)

    def save_png(self, path, width=512, height=512):
        Image.fromarray(self.render_rgb(width, height)).save(path)
        return path

    @property
    def stats(self):
        stats = dict(self.engine.stats)
        stats.update({
            "preset": self.preset_key,
            "silhouette": self.silhouette,
            "palette": self.palette,
            "elapsed": self.elapsed,
            "bauble_scale": self.decorations.bauble_scale,
            "star_scale": self.decorations.star_scale,
        })
        return stats
