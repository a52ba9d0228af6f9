"""
Interactive Pygame Viewer for the Particle Tree

Renders a TreeScene into a window. The keyboard stands in for the gesture
classifier so the morph can be driven by hand.

Controls:
  SPACE       Toggle tree / snow-globe (SETTLED <-> DISPERSED)
  T           Home to the tree
  G           Home to the heart
  X           Home to the text silhouette
  P           Next palette
  S           Save screenshot
  D           Toggle HUD overlay
  Q / ESC     Quit
"""

import os
import time
import pygame

from .modes import toggled
from .palette import PALETTE_ORDER
from .scene import TreeScene


class Viewer:
    def __init__(self, width=800, height=800, preset="classic", count=None,
                 text=None, font_path=None, render_scale=0.5):
        self.width = width
        self.height = height
        # Render at reduced resolution and scale up; splatting is per pixel
        self.render_w = max(64, int(width * render_scale))
        self.render_h = max(64, int(height * render_scale))
        self.scene = TreeScene(preset, count=count, text=text,
                               font_path=font_path, verbose=True)
        self.running = True
        self.show_hud = True
        self.hud_font = None

    def _frame_surface(self):
        rgb = self.scene.render_rgb(self.render_w, self.render_h)
        surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1).copy())
        return pygame.transform.smoothscale(surface, (self.width, self.height))

    def _draw_hud(self, screen, fps):
        if not self.show_hud:
            return
        stats = self.scene.stats
        label = self.scene.engine.active.kinematics_label
        line = (f"{stats['silhouette']}  |  {stats['mode']} ({label})  |  "
                f"{stats['particles']:,} particles  |  "
                f"dist {stats['mean_distance']:.3f}  |  FPS: {fps:.0f}")
        bg_surface = pygame.Surface((self.width, 24), pygame.SRCALPHA)
        bg_surface.fill((0, 0, 0, 140))
        screen.blit(bg_surface, (0, 0))
        text_surface = self.hud_font.render(line, True, (210, 215, 225))
        screen.blit(text_surface, (10, 6))

    def _save_screenshot(self):
        screenshots_dir = os.path.join(
            os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
            "screenshots"
        )
        os.makedirs(screenshots_dir, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(screenshots_dir, f"tree_{self.scene.preset_key}_{timestamp}.png")
        self.scene.save_png(path, self.width, self.height)
        print(f"Screenshot saved: {path}")

    def _next_palette(self):
        idx = PALETTE_ORDER.index(self.scene.palette)
        name = PALETTE_ORDER[(idx + 1) % len(PALETTE_ORDER)]
        self.scene.set_palette(name)
        print(f"[fir_cloud] Palette: {name}")

    def _handle_keydown(self, event):
        key = event.key
        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False
        elif key == pygame.K_SPACE:
            mode = self.scene.set_mode(toggled(self.scene.mode))
            print(f"[fir_cloud] Mode: {mode.value}")
        elif key == pygame.K_t:
            self.scene.show_silhouette("tree")
        elif key == pygame.K_g:
            self.scene.show_silhouette("heart")
        elif key == pygame.K_x:
            self.scene.show_silhouette("text", text=self.scene.text or "NOEL")
        elif key == pygame.K_p:
            self._next_palette()
        elif key == pygame.K_s:
            self._save_screenshot()
        elif key == pygame.K_d:
            self.show_hud = not self.show_hud

    def run(self):
        """Main viewer loop."""
        pygame.init()
        screen = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption("Particle Tree")
        clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)

        last_time = time.time()
        while self.running:
            now = time.time()
            dt = min(now - last_time, 0.1)  # cap dt to avoid jumps
            last_time = now

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif event.type == pygame.KEYDOWN:
                    self._handle_keydown(event)

            self.scene.update(dt)
            screen.blit(self._frame_surface(), (0, 0))
            self._draw_hud(screen, clock.get_fps())
            pygame.display.flip()
            clock.tick(60)

        pygame.quit()
