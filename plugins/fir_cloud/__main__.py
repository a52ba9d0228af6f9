"""
Particle Tree Viewer - Entry Point

Usage:
    python -m fir_cloud [preset] [--count N] [--window WxH] [--text STR]
                        [--font PATH] [--snap STEPS] [--disperse] [--out PATH]

Examples:
    python -m fir_cloud
    python -m fir_cloud dense
    python -m fir_cloud noel --text "HELLO"
    python -m fir_cloud classic --snap 120 --disperse

Silhouettes:
    tree   - golden-angle fir tree (default)
    heart  - rejection-sampled solid heart
    text   - rasterized string

Use --list to see all available presets.
"""

import os
import sys

from .presets import PRESET_ORDER, list_presets


def snap(preset, count, steps, text=None, font_path=None, disperse=False,
         size=(640, 640), out=None):
    """Headless mode: run N steps, save a PNG, exit."""
    from .scene import TreeScene

    screenshots_dir = os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
        "screenshots"
    )

    presets_to_snap = [preset] if preset != "all" else PRESET_ORDER
    for pkey in presets_to_snap:
        scene = TreeScene(pkey, count=count, text=text, font_path=font_path)
        scene.set_mode("dispersed" if disperse else "settled")

        print(f"  {pkey}: running {steps} steps...", end="", flush=True)
        scene.run(steps)

        if out is not None and len(presets_to_snap) == 1:
            path = out
        else:
            os.makedirs(screenshots_dir, exist_ok=True)
            suffix = "_snow" if disperse else ""
            path = os.path.join(screenshots_dir, f"tree_{pkey}{suffix}.png")
        scene.save_png(path, *size)
        print(f" saved: {path}")


def main(argv=None):
    preset = "classic"
    count = None
    win_w, win_h = 800, 800
    text = None
    font_path = None
    snap_steps = 0
    disperse = False
    out = None

    args = sys.argv[1:] if argv is None else argv
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--count" and i + 1 < len(args):
            count = int(args[i + 1])
            i += 2
        elif arg == "--window" and i + 1 < len(args):
            parts = args[i + 1].split("x")
            win_w, win_h = int(parts[0]), int(parts[1])
            i += 2
        elif arg == "--text" and i + 1 < len(args):
            text = args[i + 1]
            i += 2
        elif arg == "--font" and i + 1 < len(args):
            font_path = args[i + 1]
            i += 2
        elif arg == "--snap" and i + 1 < len(args):
            snap_steps = int(args[i + 1])
            i += 2
        elif arg == "--out" and i + 1 < len(args):
            out = args[i + 1]
            i += 2
        elif arg == "--disperse":
            disperse = True
            i += 1
        elif arg == "--list":
            print("\nAvailable presets:\n")
            for key, name, desc in list_presets():
                print(f"    {key:12s} {name:16s} {desc}")
            print()
            return 0
        elif arg in ("--help", "-h"):
            print(__doc__)
            return 0
        elif arg in PRESET_ORDER or arg == "all":
            preset = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print("Use --list to see available presets")
            return 2

    if count is not None and count <= 0:
        print(f"--count must be positive, got {count}")
        return 2

    if snap_steps > 0:
        print(f"Headless snap mode: {preset}, {snap_steps} steps")
        snap(preset, count, snap_steps, text=text, font_path=font_path,
             disperse=disperse, size=(win_w, win_h), out=out)
        return 0

    from .viewer import Viewer

    print("Starting Particle Tree Viewer")
    print(f"  Preset: {preset}")
    print(f"  Window: {win_w}x{win_h}")
    print()

    viewer = Viewer(width=win_w, height=win_h, preset=preset, count=count,
                    text=text, font_path=font_path)
    viewer.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
