#!/usr/bin/env python3
"""
cli/compress.py
Command-line wrapper around the greedy quadtree refiner in core/.

Usage examples:
  # 2000 refinement steps, writes photo-compressed-2000.jpg next to the input
  python cli/compress.py photo.jpg --iterations 2000

  # same, with black leaf outlines and an explicit output file
  python cli/compress.py photo.jpg --iterations 2000 --outline "#000000" --output-file out.png

  # record the process as a GIF, one frame every 50 steps
  python cli/compress.py photo.jpg --iterations 2000 --gif-delta 50
"""

import argparse
import logging
import math
import sys
from pathlib import Path

# Make sure core package can be imported when running this script directly
this_dir = Path(__file__).resolve().parent
project_root = this_dir.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from tqdm import tqdm

from core.errors import ImageLoadError, InvalidColor, InvalidOutputPath, NoMoreSplittableRegions
from core.image_io import (
    DEFAULT_FRAME_DELAY_MS,
    DEFAULT_LOOP,
    load_pixel_grid,
    psnr,
    save_frames_as_gif,
    save_raster,
)
from core.quadtree_core import DEFAULT_ALPHA, RefinementEngine
from core.recorder import record_refinement
from core.region_stats import RegionStats
from core.utils import default_output_file, ensure_valid_output_file, hex_to_rgb


def positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if n < 1:
        raise argparse.ArgumentTypeError(f"{value!r} must be a positive integer")
    return n


def resolve_output_path(args) -> str:
    gif = args.gif_delta is not None
    if args.output_file:
        return ensure_valid_output_file(args.output_file, args.input, gif)
    return default_output_file(args.input, gif, args.iterations,
                               args.outline is not None, args.gif_delta)


def compress_image(in_path: str, out_path: str, iterations: int, outline=None, strict: bool = False):
    arr = load_pixel_grid(in_path)
    h, w = arr.shape[:2]
    print(f"[+] Input: {in_path} ({w}x{h})")
    engine = RefinementEngine(RegionStats(arr))

    with tqdm(total=iterations, desc="Refining", unit="step") as bar:
        done = engine.refine(iterations, progress=lambda _: bar.update(1), strict=strict)
    if done < iterations:
        print(f"[!] Image fully subdivided after {done} of {iterations} steps")

    recon = engine.render(outline=outline)
    save_raster(recon, out_path)

    p = psnr(arr, recon)
    nodes = len(engine.arena)
    print(f"[+] Wrote: {out_path}")
    print(f"[+] Steps: {done}, nodes: {nodes}, leaves: {engine.arena.leaf_count()}")
    print(f"[+] PSNR: {'inf' if math.isinf(p) else f'{p:.2f}'} dB")
    return {"out": out_path, "steps": done, "nodes": nodes, "psnr": p}


def record_gif(in_path: str, out_path: str, iterations: int, gif_delta: int, outline=None,
               delay_ms: int = DEFAULT_FRAME_DELAY_MS, loop: int = DEFAULT_LOOP,
               alpha: int = DEFAULT_ALPHA, strict: bool = False):
    arr = load_pixel_grid(in_path)
    h, w = arr.shape[:2]
    print(f"[+] Input: {in_path} ({w}x{h}), snapshot every {gif_delta} steps")
    engine = RefinementEngine(RegionStats(arr))

    with tqdm(total=iterations, desc="Recording", unit="step") as bar:
        rec = record_refinement(engine, iterations, gif_delta, outline=outline, alpha=alpha,
                                progress=lambda _: bar.update(1))
    if rec.exhausted:
        print(f"[!] Image fully subdivided after {rec.steps_completed} of {iterations} steps")
        if strict:
            rec.raise_for_error()

    save_frames_as_gif(rec.frames, out_path, delay_ms=delay_ms, loop=loop)
    print(f"[+] Wrote: {out_path} ({len(rec.frames)} frames)")
    return {"out": out_path, "steps": rec.steps_completed, "frames": len(rec.frames)}


def build_parser():
    p = argparse.ArgumentParser(prog="compress.py",
                                description="Compress images with iterative quadtree refinement")
    p.add_argument("input", metavar="FILE", help="Input image file")
    p.add_argument("--output-file", metavar="FILE", default=None,
                   help="Output file path (default: <input>-compressed-<N>... next to the input)")
    p.add_argument("--iterations", metavar="N", type=positive_int, required=True,
                   help="Number of refinement iterations")
    p.add_argument("--outline", metavar="HEX", default=None,
                   help="Outline color in hex format (e.g. #000000)")
    p.add_argument("--gif-delta", metavar="N", type=positive_int, default=None,
                   help="Save the algorithm process to a GIF, one frame every N iterations")
    p.add_argument("--delay-ms", type=positive_int, default=DEFAULT_FRAME_DELAY_MS,
                   help="GIF frame duration in milliseconds")
    p.add_argument("--loop", type=int, default=DEFAULT_LOOP, help="GIF loop count (0 = forever)")
    p.add_argument("--alpha", type=int, default=DEFAULT_ALPHA, help="GIF frame alpha (0-255)")
    p.add_argument("--strict", action="store_true",
                   help="fail if the image is fully subdivided before all iterations ran")
    p.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    outline = None
    if args.outline is not None:
        try:
            outline = hex_to_rgb(args.outline)
        except InvalidColor as e:
            parser.error(str(e))
    if not 0 <= args.alpha <= 255:
        parser.error(f"--alpha must be in 0..255, got {args.alpha}")
    try:
        out_path = resolve_output_path(args)
    except InvalidOutputPath as e:
        parser.error(str(e))

    try:
        if args.gif_delta is None:
            compress_image(args.input, out_path, args.iterations, outline=outline, strict=args.strict)
        else:
            record_gif(args.input, out_path, args.iterations, args.gif_delta, outline=outline,
                       delay_ms=args.delay_ms, loop=args.loop, alpha=args.alpha, strict=args.strict)
    except ImageLoadError as e:
        print(f"[-] {e}", file=sys.stderr)
        return 1
    except NoMoreSplittableRegions as e:
        print(f"[-] {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"[-] Cannot write {out_path}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
