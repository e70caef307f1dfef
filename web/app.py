#!/usr/bin/env python3
"""
web/app.py - Web entrypoint for the quadtree refiner.

Features:
- AJAX-friendly refine endpoint (returns JSON with a base64 preview)
- Static mode (PNG) or animation mode (GIF, one frame every `gif_delta` steps)
- Optional leaf outlines
- Saves outputs to ./output (or $REFINER_OUTPUT_DIR) and returns download links

Usage (dev):
    python web/app.py
"""

import base64
import math
import os
import sys
import uuid
from pathlib import Path
from typing import Optional

from flask import Flask, flash, jsonify, redirect, render_template, request, send_file, url_for
from werkzeug.utils import secure_filename

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.errors import ImageLoadError, InvalidColor
from core.image_io import encode_frames_as_gif, encode_raster, load_pixel_grid, psnr
from core.quadtree_core import RefinementEngine
from core.recorder import record_refinement
from core.region_stats import RegionStats
from core.utils import hex_to_rgb

ALLOWED = {"png", "jpg", "jpeg", "gif", "bmp", "webp"}
OUTPUT_DIR = Path(os.environ.get("REFINER_OUTPUT_DIR", PROJECT_ROOT / "output"))
MAX_ITERATIONS = int(os.environ.get("REFINER_MAX_ITERATIONS", "20000"))
MAX_FRAMES = int(os.environ.get("REFINER_MAX_FRAMES", "200"))

app = Flask(__name__, static_folder=str(PROJECT_ROOT / "web" / "static"),
            template_folder=str(PROJECT_ROOT / "web" / "templates"))
app.secret_key = os.environ.get("FLASK_SECRET", "change_me_for_prod")
app.config["OUTPUT_DIR"] = OUTPUT_DIR
app.config["MAX_ITERATIONS"] = MAX_ITERATIONS
app.config["MAX_FRAMES"] = MAX_FRAMES


class BadRequest(ValueError):
    pass


def allowed_filename(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED


def _positive_int_field(name: str, raw: str, upper: Optional[int] = None) -> int:
    try:
        n = int(raw)
    except ValueError:
        raise BadRequest(f"Invalid {name} value")
    if n < 1:
        raise BadRequest(f"{name} must be positive")
    if upper is not None and n > upper:
        raise BadRequest(f"{name} must be at most {upper}")
    return n


def _parse_form(form):
    iterations_str = (form.get("iterations") or "").strip()
    if iterations_str == "":
        raise BadRequest("Iterations are required")
    iterations = _positive_int_field("iterations", iterations_str, app.config["MAX_ITERATIONS"])

    outline = None
    outline_str = (form.get("outline") or "").strip()
    if outline_str != "":
        try:
            outline = hex_to_rgb(outline_str)
        except InvalidColor as e:
            raise BadRequest(str(e))

    gif_delta = None
    gif_delta_str = (form.get("gif_delta") or "").strip()
    if gif_delta_str != "":
        gif_delta = _positive_int_field("gif_delta", gif_delta_str)
        frames = iterations // gif_delta + 1
        if frames > app.config["MAX_FRAMES"]:
            raise BadRequest(f"gif_delta too small: {frames} frames, at most "
                             f"{app.config['MAX_FRAMES']} allowed")
    return iterations, outline, gif_delta


@app.route("/", methods=["GET"])
def index():
    return render_template("index.html", result=None, default_iterations=1000)


@app.route("/refine", methods=["POST"])
def refine():
    """
    Main refine endpoint.
    If request is AJAX (X-Requested-With: XMLHttpRequest) or Accept: application/json -> return JSON.
    Otherwise render template fallback.
    """
    prefer_json = (request.headers.get("X-Requested-With") == "XMLHttpRequest") or \
        ("application/json" in (request.headers.get("Accept") or ""))

    def respond_error(msg, http_code=400):
        if prefer_json:
            return jsonify({"error": msg}), http_code
        flash(msg)
        return redirect(url_for("index"))

    if "image" not in request.files:
        return respond_error("No file uploaded")
    file = request.files["image"]
    if file.filename == "":
        return respond_error("No file selected")
    if not allowed_filename(file.filename):
        return respond_error("Unsupported file type (allowed: %s)" % ", ".join(sorted(ALLOWED)))

    try:
        iterations, outline, gif_delta = _parse_form(request.form)
    except BadRequest as e:
        return respond_error(str(e))

    try:
        arr = load_pixel_grid(file.stream)
    except ImageLoadError as e:
        return respond_error(str(e))

    engine = RefinementEngine(RegionStats(arr))
    try:
        if gif_delta is None:
            steps = engine.refine(iterations)
            exhausted = steps < iterations
            recon = engine.render(outline=outline)
            payload = encode_raster(recon, "PNG")
            p = psnr(arr, recon)
            p_str = "inf" if math.isinf(p) else f"{p:.2f}"
            ext, mime = "png", "image/png"
        else:
            rec = record_refinement(engine, iterations, gif_delta, outline=outline)
            steps, exhausted = rec.steps_completed, rec.exhausted
            payload = encode_frames_as_gif(rec.frames)
            p_str = "N/A"
            ext, mime = "gif", "image/gif"
    except (ValueError, OSError) as e:
        app.logger.exception("refinement failed")
        return respond_error(f"Render failed: {e}", 500)

    stem = secure_filename(Path(file.filename).stem) or "image"
    name = f"{stem}-compressed-{iterations}-{uuid.uuid4().hex[:8]}.{ext}"
    out_dir = Path(app.config["OUTPUT_DIR"])
    out_dir.mkdir(parents=True, exist_ok=True)
    try:
        (out_dir / name).write_bytes(payload)
    except OSError as e:
        # still continue, but warn
        app.logger.warning("Failed to write output: %s", e)

    result = {
        "steps": steps,
        "leaves": engine.arena.leaf_count(),
        "nodes": len(engine.arena),
        "exhausted": exhausted,
        "psnr": p_str,
        "name": name,
        "mime": mime,
    }

    if prefer_json:
        result["preview_b64"] = base64.b64encode(payload).decode("ascii")
        return jsonify(result)

    return render_template("index.html", result=result, default_iterations=iterations)


@app.route("/download/<fname>")
def download(fname):
    p = Path(app.config["OUTPUT_DIR"]) / secure_filename(fname)
    if not p.exists():
        flash("File not found")
        return redirect(url_for("index"))
    return send_file(str(p), as_attachment=True)


if __name__ == "__main__":
    print("Starting quadtree refiner web app on http://127.0.0.1:5000")
    app.run(host="0.0.0.0", port=5000, debug=True)
