# core/image_io.py
"""Pillow-backed decode/encode around the refinement core."""
import io
import math
from pathlib import Path
from typing import BinaryIO, List, Sequence, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import ImageLoadError

DEFAULT_FRAME_DELAY_MS = 100
DEFAULT_LOOP = 0

Source = Union[str, Path, BinaryIO]


def load_pixel_grid(source: Source) -> np.ndarray:
    """Decode any Pillow-readable image into an HxWx3 uint8 RGB array."""
    try:
        with Image.open(source) as img:
            return np.array(img.convert("RGB"))
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise ImageLoadError(f"Cannot open image {getattr(source, 'name', source)}: {e}") from e


def to_pil(raster: np.ndarray) -> Image.Image:
    if raster.ndim == 3 and raster.shape[2] == 1:
        raster = raster[..., 0]
    return Image.fromarray(np.ascontiguousarray(raster, dtype=np.uint8))


def save_raster(raster: np.ndarray, path: Union[str, Path]) -> None:
    to_pil(raster).save(path)


def encode_raster(raster: np.ndarray, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    to_pil(raster).save(buf, format=fmt)
    return buf.getvalue()


def _frames_to_pil(frames: Sequence[np.ndarray]) -> List[Image.Image]:
    if not frames:
        raise ValueError("no frames to encode")
    shape = frames[0].shape[:2]
    for i, f in enumerate(frames):
        if f.shape[:2] != shape:
            raise ValueError(f"frame {i} is {f.shape[:2]}, expected {shape}")
    return [to_pil(f) for f in frames]


def save_frames_as_gif(frames: Sequence[np.ndarray], out: Union[str, Path, BinaryIO],
                       delay_ms: int = DEFAULT_FRAME_DELAY_MS, loop: int = DEFAULT_LOOP) -> None:
    images = _frames_to_pil(frames)
    images[0].save(out, format="GIF", save_all=True, append_images=images[1:],
                   duration=delay_ms, loop=loop)


def encode_frames_as_gif(frames: Sequence[np.ndarray], delay_ms: int = DEFAULT_FRAME_DELAY_MS,
                         loop: int = DEFAULT_LOOP) -> bytes:
    buf = io.BytesIO()
    save_frames_as_gif(frames, buf, delay_ms=delay_ms, loop=loop)
    return buf.getvalue()


def psnr(orig: np.ndarray, recon: np.ndarray) -> float:
    mse = float(np.mean((orig.astype(np.float64) - recon.astype(np.float64)) ** 2))
    if mse == 0.0:
        return float("inf")
    PIXEL_MAX = 255.0
    return 20.0 * math.log10(PIXEL_MAX / math.sqrt(mse))
