# core/utils.py
from pathlib import Path
from typing import Optional, Tuple

from .errors import InvalidColor, InvalidOutputPath


def hex_to_rgb(hex_str: str) -> Tuple[int, int, int]:
    """'#1a2b3c' or '1a2b3c' -> (26, 43, 60)."""
    h = hex_str.strip()
    if h.startswith("#"):
        h = h[1:]
    if len(h) != 6:
        raise InvalidColor(f"Invalid hex color: {hex_str!r}")
    try:
        return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
    except ValueError as e:
        raise InvalidColor(f"Invalid hex color: {hex_str!r}") from e


def _input_extension(input_path: Path) -> str:
    ext = input_path.suffix[1:]
    if not ext:
        raise InvalidOutputPath(f"Input file '{input_path}' has no valid extension")
    return ext.lower()


def default_output_file(input_file: str, gif: bool, iterations: int,
                        has_outline: bool, gif_delta: Optional[int] = None) -> str:
    """
    <stem>-compressed-<iterations>[-delta<N>][-outline].<ext> next to the input.

    The delta part only appears in GIF mode. GIF mode always writes .gif,
    otherwise the input's extension is kept (lowercased).
    """
    input_path = Path(input_file)
    ext = _input_extension(input_path)
    stem = input_path.stem
    if not stem:
        raise InvalidOutputPath(f"Input file '{input_file}' has no valid filename")

    name = f"{stem}-compressed-{iterations}"
    if gif and gif_delta is not None:
        name += f"-delta{gif_delta}"
    if has_outline:
        name += "-outline"
    name += ".gif" if gif else f".{ext}"
    return str(input_path.parent / name)


def ensure_valid_output_file(output_file: str, input_file: str, gif: bool) -> str:
    """Keep the directory and stem of `output_file` but force the right extension."""
    input_ext = _input_extension(Path(input_file))
    output_path = Path(output_file)
    stem = output_path.stem
    if not stem:
        raise InvalidOutputPath(f"Invalid output file path: '{output_file}'")
    ext = "gif" if gif else input_ext
    return str(output_path.parent / f"{stem}.{ext}")
