import os

import pytest

from core.errors import InvalidColor, InvalidOutputPath
from core.utils import default_output_file, ensure_valid_output_file, hex_to_rgb


@pytest.mark.parametrize("text,expected", [
    ("#000000", (0, 0, 0)),
    ("ffffff", (255, 255, 255)),
    ("#1A2b3C", (26, 43, 60)),
    ("  #ff8000 ", (255, 128, 0)),
])
def test_hex_to_rgb(text, expected):
    assert hex_to_rgb(text) == expected


@pytest.mark.parametrize("text", ["", "#fff", "#12345", "#1234567", "#gg0000", "red"])
def test_hex_to_rgb_rejects_malformed(text):
    with pytest.raises(InvalidColor):
        hex_to_rgb(text)


@pytest.mark.parametrize("gif,outline,delta,name", [
    (False, False, None, "cat-compressed-50.jpg"),
    (False, True, None, "cat-compressed-50-outline.jpg"),
    (False, False, 5, "cat-compressed-50.jpg"),
    (True, False, 5, "cat-compressed-50-delta5.gif"),
    (True, True, 5, "cat-compressed-50-delta5-outline.gif"),
    (True, True, None, "cat-compressed-50-outline.gif"),
])
def test_default_output_file(gif, outline, delta, name):
    out = default_output_file(os.path.join("pics", "cat.JPG"), gif, 50, outline, delta)
    assert out == os.path.join("pics", name)


def test_default_output_file_needs_extension():
    with pytest.raises(InvalidOutputPath):
        default_output_file("cat", False, 10, False)


def test_ensure_valid_output_file_forces_extension():
    assert ensure_valid_output_file(os.path.join("out", "result.txt"), "in.PNG", False) == \
        os.path.join("out", "result.png")
    assert ensure_valid_output_file("result.png", "in.png", True) == "result.gif"
    assert ensure_valid_output_file("result", "in.jpeg", False) == "result.jpeg"


def test_ensure_valid_output_file_rejects_bad_paths():
    with pytest.raises(InvalidOutputPath):
        ensure_valid_output_file("result.png", "noext", False)
    with pytest.raises(InvalidOutputPath):
        ensure_valid_output_file("", "in.png", False)
