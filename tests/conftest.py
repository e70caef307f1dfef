import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def noisy_image(rng):
    return rng.integers(0, 256, size=(16, 16, 3), dtype=np.uint8)


@pytest.fixture
def block_image():
    """4x4 white image with a black 2x2 block in the top-left corner."""
    img = np.full((4, 4, 3), 255, dtype=np.uint8)
    img[:2, :2] = 0
    return img


@pytest.fixture
def png_file(tmp_path, noisy_image):
    path = tmp_path / "photo.png"
    Image.fromarray(noisy_image).save(path)
    return path
