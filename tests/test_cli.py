import numpy as np
import pytest
from PIL import Image

from cli.compress import build_parser, main


def test_static_mode_writes_default_output(png_file, capsys):
    assert main([str(png_file), "--iterations", "20"]) == 0
    out = png_file.parent / "photo-compressed-20.png"
    assert out.exists()
    with Image.open(out) as img:
        assert img.size == (16, 16)
        assert img.mode == "RGB"
    assert "[+] Wrote:" in capsys.readouterr().out


def test_static_mode_with_outline_and_output_file(png_file, tmp_path):
    target = tmp_path / "sub" / "result.txt"
    target.parent.mkdir()
    assert main([str(png_file), "--iterations", "5", "--outline", "#ff0000",
                 "--output-file", str(target)]) == 0
    out = tmp_path / "sub" / "result.png"
    arr = np.array(Image.open(out))
    assert arr[0, 0].tolist() == [255, 0, 0]


def test_gif_mode(png_file):
    assert main([str(png_file), "--iterations", "12", "--gif-delta", "4"]) == 0
    out = png_file.parent / "photo-compressed-12-delta4.gif"
    with Image.open(out) as img:
        assert img.format == "GIF"
        assert img.size == (16, 16)


def test_exhaustion_is_a_warning_by_default(tmp_path, block_image, capsys):
    path = tmp_path / "block.png"
    Image.fromarray(block_image).save(path)
    assert main([str(path), "--iterations", "100"]) == 0
    assert "fully subdivided after 5 of 100" in capsys.readouterr().out
    assert (tmp_path / "block-compressed-100.png").exists()


def test_strict_exhaustion_fails(tmp_path, block_image):
    path = tmp_path / "block.png"
    Image.fromarray(block_image).save(path)
    assert main([str(path), "--iterations", "100", "--strict"]) == 1
    assert main([str(path), "--iterations", "100", "--gif-delta", "10", "--strict"]) == 1


def test_unreadable_input(tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"nope")
    assert main([str(bad), "--iterations", "3"]) == 1


@pytest.mark.parametrize("argv", [
    ["in.png"],
    ["in.png", "--iterations", "0"],
    ["in.png", "--iterations", "x"],
    ["in.png", "--iterations", "3", "--outline", "#12"],
    ["in.png", "--iterations", "3", "--gif-delta", "0"],
    ["in.png", "--iterations", "3", "--alpha", "300"],
    ["noext", "--iterations", "3"],
])
def test_argument_errors_exit_with_usage(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    assert exc.value.code == 2


def test_parser_defaults():
    args = build_parser().parse_args(["a.png", "--iterations", "7"])
    assert args.iterations == 7
    assert args.gif_delta is None
    assert args.outline is None
    assert args.delay_ms == 100
    assert args.alpha == 100


def test_unwritable_output(png_file, tmp_path, capsys):
    target = tmp_path / "missing-dir" / "result.png"
    assert main([str(png_file), "--iterations", "3", "--output-file", str(target)]) == 1
    assert "Cannot write" in capsys.readouterr().err
    assert main([str(png_file), "--iterations", "3", "--gif-delta", "1",
                 "--output-file", str(target)]) == 1
