"""
Tests for decoding, encoding and folder listing.
"""
from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage

from models.composite_canvas import CompositeCanvas
from models.errors import DecodeError
from repositories.image_repository import ImageRepository, natural_sort_key
from services.image_service import ImageService
from conftest import noise, to_png_bytes


@pytest.fixture
def repo():
    return ImageRepository()


def test_decode_rgb_png(repo):
    px = noise(30, 20, seed=1)
    img = repo.decode(to_png_bytes(px), "shot.png")
    assert (img.width, img.height) == (20, 30)
    assert img.pixels.shape == (30, 20, 3)
    np.testing.assert_array_equal(img.pixels, px)
    assert img.name == "shot.png"


def test_decode_rgba_png_keeps_alpha(repo):
    px = noise(12, 9, seed=2, channels=4)
    img = repo.decode(to_png_bytes(px))
    assert img.has_alpha
    np.testing.assert_array_equal(img.pixels, px)


def test_decode_grayscale_png_becomes_rgb(repo):
    gray = noise(10, 10, seed=3)[..., 0]
    img = repo.decode(to_png_bytes(gray))
    assert img.pixels.shape == (10, 10, 3)
    np.testing.assert_array_equal(img.pixels[..., 0], gray)
    np.testing.assert_array_equal(img.pixels[..., 2], gray)


def test_decoded_pixels_are_read_only(repo):
    img = repo.decode(to_png_bytes(noise(5, 5, seed=4)))
    with pytest.raises(ValueError):
        img.pixels[0, 0, 0] = 1


@pytest.mark.parametrize("payload", [b"", b"not an image at all", b"\x89PNG\r\n\x1a\n"])
def test_undecodable_payload(repo, payload):
    with pytest.raises(DecodeError):
        repo.decode(payload, "broken.png")


def test_decode_error_is_value_error(repo):
    with pytest.raises(ValueError):
        repo.decode(b"garbage")


def test_load_missing_file(repo, tmp_path):
    with pytest.raises(FileNotFoundError):
        repo.load(tmp_path / "missing.png")


def test_load_from_disk(repo, tmp_path):
    px = noise(8, 6, seed=5)
    path = tmp_path / "1.png"
    path.write_bytes(to_png_bytes(px))
    img = repo.load(path)
    assert img.path == path
    np.testing.assert_array_equal(img.pixels, px)


def test_encode_png_is_lossless(repo):
    px = noise(16, 16, seed=6, channels=4)
    png = repo.encode_png(CompositeCanvas(pixels=px))
    decoded = np.asarray(PILImage.open(BytesIO(png)).convert("RGBA"))
    np.testing.assert_array_equal(decoded, px)


def test_save_creates_parent_dirs(repo, tmp_path):
    out = repo.save(CompositeCanvas(pixels=noise(4, 4, seed=7, channels=4)), tmp_path / "out" / "page.png")
    assert out.is_file()


def test_natural_sort_key():
    names = ["10.png", "2.png", "1.png", "Shot 3.png", "shot 20.png"]
    assert sorted(names, key=natural_sort_key) == ["1.png", "2.png", "10.png", "Shot 3.png", "shot 20.png"]


def test_list_dir_orders_naturally_and_filters(repo, tmp_path):
    for name in ["10.png", "2.jpg", "1.PNG", "notes.txt"]:
        (tmp_path / name).write_bytes(b"x")
    (tmp_path / "sub.png").mkdir()
    assert [p.name for p in repo.list_dir(tmp_path)] == ["1.PNG", "2.jpg", "10.png"]


def test_list_dir_requires_directory(repo, tmp_path):
    with pytest.raises(NotADirectoryError):
        repo.list_dir(tmp_path / "nope")


def test_valid_extensions_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("VALID_IMAGE_EXTENSIONS", ".webp")
    (tmp_path / "a.png").write_bytes(b"x")
    (tmp_path / "b.webp").write_bytes(b"x")
    assert [p.name for p in ImageRepository().list_dir(tmp_path)] == ["b.webp"]


def test_stream_folder_stops_on_unreadable_file(tmp_path):
    (tmp_path / "1.png").write_bytes(to_png_bytes(noise(4, 4, seed=8)))
    (tmp_path / "2.png").write_bytes(b"corrupt")
    with pytest.raises(DecodeError):
        list(ImageService().stream_folder(tmp_path))


def test_png_to_data_url():
    assert ImageService.png_to_data_url(b"") == ""
    assert ImageService.png_to_data_url(b"abc") == "data:image/png;base64,YWJj"
