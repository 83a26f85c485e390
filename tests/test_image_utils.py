import base64
from io import BytesIO

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from api.sanitization import sanitize_filename, sanitize_school_id, sanitize_string
from conftest import make_image
from image_utils import InvalidUpload, compress_image, read_upload, to_base64


def test_compress_fits_bounds_and_keeps_aspect_ratio(png_bytes):
    with Image.open(BytesIO(compress_image(png_bytes))) as img:
        assert img.format == "JPEG"
        assert img.size == (800, 600)


def test_small_images_are_not_upscaled():
    with Image.open(BytesIO(compress_image(make_image(size=(320, 200))))) as img:
        assert img.size == (320, 200)


def test_transparency_is_flattened():
    with Image.open(BytesIO(compress_image(make_image(mode="RGBA")))) as img:
        assert img.mode == "RGB"


def test_garbage_is_not_an_image():
    with pytest.raises(InvalidUpload):
        compress_image(b"definitely not a picture")


def test_to_base64_has_no_data_url_prefix():
    assert to_base64(b"hi") == base64.b64encode(b"hi").decode()


def _upload(data, filename="photo.png", content_type="image/png"):
    return FileStorage(stream=BytesIO(data), filename=filename, content_type=content_type)


def test_read_upload_returns_bytes_and_type(png_bytes):
    data, mime_type = read_upload(_upload(png_bytes), max_bytes=len(png_bytes))
    assert data == png_bytes
    assert mime_type == "image/png"


@pytest.mark.parametrize("upload, kwargs", [
    (None, {}),
    (_upload(b"", filename=""), {}),
    (_upload(b"", filename="empty.png"), {}),
    (_upload(b"x" * 11), {}),
    (_upload(b"MZ", filename="virus.exe", content_type="application/octet-stream"), {}),
    (_upload(b"\x00\x00", filename="clip.mp4", content_type="video/mp4"), {"allow_video": False}),
])
def test_read_upload_rejections(upload, kwargs):
    with pytest.raises(InvalidUpload):
        read_upload(upload, max_bytes=10, **kwargs)


def test_videos_allowed_when_asked():
    _, mime_type = read_upload(_upload(b"\x00\x00", filename="clip.mp4", content_type="video/mp4"),
                               max_bytes=10, allow_video=True)
    assert mime_type == "video/mp4"


# --- Sanitization ---
def test_school_ids_are_normalized():
    assert sanitize_school_id(" sm-2024-889 ") == "SM-2024-889"
    assert sanitize_school_id("ADMIN-01; DROP") == "ADMIN-01DROP"
    assert sanitize_school_id("") == ""


def test_strings_are_escaped_and_truncated():
    assert sanitize_string("<b>hi</b>") == "&lt;b&gt;hi&lt;/b&gt;"
    assert sanitize_string("abcdef", max_length=3) == "abc"
    assert sanitize_string(None) == ""


def test_filenames_lose_their_path():
    assert sanitize_filename("C:\\Users\\nipa\\bill<1>.jpg") == "bill1.jpg"
    assert sanitize_filename(None) is None
