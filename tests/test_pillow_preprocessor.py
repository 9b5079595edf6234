import io

import pytest
from PIL import Image

from providers.image_preprocessor.pillow_preprocessor import ListingPhotoPreprocessor, PreprocessConfig


def encode(image, fmt="PNG", **params):
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def decode(data):
    return Image.open(io.BytesIO(data))


def test_small_photo_is_reencoded_without_resize():
    prepared = ListingPhotoPreprocessor().prepare(encode(Image.new("RGBA", (320, 200), (0, 128, 0, 128))))

    image = decode(prepared)
    assert image.format == "JPEG"
    assert image.mode == "RGB"
    assert image.size == (320, 200)


def test_portrait_photo_is_bounded_on_height():
    preprocessor = ListingPhotoPreprocessor(PreprocessConfig(max_dimension=100))

    prepared = preprocessor.prepare(encode(Image.new("L", (50, 400))))

    assert decode(prepared).size == (12, 100)


def test_exif_orientation_is_applied():
    exif = Image.Exif()
    exif[0x0112] = 6
    photo = encode(Image.new("RGB", (80, 40), (10, 20, 30)), fmt="JPEG", exif=exif)

    assert decode(ListingPhotoPreprocessor().prepare(photo)).size == (40, 80)
    assert decode(ListingPhotoPreprocessor(PreprocessConfig(enable_auto_orient=False)).prepare(photo)).size == (80, 40)


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_unreadable_data(data):
    with pytest.raises(ValueError):
        ListingPhotoPreprocessor().prepare(data)
