import numpy as np
import pytest

from animeupscale.imageops import (
    Interpolation,
    bgr_to_gray,
    bgr_to_yuv,
    gray_to_bgr,
    max_value,
    resize,
    resize_to,
    yuv_to_bgr,
)


def _random_bgr(dtype=np.uint8, shape=(7, 9, 3), seed=0):
    rng = np.random.default_rng(seed)
    if np.dtype(dtype).kind == "f":
        return rng.random(shape).astype(dtype)
    return rng.integers(0, np.iinfo(dtype).max + 1, size=shape).astype(dtype)


def test_max_value_per_dtype():
    assert max_value(np.uint8) == 255
    assert max_value(np.uint16) == 65535
    assert max_value(np.float32) == 1.0


def test_max_value_rejects_signed():
    with pytest.raises(ValueError):
        max_value(np.int32)


@pytest.mark.parametrize("interpolation", list(Interpolation))
def test_constant_image_stays_constant(interpolation):
    image = np.full((5, 4, 3), 77, dtype=np.uint8)
    out = resize(image, 2.0, 2.0, interpolation)
    assert out.shape == (image.shape[0] * 2, image.shape[1] * 2, 3)
    assert out.dtype == np.uint8
    np.testing.assert_array_equal(out, np.full((10, 8, 3), 77, dtype=np.uint8))


@pytest.mark.parametrize("interpolation", list(Interpolation))
def test_resize_to_exact_size(interpolation):
    image = _random_bgr()
    out = resize_to(image, 13, 4, interpolation)
    assert out.shape == (4, 13, 3)


def test_resize_to_rejects_empty_target():
    with pytest.raises(ValueError):
        resize_to(_random_bgr(), 0, 3)


def test_resize_rejects_non_positive_factor():
    with pytest.raises(ValueError):
        resize(_random_bgr(), -1.0, 2.0)


def test_resize_rejects_empty_image():
    with pytest.raises(ValueError):
        resize(np.zeros((0, 3), dtype=np.uint8), 2.0, 2.0)


def test_area_downscale_averages_blocks():
    small = np.array([[10, 20, 30], [40, 50, 60]], dtype=np.uint8)
    big = np.kron(small, np.ones((2, 2), dtype=np.uint8))
    out = resize(big, 0.5, 0.5, Interpolation.AREA)
    np.testing.assert_array_equal(out, small)


def test_linear_upscale_stays_within_input_range():
    image = _random_bgr(np.float32)
    out = resize(image, 3.0, 3.0, Interpolation.LINEAR)
    assert out.dtype == np.float32
    assert out.min() >= image.min() - 1e-6
    assert out.max() <= image.max() + 1e-6


def test_cubic_integer_output_saturates():
    image = np.zeros((6, 6), dtype=np.uint8)
    image[:, 3:] = 255
    out = resize(image, 2.0, 2.0, Interpolation.CUBIC)
    assert out.dtype == np.uint8
    assert out.shape == (12, 12)
    assert out.min() == 0
    assert out.max() == 255


def test_yuv_round_trip_float():
    image = _random_bgr(np.float32) * 0.5 + 0.25
    back = yuv_to_bgr(bgr_to_yuv(image))
    np.testing.assert_allclose(back, image, atol=1e-2)


def test_yuv_round_trip_uint8():
    image = (_random_bgr(np.uint8) // 2 + 64).astype(np.uint8)
    back = yuv_to_bgr(bgr_to_yuv(image))
    assert np.max(np.abs(back.astype(int) - image.astype(int))) <= 2


def test_gray_pixels_have_neutral_chroma():
    image = np.full((2, 2, 3), 100, dtype=np.uint8)
    yuv = bgr_to_yuv(image)
    assert yuv.shape == (2, 2, 3)
    np.testing.assert_array_equal(yuv[..., 0].astype(int), np.full((2, 2), 100))
    np.testing.assert_array_equal(yuv[..., 1].astype(int), np.full((2, 2), 128))
    np.testing.assert_array_equal(yuv[..., 2].astype(int), np.full((2, 2), 128))


def test_gray_round_trip():
    gray = _random_bgr(np.uint16, shape=(4, 5))
    np.testing.assert_array_equal(bgr_to_gray(gray_to_bgr(gray)), gray)


def test_bgr_to_yuv_rejects_gray():
    with pytest.raises(ValueError):
        bgr_to_yuv(np.zeros((3, 3), dtype=np.uint8))