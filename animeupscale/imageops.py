"""Image resampling and colour-space helpers working on numpy arrays.

Images are ``(rows, cols)`` or ``(rows, cols, channels)`` arrays with an
unsigned 8-bit, unsigned 16-bit or floating-point dtype.  Colour images are
stored in BGR order.
"""

from __future__ import annotations

import enum

import numpy as np

_CUBIC_A = -0.75


class Interpolation(enum.Enum):
    """Resampling method used by :func:`resize` and :func:`resize_to`."""

    LINEAR = "linear"
    CUBIC = "cubic"
    AREA = "area"


def max_value(dtype) -> float:
    """Return the value that represents full intensity for ``dtype``."""
    dtype = np.dtype(dtype)
    if dtype.kind == "u":
        return int(np.iinfo(dtype).max)
    if dtype.kind == "f":
        return 1.0
    raise ValueError(f"unsupported image data type: {dtype}")


def _saturate(values: np.ndarray, dtype) -> np.ndarray:
    dtype = np.dtype(dtype)
    if dtype.kind == "f":
        return values.astype(dtype)
    info = np.iinfo(dtype)
    return np.clip(np.rint(values), info.min, info.max).astype(dtype)


def _check_image(image) -> np.ndarray:
    image = np.asarray(image)
    if image.ndim not in (2, 3) or image.size == 0:
        raise ValueError("expected a non-empty 2-D or 3-D image array")
    max_value(image.dtype)
    return image


def _cubic(distance: np.ndarray) -> np.ndarray:
    x = np.abs(distance)
    near = ((_CUBIC_A + 2) * x - (_CUBIC_A + 3)) * x * x + 1
    far = ((_CUBIC_A * x - 5 * _CUBIC_A) * x + 8 * _CUBIC_A) * x - 4 * _CUBIC_A
    return np.where(x <= 1, near, np.where(x < 2, far, 0.0))


def _axis_weights(source: int, target: int, interpolation: Interpolation) -> np.ndarray:
    """Build a ``(target, source)`` matrix mapping one image axis onto another."""
    scale = source / target
    positions = np.arange(target)

    if interpolation is Interpolation.AREA:
        starts = positions * scale
        ends = starts + scale
        cells = np.arange(source)
        overlap = np.minimum(ends[:, None], cells[None, :] + 1) - np.maximum(
            starts[:, None], cells[None, :]
        )
        return np.clip(overlap, 0.0, None) / scale

    centres = (positions + 0.5) * scale - 0.5
    base = np.floor(centres)
    frac = centres - base
    if interpolation is Interpolation.LINEAR:
        taps = {0: 1.0 - frac, 1: frac}
    else:
        taps = {offset: _cubic(frac - offset) for offset in (-1, 0, 1, 2)}

    weights = np.zeros((target, source))
    for offset, tap in taps.items():
        index = np.clip(base.astype(np.int64) + offset, 0, source - 1)
        np.add.at(weights, (positions, index), tap)
    return weights


def resize_to(image, width: int, height: int, interpolation=Interpolation.LINEAR) -> np.ndarray:
    """Resample ``image`` to exactly ``width`` x ``height`` pixels."""
    image = _check_image(image)
    width, height = int(width), int(height)
    if width < 1 or height < 1:
        raise ValueError("target size must be at least 1x1")
    interpolation = Interpolation(interpolation)

    row_weights = _axis_weights(image.shape[0], height, interpolation)
    col_weights = _axis_weights(image.shape[1], width, interpolation)

    data = image.astype(np.float64)
    data = np.tensordot(row_weights, data, axes=(1, 0))
    data = np.tensordot(col_weights, data, axes=(1, 1))
    data = np.swapaxes(data, 0, 1)
    return _saturate(data, image.dtype)


def resize(image, fx: float, fy: float, interpolation=Interpolation.LINEAR) -> np.ndarray:
    """Scale ``image`` by ``fx`` horizontally and ``fy`` vertically."""
    image = _check_image(image)
    if fx <= 0 or fy <= 0:
        raise ValueError("scale factors must be positive")
    width = round(image.shape[1] * fx)
    height = round(image.shape[0] * fy)
    return resize_to(image, width, height, interpolation)


def _colour_delta(dtype) -> float:
    dtype = np.dtype(dtype)
    if dtype.kind == "f":
        return 0.5
    return (max_value(dtype) + 1) / 2


def _check_colour(image) -> np.ndarray:
    image = _check_image(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError("expected a three-channel image")
    return image


def bgr_to_yuv(image) -> np.ndarray:
    """Convert a BGR image to YUV."""
    image = _check_colour(image)
    delta = _colour_delta(image.dtype)
    data = image.astype(np.float64)
    b, g, r = data[..., 0], data[..., 1], data[..., 2]
    y = 0.299 * r + 0.587 * g + 0.114 * b
    u = (b - y) * 0.492 + delta
    v = (r - y) * 0.877 + delta
    return _saturate(np.stack([y, u, v], axis=-1), image.dtype)


def yuv_to_bgr(image) -> np.ndarray:
    """Convert a YUV image to BGR."""
    image = _check_colour(image)
    delta = _colour_delta(image.dtype)
    data = image.astype(np.float64)
    y, u, v = data[..., 0], data[..., 1] - delta, data[..., 2] - delta
    b = y + 2.032 * u
    g = y - 0.395 * u - 0.581 * v
    r = y + 1.140 * v
    return _saturate(np.stack([b, g, r], axis=-1), image.dtype)


def gray_to_bgr(image) -> np.ndarray:
    """Replicate a single-channel image into three BGR channels."""
    image = _check_image(image)
    if image.ndim == 3:
        if image.shape[2] != 1:
            raise ValueError("expected a single-channel image")
        image = image[..., 0]
    return np.repeat(image[..., None], 3, axis=2)


def bgr_to_gray(image) -> np.ndarray:
    """Convert a BGR image to a single-channel luminance image."""
    image = _check_colour(image)
    data = image.astype(np.float64)
    gray = 0.299 * data[..., 2] + 0.587 * data[..., 1] + 0.114 * data[..., 0]
    return _saturate(gray, image.dtype)