"""Building blocks of the ACNet convolutional upscaler on the CPU.

Feature maps are ``(rows, cols, 8)`` float32 arrays.  Kernels are flat
float arrays laid out the same way the trained weights are stored:

* ``conv1_to_8``: 72 weights, ``kernels[position * 8 + out]``
* ``conv8_to_8``: 576 weights, ``kernels[in * 72 + position * 8 + out]``
* ``conv_transpose8_to_1``: 32 weights, ``kernels[phase * 8 + in]``

where ``position`` runs over the 3x3 neighbourhood row by row (top-left
first) and ``phase`` is ``2 * (row & 1) + (col & 1)`` of the output pixel.
"""

from __future__ import annotations

import numpy as np

from animeupscale.ac import ACRuntimeError

_SUPPORTED = (np.dtype(np.uint8), np.dtype(np.uint16), np.dtype(np.float32))
_CHANNELS = 8


def _check_dtype(dtype) -> np.dtype:
    dtype = np.dtype(dtype)
    if dtype not in _SUPPORTED:
        raise ACRuntimeError("Unsupported image data type")
    return dtype


def _weights(values, size: int, what: str) -> np.ndarray:
    array = np.asarray(values, dtype=np.float32).reshape(-1)
    if array.size != size:
        raise ValueError(f"{what} must hold {size} values, got {array.size}")
    return array


def _neighbourhood(plane: np.ndarray) -> np.ndarray:
    """Stack the 3x3 edge-replicated neighbours of every pixel on a new axis 2."""
    rows, cols = plane.shape[:2]
    pad = ((1, 1), (1, 1)) + ((0, 0),) * (plane.ndim - 2)
    padded = np.pad(plane, pad, mode="edge")
    return np.stack(
        [padded[dy:dy + rows, dx:dx + cols] for dy in range(3) for dx in range(3)],
        axis=2,
    )


def normalize(values) -> np.ndarray:
    """Map pixel values to float32 in ``[0, 1]`` (floats are passed through)."""
    values = np.asarray(values)
    dtype = _check_dtype(values.dtype)
    if dtype.kind == "u":
        return (values.astype(np.float32) / np.float32(np.iinfo(dtype).max)).astype(np.float32)
    return values.astype(np.float32)


def denormalize(values, dtype) -> np.ndarray:
    """Map float values in ``[0, 1]`` back to ``dtype``, clamping out-of-range values."""
    dtype = _check_dtype(dtype)
    values = np.asarray(values, dtype=np.float32)
    if dtype.kind == "f":
        return np.clip(values, 0.0, 1.0).astype(dtype)
    top = np.iinfo(dtype).max
    scaled = np.floor(values * np.float32(top) + np.float32(0.5))
    result = np.where(values >= 1.0, top, np.where(values <= 0.0, 0, scaled))
    return result.astype(dtype)


def conv1_to_8(image, kernels, biases) -> np.ndarray:
    """Convolve the first channel of ``image`` into eight ReLU feature maps."""
    image = np.asarray(image)
    _check_dtype(image.dtype)
    if image.ndim == 3:
        image = image[..., 0]
    if image.ndim != 2 or image.size == 0:
        raise ValueError("expected a non-empty 2-D or 3-D image array")
    weights = _weights(kernels, 9 * _CHANNELS, "kernels").reshape(9, _CHANNELS)
    bias = _weights(biases, _CHANNELS, "biases")

    patches = _neighbourhood(normalize(image))
    out = np.einsum("hwp,po->hwo", patches, weights, dtype=np.float32) + bias
    return np.maximum(out, 0.0).astype(np.float32)


def conv8_to_8(features, kernels, biases) -> np.ndarray:
    """Convolve eight feature maps into eight new ReLU feature maps."""
    features = np.asarray(features, dtype=np.float32)
    if features.ndim != 3 or features.shape[2] != _CHANNELS or features.size == 0:
        raise ValueError("expected a (rows, cols, 8) feature array")
    weights = _weights(kernels, _CHANNELS * 9 * _CHANNELS, "kernels").reshape(
        _CHANNELS, 9, _CHANNELS
    )
    bias = _weights(biases, _CHANNELS, "biases")

    patches = _neighbourhood(features)
    out = np.einsum("hwpc,cpo->hwo", patches, weights, dtype=np.float32) + bias
    return np.maximum(out, 0.0).astype(np.float32)


def conv_transpose8_to_1(features, kernels, dtype) -> np.ndarray:
    """Upsample eight feature maps into one plane of twice the size, typed ``dtype``."""
    dtype = _check_dtype(dtype)
    features = np.asarray(features, dtype=np.float32)
    if features.ndim != 3 or features.shape[2] != _CHANNELS or features.size == 0:
        raise ValueError("expected a (rows, cols, 8) feature array")
    weights = _weights(kernels, 4 * _CHANNELS, "kernels").reshape(4, _CHANNELS)

    rows, cols = features.shape[:2]
    phases = np.einsum("hwc,pc->hwp", features, weights, dtype=np.float32)
    luma = np.empty((rows * 2, cols * 2), dtype=np.float32)
    luma[0::2, 0::2] = phases[..., 0]
    luma[0::2, 1::2] = phases[..., 1]
    luma[1::2, 0::2] = phases[..., 2]
    luma[1::2, 1::2] = phases[..., 3]
    return denormalize(luma, dtype)