"""Pre- and post-processing filters selectable by bit flags."""

from __future__ import annotations

import enum

import numpy as np

_CAS_PEAK = -0.125 * (1.0 - 1.0) + -0.2 * 1.0


class Filter(enum.IntFlag):
    """Filters that can be combined into one processing chain."""

    MEDIAN_BLUR = 1
    MEAN_BLUR = 2
    CAS_SHARPENING = 4
    GAUSSIAN_BLUR_WEAK = 8
    GAUSSIAN_BLUR = 16
    BILATERAL_FILTER = 32
    BILATERAL_FILTER_FAST = 64


def _check_image(image) -> np.ndarray:
    image = np.asarray(image)
    if image.ndim not in (2, 3) or image.size == 0:
        raise ValueError("expected a non-empty 2-D or 3-D image array")
    if image.dtype.kind not in "uf":
        raise ValueError(f"unsupported image data type: {image.dtype}")
    return image


def _as_planes(image: np.ndarray) -> np.ndarray:
    data = image.astype(np.float64)
    return data[..., None] if data.ndim == 2 else data


def _restore(values: np.ndarray, like: np.ndarray) -> np.ndarray:
    if like.ndim == 2:
        values = values[..., 0]
    if like.dtype.kind == "f":
        return values.astype(like.dtype)
    info = np.iinfo(like.dtype)
    return np.clip(np.rint(values), info.min, info.max).astype(like.dtype)


def _clamp(values: np.ndarray, dtype) -> np.ndarray:
    dtype = np.dtype(dtype)
    if dtype.kind == "f":
        return np.clip(values, 0.0, 1.0).astype(dtype)
    info = np.iinfo(dtype)
    return np.floor(np.clip(values, info.min, info.max) + 0.5).astype(dtype)


def _shifted(padded: np.ndarray, rows: int, cols: int, dy: int, dx: int) -> np.ndarray:
    return padded[dy:dy + rows, dx:dx + cols]


def _median_blur(image: np.ndarray) -> np.ndarray:
    data = _as_planes(image)
    rows, cols = data.shape[:2]
    padded = np.pad(data, ((1, 1), (1, 1), (0, 0)), mode="edge")
    window = np.stack(
        [_shifted(padded, rows, cols, dy, dx) for dy in range(3) for dx in range(3)]
    )
    return _restore(np.median(window, axis=0), image)


def _separable(image: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    data = _as_planes(image)
    rows, cols = data.shape[:2]
    radius = len(kernel) // 2
    padded = np.pad(data, ((radius, radius), (0, 0), (0, 0)), mode="reflect")
    data = sum(w * padded[k:k + rows] for k, w in enumerate(kernel))
    padded = np.pad(data, ((0, 0), (radius, radius), (0, 0)), mode="reflect")
    data = sum(w * padded[:, k:k + cols] for k, w in enumerate(kernel))
    return _restore(data, image)


def _gaussian_kernel(sigma: float) -> np.ndarray:
    offsets = np.arange(-1, 2, dtype=np.float64)
    kernel = np.exp(-(offsets ** 2) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def _bilateral(image: np.ndarray, diameter: int, sigma_color: float, sigma_space: float) -> np.ndarray:
    data = _as_planes(image)
    rows, cols = data.shape[:2]
    radius = diameter // 2
    padded = np.pad(data, ((radius, radius), (radius, radius), (0, 0)), mode="reflect")
    colour_coeff = -0.5 / (sigma_color * sigma_color)
    space_coeff = -0.5 / (sigma_space * sigma_space)

    total = np.zeros_like(data)
    norm = np.zeros((rows, cols, 1))
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            distance2 = dy * dy + dx * dx
            if distance2 > radius * radius:
                continue
            neighbour = _shifted(padded, rows, cols, dy + radius, dx + radius)
            diff = np.abs(neighbour - data).sum(axis=2, keepdims=True)
            weight = np.exp(distance2 * space_coeff) * np.exp(diff * diff * colour_coeff)
            total += weight * neighbour
            norm += weight
    return _restore(total / norm, image)


def cas_sharpening(image) -> np.ndarray:
    """Apply contrast-adaptive sharpening to the B, G and R channels."""
    image = _check_image(image)
    if image.ndim != 3 or image.shape[2] < 3:
        raise ValueError("CAS sharpening needs an image with at least three channels")

    data = image[..., :3].astype(np.float64)
    padded = np.pad(data, ((1, 1), (1, 1), (0, 0)), mode="edge")
    top, bottom = padded[:-2, 1:-1], padded[2:, 1:-1]
    left, right = padded[1:-1, :-2], padded[1:-1, 2:]

    cross = np.stack([top, left, data, right, bottom])
    low, high = cross.min(axis=0), cross.max(axis=0)
    reciprocal = np.where(high < 1, 1.0, 1.0 / np.maximum(high, 1.0))
    with np.errstate(invalid="ignore"):
        weight = _CAS_PEAK * np.sqrt(np.minimum(low, 255.0 - high) * reciprocal)
    weight = np.nan_to_num(weight, nan=0.0)

    sharpened = (weight * (top + left + right + bottom) + data) / (1.0 + 4.0 * weight)
    result = image.copy()
    result[..., :3] = _clamp(sharpened, image.dtype)
    return result


def apply_filters(image, filters) -> np.ndarray:
    """Run the filters selected in ``filters`` over ``image`` and return the result."""
    image = _check_image(image)
    filters = Filter(filters)
    result = image.copy()

    if filters & Filter.MEDIAN_BLUR:
        result = _median_blur(result)
    if filters & Filter.MEAN_BLUR:
        result = _separable(result, np.full(3, 1.0 / 3.0))
    if filters & Filter.CAS_SHARPENING:
        result = cas_sharpening(result)
    if filters & Filter.GAUSSIAN_BLUR_WEAK:
        result = _separable(result, _gaussian_kernel(0.5))
    elif filters & Filter.GAUSSIAN_BLUR:
        result = _separable(result, _gaussian_kernel(1.0))
    if filters & Filter.BILATERAL_FILTER:
        result = _bilateral(result, 9, 30.0, 30.0)
    elif filters & Filter.BILATERAL_FILTER_FAST:
        result = _bilateral(result, 5, 35.0, 35.0)
    return result


def filter_names(filters) -> list[str]:
    """Describe the filters selected in ``filters`` in the order they run."""
    filters = Filter(filters)
    names = []
    if filters & Filter.MEDIAN_BLUR:
        names.append("Median blur")
    if filters & Filter.MEAN_BLUR:
        names.append("Mean blur")
    if filters & Filter.CAS_SHARPENING:
        names.append("CAS Sharpening")
    if filters & Filter.GAUSSIAN_BLUR_WEAK:
        names.append("Gaussian blur weak")
    elif filters & Filter.GAUSSIAN_BLUR:
        names.append("Gaussian blur")
    if filters & Filter.BILATERAL_FILTER:
        names.append("Bilateral filter")
    elif filters & Filter.BILATERAL_FILTER_FAST:
        names.append("Bilateral filter faster")
    return names