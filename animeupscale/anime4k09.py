"""The Anime4K 0.9 upscaler: resize, then push colour and gradient."""

from __future__ import annotations

import numpy as np

from animeupscale import imageops
from animeupscale.ac import AC, ACRuntimeError, Parameters, ProcessorType
from animeupscale.filters import apply_filters, filter_names
from animeupscale.imageops import Interpolation

_RULE = "-" * 46
_SUPPORTED = (np.dtype(np.uint8), np.dtype(np.uint16), np.dtype(np.float32))
_OFFSETS = {
    "tl": (0, 0), "tc": (0, 1), "tr": (0, 2),
    "ml": (1, 0), "mc": (1, 1), "mr": (1, 2),
    "bl": (2, 0), "bc": (2, 1), "br": (2, 2),
}


def _store(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    """Convert computed values the way a cast to ``dtype`` would, kept as float64."""
    if dtype.kind == "f":
        return values.astype(np.float32).astype(np.float64)
    info = np.iinfo(dtype)
    return np.clip(np.trunc(values), info.min, info.max)


def _neighbours(data: np.ndarray) -> dict[str, np.ndarray]:
    rows, cols = data.shape[:2]
    padded = np.pad(data, ((1, 1), (1, 1), (0, 0)), mode="edge")
    return {
        name: padded[dy:dy + rows, dx:dx + cols]
        for name, (dy, dx) in _OFFSETS.items()
    }


def _max3(a, b, c):
    return np.maximum(np.maximum(a, b), c)


def _min3(a, b, c):
    return np.minimum(np.minimum(a, b), c)


def _offset(dtype: np.dtype) -> float:
    return 0.0 if dtype.kind == "f" else 0.5


def _get_gray(data: np.ndarray, dtype: np.dtype) -> np.ndarray:
    out = data.copy()
    luma = data[..., 2] * 0.299 + data[..., 1] * 0.587 + data[..., 0] * 0.114
    out[..., 3] = _store(luma, dtype)
    return out


def _push_color(data: np.ndarray, strength: float, dtype: np.dtype) -> np.ndarray:
    n = _neighbours(data)
    a = {name: plane[..., 3] for name, plane in n.items()}
    offset = _offset(dtype)
    out = data.copy()

    def lightest(mask, first, second, third):
        nonlocal out
        average = (n[first] + n[second] + n[third]) / 3.0
        lighter = _store(out + strength * (average - out) + offset, dtype)
        out = np.where(mask[..., None], lighter, out)

    # top and bottom
    level = out[..., 3]
    first = (_min3(a["tl"], a["tc"], a["tr"]) > level) & (level > _max3(a["bl"], a["bc"], a["br"]))
    second = ~first & (_min3(a["bl"], a["bc"], a["br"]) > level) & (level > _max3(a["tl"], a["tc"], a["tr"]))
    lightest(first, "tl", "tc", "tr")
    lightest(second, "bl", "bc", "br")

    # subdiagonal
    level = out[..., 3]
    first = _min3(a["tc"], a["tr"], a["mr"]) > _max3(a["ml"], level, a["bc"])
    second = ~first & (_min3(a["ml"], a["bl"], a["bc"]) > _max3(a["tc"], level, a["mr"]))
    lightest(first, "tc", "tr", "mr")
    lightest(second, "ml", "bl", "bc")

    # left and right
    level = out[..., 3]
    first = (_min3(a["tr"], a["mr"], a["br"]) > level) & (level > _max3(a["tl"], a["ml"], a["bl"]))
    second = ~first & (_min3(a["tl"], a["ml"], a["bl"]) > level) & (level > _max3(a["tr"], a["mr"], a["br"]))
    lightest(first, "tr", "mr", "br")
    lightest(second, "tl", "ml", "bl")

    # diagonal
    level = out[..., 3]
    first = _min3(a["mr"], a["br"], a["bc"]) > _max3(a["tc"], level, a["ml"])
    second = ~first & (_min3(a["ml"], a["tl"], a["tc"]) > _max3(a["bc"], level, a["mr"]))
    lightest(first, "mr", "br", "bc")
    lightest(second, "ml", "tl", "tc")

    return out


def _get_gradient(data: np.ndarray, dtype: np.dtype) -> np.ndarray:
    a = {name: plane[..., 3] for name, plane in _neighbours(data).items()}
    grad_x = a["bl"] + a["bc"] + a["bc"] + a["br"] - a["tl"] - a["tc"] - a["tc"] - a["tr"]
    grad_y = a["tl"] + a["ml"] + a["ml"] + a["bl"] - a["tr"] - a["mr"] - a["mr"] - a["br"]
    grad = np.sqrt(grad_x * grad_x + grad_y * grad_y)

    out = data.copy()
    if dtype.kind == "f":
        out[..., 3] = _store(1.0 - np.clip(grad, 0.0, 1.0), dtype)
    else:
        top = float(np.iinfo(dtype).max)
        out[..., 3] = top - np.where(grad > top, top, np.floor(grad + 0.5))
    return out


def _push_gradient(data: np.ndarray, strength: float, dtype: np.dtype) -> np.ndarray:
    n = _neighbours(data)
    a = {name: plane[..., 3] for name, plane in n.items()}
    centre = a["mc"]
    offset = _offset(dtype)

    rules = [
        ((_min3(a["tl"], a["tc"], a["tr"]) > centre) & (centre > _max3(a["bl"], a["bc"], a["br"])),
         ("tl", "tc", "tr")),
        ((_min3(a["bl"], a["bc"], a["br"]) > centre) & (centre > _max3(a["tl"], a["tc"], a["tr"])),
         ("bl", "bc", "br")),
        (_min3(a["tc"], a["tr"], a["mr"]) > _max3(a["ml"], centre, a["bc"]),
         ("tc", "tr", "mr")),
        (_min3(a["ml"], a["bl"], a["bc"]) > _max3(a["tc"], centre, a["mr"]),
         ("ml", "bl", "bc")),
        ((_min3(a["tr"], a["mr"], a["br"]) > centre) & (centre > _max3(a["tl"], a["ml"], a["bl"])),
         ("tr", "mr", "br")),
        ((_min3(a["tl"], a["ml"], a["bl"]) > centre) & (centre > _max3(a["tr"], a["mr"], a["br"])),
         ("tl", "ml", "bl")),
        (_min3(a["mr"], a["br"], a["bc"]) > _max3(a["tc"], centre, a["ml"]),
         ("mr", "br", "bc")),
        (_min3(a["ml"], a["tl"], a["tc"]) > _max3(a["bc"], centre, a["mr"]),
         ("ml", "tl", "tc")),
    ]

    out = data.copy()
    colour = data[..., :3]
    done = np.zeros(centre.shape, dtype=bool)
    for condition, (first, second, third) in rules:
        mask = condition & ~done
        average = (n[first][..., :3] + n[second][..., :3] + n[third][..., :3]) / 3.0
        pushed = _store(colour + strength * (average - colour) + offset, dtype)
        out[..., :3] = np.where(mask[..., None], pushed, out[..., :3])
        done |= mask
    return out


def run_kernel(image, parameters: Parameters) -> np.ndarray:
    """Run the push-colour / push-gradient passes over a BGRA image."""
    image = np.asarray(image)
    dtype = image.dtype
    if dtype not in _SUPPORTED:
        raise ACRuntimeError("Unsupported image data type")
    if image.ndim != 3 or image.shape[2] != 4:
        raise ACRuntimeError("Expected a four-channel BGRA image")

    data = image.astype(np.float64)
    remaining = parameters.push_color_count
    for _ in range(parameters.passes):
        data = _get_gray(data, dtype)
        if parameters.strength_color > 0.0:
            if remaining > 0:
                data = _push_color(data, parameters.strength_color, dtype)
            remaining -= 1
        data = _get_gradient(data, dtype)
        data = _push_gradient(data, parameters.strength_gradient, dtype)
    return data.astype(dtype)


def _with_alpha(image: np.ndarray) -> np.ndarray:
    opaque = np.full(image.shape[:2], imageops.max_value(image.dtype), image.dtype)
    return np.dstack([image, opaque])


class Anime4K09(AC):
    """Upscaler using the Anime4K 0.9 algorithm on the CPU."""

    @property
    def processor_type(self) -> ProcessorType:
        return ProcessorType.CPU_ANIME4K09

    def _upscale_bgr(self, image: np.ndarray) -> np.ndarray:
        param = self.parameters
        zoom = param.zoom_factor
        method = Interpolation.LINEAR if zoom == 2.0 else Interpolation.CUBIC
        result = imageops.resize(image, zoom, zoom, method)
        if param.preprocessing:
            result = apply_filters(result, param.pre_filters)
        result = run_kernel(_with_alpha(result), param)[..., :3]
        if param.postprocessing:
            result = apply_filters(result, param.post_filters)
        return np.ascontiguousarray(result)

    def _process_yuv(self) -> None:
        if not self._org.shape[:2] == self._org_u.shape[:2] == self._org_v.shape[:2]:
            raise ACRuntimeError("Anime4K09 needs Y, U and V planes of one size")
        bgr = imageops.yuv_to_bgr(np.stack([self._org, self._org_u, self._org_v], axis=-1))
        yuv = imageops.bgr_to_yuv(self._upscale_bgr(bgr))
        self._dst = yuv[..., 0].copy()
        self._dst_u = yuv[..., 1].copy()
        self._dst_v = yuv[..., 2].copy()

    def _process_rgb(self) -> None:
        self._dst = self._upscale_bgr(self._org)

    def _process_grayscale(self) -> None:
        bgr = imageops.gray_to_bgr(self._org)
        self._dst = imageops.bgr_to_gray(self._upscale_bgr(bgr))

    def info(self) -> str:
        """Describe sizes, processor and algorithm settings."""
        param = self.parameters
        lines = [
            _RULE,
            f"Passes: {param.passes}",
            f"pushColorCount: {param.push_color_count}",
            f"Zoom Factor: {param.zoom_factor:g}",
            f"Fast Mode: {'true' if param.fast_mode else 'false'}",
            f"Strength Color: {param.strength_color:g}",
            f"Strength Gradient: {param.strength_gradient:g}",
            _RULE,
        ]
        return super().info() + "\n".join(lines) + "\n"

    def filters_info(self) -> str:
        """List the pre- and post-processing filters in use."""
        param = self.parameters
        lines = [_RULE, "Preprocessing filters list:", _RULE]
        names = filter_names(param.pre_filters) if param.preprocessing else []
        lines.extend(names or ["Preprocessing disabled"])
        lines.extend([_RULE, "Postprocessing filters list:", _RULE])
        names = filter_names(param.post_filters) if param.postprocessing else []
        lines.extend(names or ["Postprocessing disabled"])
        return super().filters_info() + "\n".join(lines) + "\n"

    def processor_info(self) -> str:
        """Name the processor this upscaler runs on."""
        return f"Processor type: {self.processor_type}"