"""The upscaler base class, its parameters and its errors."""

from __future__ import annotations

import abc
import dataclasses
import enum
import io
import math
import os
from pathlib import Path

import numpy as np
from PIL import Image

from animeupscale import imageops
from animeupscale.imageops import Interpolation

_RULE = "-" * 46
_PREMULTIPLIED_SUFFIXES = ".jpg.jpeg.bmp"


class ACError(Exception):
    """Base class for errors raised by an upscaler."""


class ACIOError(ACError):
    """Raised when image data cannot be loaded or saved."""


class ACRuntimeError(ACError):
    """Raised when processing or encoding fails."""


class ProcessorType(enum.Enum):
    """Kinds of processor an upscaler can be built on."""

    CPU_ANIME4K09 = "CPU_Anime4K09"
    CPU_ACNET = "CPU_ACNet"
    OPENCL_ANIME4K09 = "OpenCL_Anime4K09"
    OPENCL_ACNET = "OpenCL_ACNet"
    CUDA_ANIME4K09 = "Cuda_Anime4K09"
    CUDA_ACNET = "Cuda_ACNet"
    NCNN_ACNET = "NCNN_ACNet"

    def __str__(self) -> str:
        return self.value


@dataclasses.dataclass
class Parameters:
    """Settings shared by every processor."""

    passes: int = 2
    push_color_count: int = 2
    strength_color: float = 0.3
    strength_gradient: float = 1.0
    zoom_factor: float = 2.0
    fast_mode: bool = False
    preprocessing: bool = False
    postprocessing: bool = False
    pre_filters: int = 4
    post_filters: int = 40
    hdn: bool = False
    hdn_level: int = 1
    alpha: bool = False

    def reset(self) -> None:
        """Restore every setting to its default."""
        for field in dataclasses.fields(self):
            setattr(self, field.name, field.default)

    def is_non_integer_scale(self) -> bool:
        """Tell whether the zoom factor is not a whole power of two."""
        zoom = self.zoom_factor
        if math.floor(zoom) != zoom:
            return True
        whole = int(zoom)
        return (whole & (whole - 1)) != 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _decode(source, alpha: bool) -> np.ndarray:
    with Image.open(source) as img:
        img.load()
        if not alpha:
            return np.ascontiguousarray(np.asarray(img.convert("RGB"))[..., ::-1])
        mode = img.mode
        if mode.startswith("I;16"):
            return np.asarray(img).astype(np.uint16)
        if mode in ("L", "1"):
            return np.asarray(img.convert("L")).copy()
        if "A" in img.getbands() or "transparency" in img.info:
            rgba = np.asarray(img.convert("RGBA"))
            return np.ascontiguousarray(rgba[..., [2, 1, 0, 3]])
        return np.ascontiguousarray(np.asarray(img.convert("RGB"))[..., ::-1])


def _to_pil(image: np.ndarray) -> Image.Image:
    data = image
    if data.dtype.kind == "f":
        data = np.clip(np.rint(data * 255.0), 0, 255).astype(np.uint8)
    elif data.dtype == np.uint16 and data.ndim == 3:
        data = (data >> 8).astype(np.uint8)
    elif data.dtype != np.uint16:
        data = data.astype(np.uint8)
    if data.ndim == 3:
        if data.shape[2] == 3:
            data = data[..., ::-1]
        elif data.shape[2] == 4:
            data = data[..., [2, 1, 0, 3]]
    return Image.fromarray(np.ascontiguousarray(data))


class AC(abc.ABC):
    """An upscaler: load an image, process it, then save or encode the result."""

    def __init__(self, parameters: Parameters | None = None):
        self.parameters = parameters if parameters is not None else Parameters()
        self.width = 0
        self.height = 0
        self._org: np.ndarray | None = None
        self._dst: np.ndarray | None = None
        self._org_u: np.ndarray | None = None
        self._org_v: np.ndarray | None = None
        self._dst_u: np.ndarray | None = None
        self._dst_v: np.ndarray | None = None
        self._alpha: np.ndarray | None = None
        self._input_yuv = False
        self._input_rgb32 = False
        self._input_grayscale = False
        self._check_alpha = False

    @property
    @abc.abstractmethod
    def processor_type(self) -> ProcessorType:
        """The kind of processor this upscaler runs on."""

    @abc.abstractmethod
    def _process_yuv(self) -> None:
        """Upscale the loaded Y, U and V planes."""

    @abc.abstractmethod
    def _process_rgb(self) -> None:
        """Upscale the loaded BGR image."""

    @abc.abstractmethod
    def _process_grayscale(self) -> None:
        """Upscale the loaded single-channel image."""

    def _set_dimensions(self) -> None:
        rows, cols = self._org.shape[:2]
        zoom = self.parameters.zoom_factor
        self.height = _round_half_up(zoom * rows)
        self.width = _round_half_up(zoom * cols)

    def _set_flags(self, *, yuv=False, rgb32=False, grayscale=False, alpha=False) -> None:
        self._input_yuv = yuv
        self._input_rgb32 = rgb32
        self._input_grayscale = grayscale
        self._check_alpha = alpha

    def _require_loaded(self) -> None:
        if self._org is None or self._dst is None:
            raise ACRuntimeError("No image has been loaded")

    def _extract_alpha(self, image: np.ndarray) -> None:
        zoom = self.parameters.zoom_factor
        self._alpha = imageops.resize(image[..., 3], zoom, zoom, Interpolation.CUBIC)

    def _load_decoded(self, image: np.ndarray, error: str) -> None:
        channels = 1 if image.ndim == 2 else image.shape[2]
        if channels == 4:
            self._extract_alpha(image)
            self._org = image[..., :3].copy()
            self._set_flags(alpha=True)
        elif channels == 3:
            self._org = image
            self._set_flags()
        elif channels == 1:
            self._org = image.reshape(image.shape[:2])
            self._set_flags(grayscale=True)
        else:
            raise ACIOError(error)
        self._dst = self._org
        self._set_dimensions()

    def load_image(self, image) -> None:
        """Load a BGR, BGRA (RGBA order is kept) or single-channel array."""
        image = np.asarray(image)
        if image.size == 0:
            raise ACIOError("Failed to load data: empty data")
        if image.ndim == 2:
            channels = 1
        elif image.ndim == 3:
            channels = image.shape[2]
        else:
            raise ACIOError("Failed to load data: incorrect file format.")

        alpha = self.parameters.alpha
        if channels == 4:
            if alpha:
                self._extract_alpha(image)
            self._org = image[..., :3].copy()
            self._set_flags(rgb32=not alpha, alpha=alpha)
        elif channels == 3:
            self._org = image
            self._set_flags()
        elif channels == 1:
            self._org = image.reshape(image.shape[:2])
            self._set_flags(grayscale=True)
        else:
            raise ACIOError("Failed to load data: incorrect file format.")
        self._dst = self._org
        self._set_dimensions()

    def load_bytes(self, data: bytes) -> None:
        """Decode an encoded image held in memory and load it."""
        if not data:
            raise ACIOError("Failed to load data: empty data")
        try:
            image = _decode(io.BytesIO(bytes(data)), self.parameters.alpha)
        except (OSError, ValueError) as exc:
            raise ACIOError("Failed to load data: empty data") from exc
        self._load_decoded(image, "Failed to load data: incorrect file format.")

    def load_file(self, path) -> None:
        """Decode an image file and load it."""
        try:
            image = _decode(os.fspath(path), self.parameters.alpha)
        except (OSError, ValueError) as exc:
            raise ACIOError(
                "Failed to load file: file doesn't exist or incorrect file format."
            ) from exc
        self._load_decoded(image, "Failed to load file: incorrect file format.")

    def load_packed(self, image, as_yuv444=False, as_rgb32=False, as_grayscale=False) -> None:
        """Load interleaved pixel data described by the given layout flags."""
        if int(bool(as_yuv444)) + int(bool(as_rgb32)) + int(bool(as_grayscale)) > 1:
            raise ACIOError("Failed to load data: Incompatible arguments.")
        image = np.asarray(image)
        if image.size == 0:
            raise ACIOError("Failed to load data: empty data")

        if as_grayscale:
            if image.ndim == 3 and image.shape[2] == 1:
                image = image[..., 0]
            if image.ndim != 2:
                raise ACIOError("Failed to load data: expected one channel")
        else:
            expected = 4 if as_rgb32 else 3
            if image.ndim != 3 or image.shape[2] != expected:
                raise ACIOError(f"Failed to load data: expected {expected} channels")

        if as_yuv444:
            self._org = image[..., 0].copy()
            self._org_u = self._dst_u = image[..., 1].copy()
            self._org_v = self._dst_v = image[..., 2].copy()
            self._set_flags(yuv=True)
        elif as_rgb32:
            self._org = image[..., :3].copy()
            self._set_flags(rgb32=True)
        elif as_grayscale:
            self._org = image
            self._set_flags(grayscale=True)
        else:
            self._org = image
            self._set_flags()
        self._dst = self._org
        self._set_dimensions()

    def load_planes(self, r, g, b, as_yuv444=False) -> None:
        """Load three separate planes, either R, G, B or Y, U, V."""
        r, g, b = np.asarray(r), np.asarray(g), np.asarray(b)
        if r.size == 0:
            raise ACIOError("Failed to load data: empty data")
        if as_yuv444:
            self._org = r
            self._org_u = self._dst_u = g
            self._org_v = self._dst_v = b
        else:
            if not r.shape == g.shape == b.shape or r.ndim != 2:
                raise ACIOError("Failed to load data: planes must share one 2-D shape")
            self._org = np.stack([b, g, r], axis=-1)
        self._set_flags(yuv=bool(as_yuv444))
        self._dst = self._org
        self._set_dimensions()

    def load_yuv(self, y, u, v) -> None:
        """Load Y, U and V planes, which may have different sizes."""
        y = np.asarray(y)
        if y.size == 0:
            raise ACIOError("Failed to load data: empty data")
        self._org = self._dst = y
        self._org_u = self._dst_u = np.asarray(u)
        self._org_v = self._dst_v = np.asarray(v)
        self._set_flags(yuv=True)
        self._set_dimensions()

    def save_image(self) -> np.ndarray:
        """Return the result as one interleaved array."""
        self._require_loaded()
        result = self._dst
        if self._input_yuv:
            if self._dst.shape[:2] == self._dst_u.shape[:2] == self._dst_v.shape[:2]:
                result = np.stack([self._dst, self._dst_u, self._dst_v], axis=-1)
            else:
                raise ACIOError("Only YUV444 or RGB(BGR) can be saved to opencv Mat")
        elif self._input_rgb32:
            opaque = np.full(result.shape[:2], imageops.max_value(result.dtype), result.dtype)
            result = np.dstack([result, opaque])
        elif self._check_alpha:
            result = np.dstack([result, self._alpha.astype(result.dtype)])
        return result.copy()

    def save_planes(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return the result as three planes: Y, U, V or R, G, B."""
        self._require_loaded()
        if self._input_yuv:
            return self._dst.copy(), self._dst_u.copy(), self._dst_v.copy()
        if self._dst.ndim != 3:
            raise ACIOError("Grayscale images have no separate colour planes")
        return self._dst[..., 2].copy(), self._dst[..., 1].copy(), self._dst[..., 0].copy()

    def _compose(self, suffix: str) -> np.ndarray:
        result = self._dst
        if self._input_yuv:
            rows, cols = self._dst.shape[:2]
            u, v = self._dst_u, self._dst_v
            if u.shape[:2] != (rows, cols):
                u = imageops.resize_to(u, cols, rows, Interpolation.CUBIC)
            if v.shape[:2] != (rows, cols):
                v = imageops.resize_to(v, cols, rows, Interpolation.CUBIC)
            result = imageops.yuv_to_bgr(np.stack([self._dst, u, v], axis=-1))
        elif self._check_alpha:
            if suffix in _PREMULTIPLIED_SUFFIXES:
                weight = self._alpha.astype(np.float64)[..., None] / 255.0
                result = np.clip(np.rint(result * weight), 0, 255).astype(np.uint8)
            else:
                result = np.dstack([result, self._alpha.astype(result.dtype)])
        return result

    def encode(self, suffix: str) -> bytes:
        """Encode the result in the format named by a suffix such as ``.png``."""
        self._require_loaded()
        image = self._compose(suffix)
        fmt = Image.registered_extensions().get(suffix.lower())
        if fmt is None:
            raise ACRuntimeError("Failed to encode image data")
        buffer = io.BytesIO()
        try:
            _to_pil(image).save(buffer, format=fmt)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise ACRuntimeError("Failed to encode image data") from exc
        return buffer.getvalue()

    def save_file(self, path) -> None:
        """Write the result to ``path`` in the format its suffix names."""
        path = Path(path)
        data = self.encode(os.path.splitext(os.fspath(path))[1])
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise ACIOError(f"Failed to save file: {path}") from exc

    def output_shape(self) -> tuple[int, int, int]:
        """Return ``(cols, rows, channels)`` of what :meth:`save_image` produces."""
        self._require_loaded()
        rows, cols = self._dst.shape[:2]
        channels = 4 if (self._input_rgb32 or self._check_alpha) else 3
        return cols, rows, channels

    def process(self) -> None:
        """Upscale the loaded image."""
        self._require_loaded()
        if self._input_yuv:
            self._process_yuv()
        elif self._input_grayscale:
            self._process_grayscale()
        else:
            self._process_rgb()

    def info(self) -> str:
        """Describe the sizes involved and the processor."""
        lines = [_RULE, "Parameter information", _RULE]
        if self._org is not None:
            rows, cols = self._org.shape[:2]
            if rows and cols:
                lines.append(f"{cols}x{rows} to {self.width}x{self.height}")
                lines.append(_RULE)
        text = "\n".join(lines) + "\n"
        return text + "Processor info: \n " + self.processor_info() + "\n"

    def filters_info(self) -> str:
        """Describe the filters in use."""
        return f"{_RULE}\nFilter information\n{_RULE}\n"

    def processor_info(self) -> str:
        """Name the processor this upscaler runs on."""
        return f"Processor type: {self.processor_type}"