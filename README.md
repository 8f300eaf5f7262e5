# animeupscale

Upscale anime-style images with NumPy. Pillow is used to read and write image
files.

The package provides:

- **Anime4K09** (`animeupscale.anime4k09`): a ready-to-use upscaler. It resizes
  the image and then sharpens line art with "push color" and "push gradient"
  passes. Optional pre- and post-filters can be applied.
- **CNN building blocks** (`animeupscale.cnn`): the convolution layers of an
  ACNet-style network. You supply the weights.
- **Filters** (`animeupscale.filters`): median, mean, CAS sharpening, Gaussian
  and bilateral filters, selected with bit flags.
- **Image helpers** (`animeupscale.imageops`): resizing and colour-space
  conversion.

## Installation

```
pip install animeupscale
```

## Usage

```python
from animeupscale.ac import Parameters, ProcessorType
from animeupscale.creator import create

params = Parameters(zoom_factor=2.0, passes=2, push_color_count=2)
ac = create(params, ProcessorType.CPU_ANIME4K09)   # or create(params, "CPU_Anime4K09")

ac.load_file("input.png")
ac.process()
ac.save_file("output.png")

print(ac.info())
print(ac.filters_info())
```

`create` builds the `Anime4K09` processor. For any other `ProcessorType` it
raises `ACRuntimeError`.

### Loading

Colour arrays are in BGR order.

- `load_file(path)` decodes an image file.
- `load_bytes(data)` decodes encoded image bytes.
- `load_image(array)` takes a BGR, four-channel or single-channel array. For a
  four-channel array, what happens to the fourth channel depends on
  `Parameters.alpha`. If it is set, the fourth channel is kept as alpha.
  Otherwise the fourth channel is replaced with an opaque one on output.
- `load_packed(array, as_yuv444=False, as_rgb32=False, as_grayscale=False)`
  takes interleaved data with the layout given by the flags. At most one flag
  may be set.
- `load_planes(r, g, b, as_yuv444=False)` takes three planes of one size,
  either R/G/B or Y/U/V.
- `load_yuv(y, u, v)` takes Y, U and V planes. The chroma planes may be smaller
  than the Y plane.

Load errors raise `ACIOError`. Both `ACIOError` and `ACRuntimeError` derive
from `ACError`.

### Results

- `process()` upscales the loaded image.
- `save_image()` returns one interleaved array. YUV input is returned as YUV444
  and needs equal-sized planes.
- `save_planes()` returns Y/U/V planes or R/G/B planes.
- `encode(".png")` returns encoded bytes in the format that the suffix names.
- `save_file(path)` writes the result to a file.
- `output_shape()` returns `(cols, rows, channels)`.

### Parameters

`Parameters` is a dataclass. Its fields and defaults are:

| Field | Default |
| --- | --- |
| `passes` | 2 |
| `push_color_count` | 2 |
| `strength_color` | 0.3 |
| `strength_gradient` | 1.0 |
| `zoom_factor` | 2.0 |
| `fast_mode` | False |
| `preprocessing` | False |
| `postprocessing` | False |
| `pre_filters` | 4 |
| `post_filters` | 40 |
| `hdn` | False |
| `hdn_level` | 1 |
| `alpha` | False |

- `reset()` restores all the defaults.
- `is_non_integer_scale()` tells whether `zoom_factor` is something other than
  a whole power of two.

### Filters on their own

```python
from animeupscale.filters import Filter, apply_filters, cas_sharpening, filter_names

out = apply_filters(image, Filter.CAS_SHARPENING | Filter.GAUSSIAN_BLUR_WEAK)
print(filter_names(Filter.MEDIAN_BLUR | Filter.BILATERAL_FILTER))
# ['Median blur', 'Bilateral filter']
```

### CNN layers

`animeupscale.cnn` provides these functions:

- `normalize` and `denormalize`
- `conv1_to_8`, which takes a 72-value kernel and 8 biases
- `conv8_to_8`, which takes a 576-value kernel and 8 biases
- `conv_transpose8_to_1`, which takes a 32-value kernel and doubles the width
  and height

The module docstring describes how the kernels are laid out.

### Image helpers

`animeupscale.imageops` provides these functions:

- `resize` and `resize_to`, with `Interpolation.LINEAR`, `CUBIC` or `AREA`
- `bgr_to_yuv` and `yuv_to_bgr`
- `gray_to_bgr` and `bgr_to_gray`
- `max_value`

### Core information

```python
from animeupscale.creator import version, supported_processors, cpu_optimization_mode

print(version(), supported_processors(), cpu_optimization_mode())
```

## What it does not do

- No trained network weights are included. There is also no complete ACNet
  upscaler that `create` can build. The CNN layers in `animeupscale.cnn` need
  weights that you supply.
- Everything runs on the CPU. There are no OpenCL, CUDA or NCNN processors.
- There is no command-line tool and no image preview window.

## Tests

```
pip install animeupscale[test]
pytest
```