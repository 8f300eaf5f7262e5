import numpy as np
import pytest

from animeupscale.ac import ACRuntimeError, Parameters
from animeupscale.anime4k09 import Anime4K09, run_kernel


def _random_bgra(dtype, rows=6, cols=7, seed=1):
    rng = np.random.default_rng(seed)
    if np.dtype(dtype).kind == "f":
        return rng.random((rows, cols, 4)).astype(dtype)
    top = np.iinfo(dtype).max
    return rng.integers(0, top, size=(rows, cols, 4), endpoint=True).astype(dtype)


@pytest.mark.parametrize("dtype", [np.uint8, np.uint16, np.float32])
def test_run_kernel_keeps_shape_and_dtype(dtype):
    image = _random_bgra(dtype)
    result = run_kernel(image, Parameters())
    assert result.shape == image.shape
    assert result.dtype == np.dtype(dtype)


@pytest.mark.parametrize("dtype", [np.float64, np.int32])
def test_run_kernel_rejects_unsupported_types(dtype):
    image = np.zeros((4, 4, 4), dtype=dtype)
    with pytest.raises(ACRuntimeError):
        run_kernel(image, Parameters())


def test_run_kernel_rejects_three_channels():
    with pytest.raises(ACRuntimeError):
        run_kernel(np.zeros((4, 4, 3), dtype=np.uint8), Parameters())


def test_zero_passes_leave_image_untouched():
    image = _random_bgra(np.uint8)
    result = run_kernel(image, Parameters(passes=0))
    assert np.array_equal(result, image)


@pytest.mark.parametrize("dtype", [np.uint8, np.uint16, np.float32])
def test_uniform_colour_is_preserved(dtype):
    image = np.empty((5, 5, 4), dtype=dtype)
    values = [0.2, 0.5, 0.7] if np.dtype(dtype).kind == "f" else [10, 100, 200]
    image[..., :3] = np.array(values, dtype=dtype)
    image[..., 3] = image[..., 0]
    result = run_kernel(image, Parameters())
    assert np.array_equal(result[..., :3], image[..., :3])


def test_zero_colour_strength_ignores_push_count():
    image = _random_bgra(np.uint8, seed=4)
    a = run_kernel(image, Parameters(strength_color=0.0, push_color_count=5))
    b = run_kernel(image, Parameters(strength_color=0.0, push_color_count=0))
    assert np.array_equal(a, b)


def test_colour_stays_within_input_range():
    image = _random_bgra(np.uint8, seed=7)
    result = run_kernel(image, Parameters(passes=3))
    assert result[..., :3].min() >= image[..., :3].min()
    assert result[..., :3].max() <= image[..., :3].max()


def test_float_result_stays_in_unit_range():
    result = run_kernel(_random_bgra(np.float32, seed=3), Parameters())
    assert result.min() >= 0.0
    assert result.max() <= 1.0


def test_process_rgb_doubles_size_and_keeps_flat_colour():
    image = np.empty((4, 5, 3), dtype=np.uint8)
    image[...] = [30, 60, 90]
    ac = Anime4K09(Parameters())
    ac.load_image(image)
    ac.process()
    out = ac.save_image()
    assert out.shape == (8, 10, 3)
    assert np.all(out == np.array([30, 60, 90], dtype=np.uint8))


def test_process_grayscale_returns_single_channel():
    image = np.full((3, 4), 77, dtype=np.uint8)
    ac = Anime4K09(Parameters())
    ac.load_image(image)
    ac.process()
    assert ac._dst.shape == (6, 8)
    assert np.all(ac._dst == 77)


def test_process_yuv_planes_are_scaled():
    rng = np.random.default_rng(5)
    y, u, v = (rng.integers(0, 256, size=(4, 4)).astype(np.uint8) for _ in range(3))
    ac = Anime4K09(Parameters(zoom_factor=3.0))
    ac.load_planes(y, u, v, as_yuv444=True)
    ac.process()
    planes = ac.save_planes()
    assert [p.shape for p in planes] == [(12, 12)] * 3


def test_process_yuv_rejects_subsampled_planes():
    ac = Anime4K09(Parameters())
    ac.load_yuv(np.zeros((4, 4), np.uint8), np.zeros((2, 2), np.uint8), np.zeros((2, 2), np.uint8))
    with pytest.raises(ACRuntimeError):
        ac.process()


def test_process_without_image_raises():
    with pytest.raises(ACRuntimeError):
        Anime4K09(Parameters()).process()


def test_processor_info():
    assert Anime4K09(Parameters()).processor_info() == "Processor type: CPU_Anime4K09"


def test_info_lists_parameters():
    ac = Anime4K09(Parameters(passes=3, push_color_count=1))
    ac.load_image(np.zeros((2, 3, 3), dtype=np.uint8))
    text = ac.info()
    assert "Passes: 3\n" in text
    assert "pushColorCount: 1\n" in text
    assert "Zoom Factor: 2\n" in text
    assert "Fast Mode: false\n" in text
    assert "3x2 to 6x4" in text


def test_filters_info_disabled_by_default():
    text = Anime4K09(Parameters()).filters_info()
    assert "Preprocessing disabled" in text
    assert "Postprocessing disabled" in text


def test_filters_info_lists_enabled_filters():
    params = Parameters(preprocessing=True, pre_filters=4, postprocessing=True, post_filters=40)
    text = Anime4K09(params).filters_info()
    assert "CAS Sharpening" in text
    assert "Gaussian blur weak" in text
    assert "Bilateral filter\n" in text
    assert "disabled" not in text


def test_preprocessing_pipeline_keeps_size_and_type():
    rng = np.random.default_rng(9)
    image = rng.integers(0, 256, size=(5, 5, 3)).astype(np.uint8)
    ac = Anime4K09(Parameters(preprocessing=True, postprocessing=True))
    ac.load_image(image)
    ac.process()
    out = ac.save_image()
    assert out.shape == (10, 10, 3)
    assert out.dtype == np.uint8