import threading

import numpy as np
import pytest

from escapetime import (
    NO_ESCAPE,
    FractalKind,
    RenderBuilder,
    RenderCancelled,
    RenderConfig,
    UnsupportedFractalError,
    Viewport,
    colorize,
    julia,
    mandelbrot,
    partition_rows,
    render,
)


def reference_pixel(config, row, col):
    point = config.viewport.pixel_to_complex(row, col)
    if config.kind is FractalKind.JULIA:
        k = julia(point, config.c, config.max_iterations)
    else:
        k = mandelbrot(point, config.max_iterations)
    red = 0 if k is None else 255 - min(k, 255)
    return [red, min(int(np.float32(0.1) * np.float32(row)), 255), min(int(np.float32(0.1) * np.float32(col)), 255), 255]


@pytest.fixture
def julia_config():
    return (
        RenderBuilder()
        .size_image(24, 10)
        .set_ratio(0.1)
        .set_c(-0.8, 0.156)
        .build()
    )


@pytest.fixture
def mandelbrot_config():
    return (
        RenderBuilder()
        .size_image(30, 20)
        .center(-0.5, 0.0)
        .set_ratio(0.1)
        .set_type(FractalKind.MANDELBROT)
        .set_bailout(100)
        .build()
    )


@pytest.mark.parametrize("height, parts", [(1, 1), (10, 1), (10, 3), (10, 10), (3, 8), (750, 7)])
def test_partition_rows_covers_each_row_once(height, parts):
    bands = partition_rows(height, parts)
    assert len(bands) == min(parts, height)
    assert all(len(band) > 0 for band in bands)
    assert [row for band in bands for row in band] == list(range(height))


@pytest.mark.parametrize("name", ["julia_config", "mandelbrot_config"])
def test_render_matches_per_pixel_reference(name, request):
    config = request.getfixturevalue(name)
    buffer = render(config)
    assert buffer.shape == (config.height, config.width, 4)
    assert buffer.dtype == np.uint8
    for row in range(config.height):
        for col in range(config.width):
            assert buffer[row, col].tolist() == reference_pixel(config, row, col)


def test_every_pixel_is_written(mandelbrot_config):
    buffer = render(mandelbrot_config, workers=3)
    assert np.all(buffer[..., 3] == 255)


def test_parallel_render_matches_sequential(mandelbrot_config):
    sequential = render(mandelbrot_config)
    parallel = render(mandelbrot_config, workers=4, bands=7)
    np.testing.assert_array_equal(sequential, parallel)


def test_colorize_red_channel():
    escape = np.array([[0, 5, NO_ESCAPE, 300]], dtype=np.int32)
    pixels = colorize(escape)
    assert pixels[0, :, 0].tolist() == [255, 250, 0, 0]
    assert np.all(pixels[..., 3] == 255)


def test_colorize_gradients_saturate():
    escape = np.full((3, 20), NO_ESCAPE, dtype=np.int32)
    pixels = colorize(escape, row_start=2549)
    assert pixels[:, 0, 1].tolist() == [254, 255, 255]
    assert pixels[0, :, 2].tolist() == [0] * 10 + [1] * 10

    far = colorize(np.zeros((1, 1), dtype=np.int32), row_start=5000)
    assert far[0, 0, 1] == 255


def test_cancelled_render_raises(julia_config):
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(RenderCancelled):
        render(julia_config, cancel=cancel)
    with pytest.raises(RenderCancelled):
        render(julia_config, workers=2, cancel=cancel)


def test_unsupported_kind_is_not_rendered():
    config = RenderConfig(
        viewport=Viewport.from_center(0j, 0.1, 4, 4),
        kind=FractalKind.BUDDHABROT,
        c=0j,
        max_iterations=10,
        output="buddhabrot.png",
    )
    with pytest.raises(UnsupportedFractalError):
        render(config)


def test_large_bail_out_stays_in_range():
    config = (
        RenderBuilder()
        .size_image(16, 8)
        .center(-0.75, 0.1)
        .set_ratio(0.01)
        .set_type("mandelbrot")
        .set_bailout(1000)
        .build()
    )
    buffer = render(config)
    for row in range(config.height):
        for col in range(config.width):
            assert buffer[row, col].tolist() == reference_pixel(config, row, col)
