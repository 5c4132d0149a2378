import numpy as np
import pytest

import mandelbands.scheduler as scheduler
from mandelbands import (
    ImageBounds,
    PlaneWindow,
    RenderError,
    RenderParameters,
    host_concurrency,
    pixel_to_point,
    plan_bands,
    render,
    render_bands,
    render_frame,
)

SEAHORSE = PlaneWindow(upper_left=complex(-1.20, 0.35), lower_right=complex(-1.0, 0.20))
FULL_SET = PlaneWindow(upper_left=complex(-2.2, 1.2), lower_right=complex(1.0, -1.2))


def test_host_concurrency_is_positive():
    assert host_concurrency() >= 1


def test_host_concurrency_without_cpu_count(monkeypatch):
    monkeypatch.setattr(scheduler.os, "cpu_count", lambda: None)
    assert host_concurrency() == 1


@pytest.mark.parametrize(
    "height,threads,expected_rows",
    [
        (750, 8, [94] * 7 + [92]),
        (10, 1, [10]),
        (10, 3, [4, 4, 2]),
        (3, 8, [1, 1, 1]),
        (9, 4, [3, 3, 3]),
        (1, 16, [1]),
    ],
)
def test_plan_bands_layout(height, threads, expected_rows):
    bounds = ImageBounds(5, height)
    bands = plan_bands(bounds, FULL_SET, threads)

    assert [band.rows for band in bands] == expected_rows
    assert len(bands) <= threads
    assert [band.index for band in bands] == list(range(len(bands)))
    tops = [band.top for band in bands]
    assert tops == [sum(expected_rows[:i]) for i in range(len(expected_rows))]


def test_plan_bands_windows_follow_the_full_grid():
    bounds = ImageBounds(1000, 750)
    bands = plan_bands(bounds, SEAHORSE, 8)

    assert bands[0].window.upper_left == SEAHORSE.upper_left
    for band in bands:
        assert band.window.upper_left == pixel_to_point(bounds, (0, band.top), SEAHORSE)
        assert band.window.lower_right == pixel_to_point(
            bounds, (bounds.width, band.top + band.rows), SEAHORSE
        )


def test_plan_bands_rejects_zero_threads():
    with pytest.raises(ValueError):
        plan_bands(ImageBounds(4, 4), FULL_SET, 0)


def test_band_byte_ranges_tile_the_buffer():
    bounds = ImageBounds(13, 29)
    bands = plan_bands(bounds, FULL_SET, 4)
    ranges = [band.byte_range(bounds.width) for band in bands]

    assert ranges[0][0] == 0
    assert ranges[-1][1] == bounds.size
    for (_, stop), (start, _) in zip(ranges, ranges[1:]):
        assert stop == start


@pytest.mark.parametrize("threads", [2, 3, 5, 8, 64])
def test_partitioning_does_not_change_output(threads):
    bounds = ImageBounds(64, 48)
    single = np.zeros(bounds.size, dtype=np.uint8)
    render_bands(single, bounds, FULL_SET, threads=1)

    banded = np.zeros(bounds.size, dtype=np.uint8)
    render_bands(banded, bounds, FULL_SET, threads=threads)
    np.testing.assert_array_equal(single, banded)


def test_single_band_matches_plain_render():
    bounds = ImageBounds(30, 20)
    expected = np.zeros(bounds.size, dtype=np.uint8)
    render(expected, bounds, FULL_SET)

    pixels = np.zeros(bounds.size, dtype=np.uint8)
    bands = render_bands(pixels, bounds, FULL_SET, threads=1)
    assert len(bands) == 1
    np.testing.assert_array_equal(pixels, expected)


def test_band_local_render_matches_band_of_full_image():
    bounds = ImageBounds(32, 32)
    # dyadic window: band corners are exact so local interpolation agrees
    window = PlaneWindow(upper_left=complex(-2.0, 1.0), lower_right=complex(0.5, -1.0))
    full = np.zeros(bounds.size, dtype=np.uint8)
    render_bands(full, bounds, window, threads=1)
    for band in plan_bands(bounds, window, 4):
        local = np.zeros(bounds.width * band.rows, dtype=np.uint8)
        render(local, ImageBounds(bounds.width, band.rows), band.window)
        start, stop = band.byte_range(bounds.width)
        np.testing.assert_array_equal(local, full[start:stop])


@pytest.mark.parametrize("length", [0, 749_999, 750_001])
def test_render_bands_rejects_wrong_buffer_length(length):
    pixels = np.zeros(length, dtype=np.uint8)
    with pytest.raises(ValueError):
        render_bands(pixels, ImageBounds(1000, 750), SEAHORSE, threads=4)
    assert not pixels.any()


def test_render_bands_rejects_non_array_buffer():
    with pytest.raises(ValueError):
        render_bands(bytearray(16), ImageBounds(4, 4), FULL_SET, threads=2)


def test_band_failure_fails_the_whole_render(monkeypatch):
    calls = []

    def flaky_render(pixels, bounds, window, *, first_row, rows, limit):
        calls.append(first_row)
        if first_row > 0:
            raise ArithmeticError("boom")
        render(pixels, bounds, window, first_row=first_row, rows=rows, limit=limit)

    monkeypatch.setattr(scheduler, "render", flaky_render)
    pixels = np.zeros(16 * 16, dtype=np.uint8)
    with pytest.raises(RenderError) as excinfo:
        render_bands(pixels, ImageBounds(16, 16), FULL_SET, threads=4)

    assert isinstance(excinfo.value.__cause__, ArithmeticError)
    assert sorted(calls) == [0, 5, 10, 15]


def test_render_frame_defaults_to_host_concurrency(monkeypatch):
    monkeypatch.setattr(scheduler, "host_concurrency", lambda: 3)
    result = render_frame(RenderParameters(ImageBounds(8, 9), FULL_SET))
    assert [band.rows for band in result.bands] == [4, 4, 1]


def test_render_frame_result_is_read_only():
    result = render_frame(RenderParameters(ImageBounds(8, 6), FULL_SET), threads=2)
    assert result.pixels.shape == (48,)
    assert result.elapsed >= 0.0
    with pytest.raises(ValueError):
        result.pixels[0] = 1


def test_seahorse_render_is_deterministic_across_thread_counts():
    params = RenderParameters(ImageBounds(1000, 750), SEAHORSE, max_iterations=255)
    single = render_frame(params, threads=1)
    banded = render_frame(params, threads=8)
    again = render_frame(params, threads=8)

    assert single.pixels.dtype == np.uint8
    assert single.pixels.shape == (750_000,)
    assert len(banded.bands) == 8
    np.testing.assert_array_equal(single.pixels, banded.pixels)
    np.testing.assert_array_equal(banded.pixels, again.pixels)
    # the window holds points of the set as well as points that escape
    assert (single.pixels == 0).any()
    assert (single.pixels > 0).any()
