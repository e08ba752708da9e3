"""Rasterize a render configuration into an RGBA buffer."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from .config import FractalKind, RenderConfig
from .errors import RenderCancelled, UnsupportedFractalError
from .evaluator import NO_ESCAPE, escape_time_grid

GRADIENT_STEP = np.float32(0.1)
OPAQUE = 255


def partition_rows(height: int, parts: int) -> list[range]:
    """Split ``range(height)`` into at most ``parts`` contiguous, disjoint bands."""

    parts = max(1, min(int(parts), height))
    base, extra = divmod(height, parts)
    bands = []
    start = 0
    for index in range(parts):
        stop = start + base + (1 if index < extra else 0)
        bands.append(range(start, stop))
        start = stop
    return bands


def _gradient(indices: np.ndarray) -> np.ndarray:
    scaled = GRADIENT_STEP * indices.astype(np.float32)
    return np.clip(np.trunc(scaled), 0, 255).astype(np.uint8)


def colorize(escape: np.ndarray, row_start: int = 0) -> np.ndarray:
    """Map a band of escape iterations to RGBA pixels.

    Red is ``255 - k`` for a point that escaped at iteration ``k`` (clamped to
    the 8-bit range) and ``0`` for a point that never escaped. Green and blue
    are fixed gradients over the row and column index.
    """

    rows, cols = escape.shape
    escaped = escape != NO_ESCAPE
    red = np.where(escaped, 255 - np.clip(escape, 0, 255), 0).astype(np.uint8)

    green = _gradient(np.arange(row_start, row_start + rows))
    blue = _gradient(np.arange(cols))

    pixels = np.empty((rows, cols, 4), dtype=np.uint8)
    pixels[..., 0] = red
    pixels[..., 1] = green[:, np.newaxis]
    pixels[..., 2] = blue[np.newaxis, :]
    pixels[..., 3] = OPAQUE
    return pixels


def _evaluate_band(config: RenderConfig, band: range, device: Optional[str]) -> np.ndarray:
    re, im = config.viewport.plane_grid(band.start, band.stop)
    if config.kind is FractalKind.JULIA:
        return escape_time_grid(re, im, config.c.real, config.c.imag, config.max_iterations, device=device)
    if config.kind is FractalKind.MANDELBROT:
        return escape_time_grid(0.0, 0.0, re, im, config.max_iterations, device=device)
    raise UnsupportedFractalError(f"fractal type '{config.kind.value}' is not implemented")


def render_band(config: RenderConfig, band: range, out: np.ndarray, *, device: Optional[str] = None) -> None:
    """Evaluate the rows in ``band`` and write them into ``out``."""

    escape = _evaluate_band(config, band, device)
    out[band.start:band.stop] = colorize(escape, row_start=band.start)


def render(
    config: RenderConfig,
    *,
    workers: int = 1,
    bands: Optional[int] = None,
    device: Optional[str] = None,
    cancel: Optional[threading.Event] = None,
) -> np.ndarray:
    """Render ``config`` and return a ``(height, width, 4)`` ``uint8`` buffer.

    The rows are split into ``bands`` contiguous bands (one per worker by
    default). Bands never overlap, so the workers write to the shared buffer
    without locking. ``cancel`` is checked before every band starts.
    """

    if not config.kind.supported:
        raise UnsupportedFractalError(f"fractal type '{config.kind.value}' is not implemented")

    workers = max(1, int(workers))
    buffer = config.new_buffer()
    partitions = partition_rows(config.height, bands if bands is not None else workers)

    def run(band: range) -> None:
        if cancel is not None and cancel.is_set():
            raise RenderCancelled(f"render cancelled before rows {band.start}-{band.stop - 1}")
        render_band(config, band, buffer, device=device)

    if workers == 1:
        for band in partitions:
            run(band)
        return buffer

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(run, band) for band in partitions]
        for future in futures:
            future.result()
    return buffer
