"""Escape-time iteration of the quadratic map ``z -> z*z + c``."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

ESCAPE_RADIUS_SQUARED = 4.0
NO_ESCAPE = -1


def escape_time(z0: complex, c: complex, max_iterations: int) -> Optional[int]:
    """Return the 0-based iteration at which the orbit of ``z0`` leaves ``|z| <= 2``.

    ``None`` means the orbit stayed bounded for ``max_iterations`` steps. An
    orbit that overflows to ``inf``/``nan`` counts as escaped.
    """

    zr, zi = z0.real, z0.imag
    cr, ci = c.real, c.imag
    for i in range(max_iterations):
        zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
        if not zr * zr + zi * zi <= ESCAPE_RADIUS_SQUARED:
            return i
    return None


def julia(z: complex, c: complex, max_iterations: int) -> Optional[int]:
    return escape_time(z, c, max_iterations)


def mandelbrot(c: complex, max_iterations: int) -> Optional[int]:
    return escape_time(0j, c, max_iterations)


@tf.function(reduce_retracing=True)
def _escape_step(
    i: tf.Tensor,
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    escape: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every still-bounded point by one iteration."""

    zr_new = zr * zr - zi * zi + cr
    zi_new = 2.0 * zr * zi + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    bounded = tf.less_equal(zr * zr + zi * zi, tf.constant(ESCAPE_RADIUS_SQUARED, dtype=zr.dtype))
    escaped_now = tf.logical_and(active, tf.logical_not(bounded))
    escape = tf.where(escaped_now, i, escape)
    active = tf.logical_and(active, tf.logical_not(escaped_now))
    return zr, zi, escape, active


@tf.function(reduce_retracing=True)
def _escape_run(zr: tf.Tensor, zi: tf.Tensor, cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate until every point escaped or the bail-out is reached."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    escape = tf.fill(tf.shape(zr), tf.constant(NO_ESCAPE, dtype=tf.int32))
    active = tf.ones_like(zr, tf.bool)

    def cond(i, zr, zi, escape, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, escape, active):
        zr, zi, escape, active = _escape_step(i, zr, zi, cr, ci, escape, active)
        return i + 1, zr, zi, escape, active

    _, _, _, escape, _ = tf.while_loop(cond, body, (i, zr, zi, escape, active))
    return escape


def escape_time_grid(
    z0_re: np.ndarray,
    z0_im: np.ndarray,
    c_re: np.ndarray,
    c_im: np.ndarray,
    max_iterations: int,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Vectorised :func:`escape_time` over arrays of equal shape.

    Returns an ``int32`` array holding the escape iteration of every point, or
    ``NO_ESCAPE`` where :func:`escape_time` would return ``None``.
    """

    shape = np.broadcast_shapes(np.shape(z0_re), np.shape(z0_im), np.shape(c_re), np.shape(c_im))
    arrays = [np.broadcast_to(np.asarray(a, dtype=np.float64), shape) for a in (z0_re, z0_im, c_re, c_im)]
    if max_iterations <= 0 or 0 in shape:
        return np.full(shape, NO_ESCAPE, dtype=np.int32)

    with tf.device(device if device is not None else "/CPU:0"):
        zr, zi, cr, ci = (tf.convert_to_tensor(a, dtype=tf.float64) for a in arrays)
        escape = _escape_run(zr, zi, cr, ci, tf.constant(max_iterations, dtype=tf.int32))
    return escape.numpy()
