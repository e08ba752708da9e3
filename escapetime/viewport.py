"""Mapping between the pixel grid and the complex plane."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True)
class Viewport:
    """Anchor a ``width`` x ``height`` pixel grid on the complex plane.

    Pixel ``(0, 0)`` maps to ``upper_left``. Columns grow along the real axis
    and rows grow downwards, so the imaginary part decreases with the row.
    ``scale`` is the number of plane units covered by one pixel on either axis.
    """

    upper_left: complex
    scale: float
    width: int
    height: int

    def __post_init__(self) -> None:
        if any(isinstance(v, bool) or not isinstance(v, int) for v in (self.width, self.height)):
            raise ConfigurationError(f"image size must be integral, got {self.width!r}x{self.height!r}")
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(f"image size must be positive, got {self.width}x{self.height}")
        if not math.isfinite(self.scale) or self.scale <= 0:
            raise ConfigurationError(f"scale must be a positive finite number, got {self.scale!r}")

    @classmethod
    def from_center(cls, center: complex, scale: float, width: int, height: int) -> "Viewport":
        upper_left = complex(
            center.real - width / 2.0 * scale,
            center.imag + height / 2.0 * scale,
        )
        return cls(upper_left=upper_left, scale=float(scale), width=width, height=height)

    @classmethod
    def from_bounds(cls, upper_left: complex, lower_right: complex, width: int, height: int) -> "Viewport":
        """Fit the viewport horizontally to the rectangle spanned by the two corners."""

        if width <= 0:
            raise ConfigurationError(f"image size must be positive, got {width}x{height}")
        scale = (lower_right.real - upper_left.real) / width
        center = complex(
            (upper_left.real + lower_right.real) / 2.0,
            (upper_left.imag + lower_right.imag) / 2.0,
        )
        return cls.from_center(center, scale, width, height)

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    def pixel_to_complex(self, row: int, col: int) -> complex:
        return complex(
            self.upper_left.real + col * self.scale,
            self.upper_left.imag - row * self.scale,
        )

    def complex_to_pixel(self, point: complex) -> tuple[float, float]:
        """Return the fractional ``(row, col)`` that maps onto ``point``."""

        col = (point.real - self.upper_left.real) / self.scale
        row = (self.upper_left.imag - point.imag) / self.scale
        return row, col

    def plane_grid(self, row_start: int = 0, row_stop: int | None = None) -> tuple[np.ndarray, np.ndarray]:
        """Real and imaginary coordinates for rows ``[row_start, row_stop)``.

        Both arrays have shape ``(rows, width)`` and hold exactly the values
        :meth:`pixel_to_complex` returns for the same pixels.
        """

        if row_stop is None:
            row_stop = self.height
        cols = np.arange(self.width, dtype=np.float64)
        rows = np.arange(row_start, row_stop, dtype=np.float64)
        re = np.float64(self.upper_left.real) + cols * np.float64(self.scale)
        im = np.float64(self.upper_left.imag) - rows * np.float64(self.scale)
        re_grid, im_grid = np.meshgrid(re, im)
        return re_grid, im_grid
