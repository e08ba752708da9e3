"""Render configuration and the builder that assembles it."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

import numpy as np

from .errors import ConfigurationError, UnsupportedFractalError
from .viewport import Viewport

DEFAULT_RATIO = 0.001
DEFAULT_BAIL_OUT = 255
DEFAULT_FILENAME = "julia.png"
CHANNELS = 4


class FractalKind(Enum):
    JULIA = "julia"
    MANDELBROT = "mandelbrot"
    # Trajectory-density rendering has no evaluator yet.
    BUDDHABROT = "buddhabrot"

    @property
    def supported(self) -> bool:
        return self in SUPPORTED_KINDS


SUPPORTED_KINDS = frozenset({FractalKind.JULIA, FractalKind.MANDELBROT})


@dataclass(frozen=True)
class RenderConfig:
    """Everything needed to render a single image."""

    viewport: Viewport
    kind: FractalKind
    c: complex
    max_iterations: int
    output: str

    @property
    def width(self) -> int:
        return self.viewport.width

    @property
    def height(self) -> int:
        return self.viewport.height

    def new_buffer(self) -> np.ndarray:
        return np.zeros((self.height, self.width, CHANNELS), dtype=np.uint8)


@dataclass(frozen=True)
class RenderBuilder:
    """Collect render options; each setter returns an updated copy.

    Nothing is validated until :meth:`build`. The image size has no default
    and must be set before building.
    """

    size: Optional[tuple[int, int]] = None
    center_point: complex = 0j
    ratio: float = DEFAULT_RATIO
    kind: FractalKind = FractalKind.JULIA
    c: complex = 0j
    bail_out: int = DEFAULT_BAIL_OUT
    filename: str = DEFAULT_FILENAME
    corners: Optional[tuple[complex, complex]] = None

    def size_image(self, width: int, height: int) -> "RenderBuilder":
        return replace(self, size=(width, height))

    def center(self, re: float, im: float) -> "RenderBuilder":
        return replace(self, center_point=complex(re, im), corners=None)

    def set_ratio(self, ratio: float) -> "RenderBuilder":
        return replace(self, ratio=ratio, corners=None)

    def bounds(self, upper_left: complex, lower_right: complex) -> "RenderBuilder":
        """Fit the image width to the rectangle spanned by the two corners.

        The corners replace any center and ratio, and are resolved against the
        image size in :meth:`build`.
        """

        return replace(self, corners=(complex(upper_left), complex(lower_right)))

    def set_type(self, kind: FractalKind | str) -> "RenderBuilder":
        if not isinstance(kind, FractalKind):
            try:
                kind = FractalKind(str(kind).lower())
            except ValueError as exc:
                valid = ", ".join(k.value for k in FractalKind)
                raise ConfigurationError(f"unknown fractal type {kind!r}; valid choices: {valid}") from exc
        return replace(self, kind=kind)

    def set_c(self, re: float, im: float) -> "RenderBuilder":
        return replace(self, c=complex(re, im))

    def set_bailout(self, bail_out: int) -> "RenderBuilder":
        return replace(self, bail_out=bail_out)

    def set_filename(self, filename: str) -> "RenderBuilder":
        return replace(self, filename=filename)

    def build(self) -> RenderConfig:
        if self.size is None:
            raise ConfigurationError("need to specify the size of the image")
        if not self.kind.supported:
            raise UnsupportedFractalError(f"fractal type '{self.kind.value}' is not implemented")
        if isinstance(self.bail_out, bool) or not isinstance(self.bail_out, int) or self.bail_out <= 0:
            raise ConfigurationError(f"bail-out must be a positive integer, got {self.bail_out!r}")

        width, height = self.size
        if self.corners is not None:
            viewport = Viewport.from_bounds(*self.corners, width, height)
        else:
            viewport = Viewport.from_center(self.center_point, self.ratio, width, height)
        return RenderConfig(
            viewport=viewport,
            kind=self.kind,
            c=self.c,
            max_iterations=self.bail_out,
            output=self.filename,
        )
