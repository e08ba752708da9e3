"""Public API for escape-time fractal rendering."""

from .config import FractalKind, RenderBuilder, RenderConfig
from .errors import ConfigurationError, RenderCancelled, UnsupportedFractalError
from .evaluator import NO_ESCAPE, escape_time, escape_time_grid, julia, mandelbrot
from .output import save_image
from .renderer import colorize, partition_rows, render
from .viewport import Viewport

__all__ = [
    "ConfigurationError",
    "FractalKind",
    "NO_ESCAPE",
    "RenderBuilder",
    "RenderCancelled",
    "RenderConfig",
    "UnsupportedFractalError",
    "Viewport",
    "colorize",
    "escape_time",
    "escape_time_grid",
    "julia",
    "mandelbrot",
    "partition_rows",
    "render",
    "save_image",
]
