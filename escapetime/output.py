"""Persist rendered buffers to image files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
import PIL.Image


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def to_image(buffer: np.ndarray) -> PIL.Image.Image:
    return PIL.Image.fromarray(np.ascontiguousarray(buffer, dtype=np.uint8))


def save_image(buffer: np.ndarray, output_path: str | Path, image_format: Optional[str] = None) -> Path:
    """Write ``buffer`` to ``output_path``; I/O errors are not caught.

    The format defaults to the file suffix (``png`` when there is none).
    """

    output_path = Path(output_path).expanduser()
    if image_format is None:
        image_format = output_path.suffix.lstrip(".") or "png"
    image = to_image(buffer)
    pil_format = _pil_format_name(image_format.lower().lstrip("."))
    PIL.Image.init()
    if pil_format not in PIL.Image.SAVE:
        raise ValueError(f"unknown image format: {image_format}")
    if pil_format == "JPEG":
        image = image.convert("RGB")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)
    return output_path
