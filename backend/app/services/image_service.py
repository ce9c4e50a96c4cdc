"""
Twinshot Backend — Composite Image Builder
============================================

What:  Combines the front and back captures of a post into one side-by-side
       PNG using Pillow.
How:   Both captures are decoded (EXIF orientation applied), uniformly scaled
       to the smaller of the two heights, and pasted left (front) and right
       (back) onto a new canvas.

Geometry:
    front W1×H1, back W2×H2, H = min(H1, H2)
    scaled widths w1 = round(W1·H/H1), w2 = round(W2·H/H2)
    composite = (w1 + w2) × H

    Scaling is uniform, so aspect ratios are preserved. Nothing is stretched.

Concurrency:
    Decoding, resampling and PNG encoding are CPU-bound. `compose_async()`
    runs `compose()` in Starlette's threadpool so a slow composite never
    stalls the event loop.
"""

import logging
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from app.exceptions import CompositionFailedError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ImageCompositor:
    """Side-by-side composite builder."""

    def __init__(self, background: Tuple[int, int, int] = (0, 0, 0)):
        self.background = background

    def _load(self, path: PathLike, label: str) -> Image.Image:
        """Decode one capture fully into an RGB image."""
        try:
            with Image.open(path) as source:
                oriented = ImageOps.exif_transpose(source)
                return oriented.convert("RGB")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            # DecompressionBombError: declared dimensions exceed MAX_IMAGE_PIXELS
            logger.warning("Could not decode %s image %s: %s", label, path, str(e))
            raise CompositionFailedError(
                message=f"The {label} image could not be read as an image",
                context={"image": label, "reason": type(e).__name__},
            )

    @staticmethod
    def scale_to_height(image: Image.Image, height: int) -> Image.Image:
        """Uniformly resize `image` so its height equals `height`."""
        if image.height == height:
            return image
        width = max(1, round(image.width * height / image.height))
        return image.resize((width, height), Image.Resampling.LANCZOS)

    def compose(
        self,
        front_path: PathLike,
        back_path: PathLike,
        output_path: PathLike,
    ) -> Tuple[int, int]:
        """
        Build the composite and write it to `output_path` as PNG.

        Returns:
            (width, height) of the written composite.

        Raises:
            CompositionFailedError if either input cannot be decoded or the
            output cannot be written.
        """
        front = self._load(front_path, "front")
        back = self._load(back_path, "back")

        target_height = min(front.height, back.height)
        front = self.scale_to_height(front, target_height)
        back = self.scale_to_height(back, target_height)

        size = (front.width + back.width, target_height)
        canvas = Image.new("RGB", size, self.background)
        canvas.paste(front, (0, 0))
        canvas.paste(back, (front.width, 0))

        try:
            canvas.save(output_path, format="PNG")
        except (OSError, ValueError) as e:
            logger.error("Failed to write composite %s: %s", output_path, str(e))
            raise CompositionFailedError(
                message="Failed to process images",
                context={"reason": type(e).__name__},
            )

        logger.info("Composite written: %s (%dx%d)", Path(output_path).name, *size)
        return size

    async def compose_async(
        self,
        front_path: PathLike,
        back_path: PathLike,
        output_path: PathLike,
    ) -> Tuple[int, int]:
        """`compose()` off the event loop."""
        return await run_in_threadpool(self.compose, front_path, back_path, output_path)


# ── Singleton Instance ────────────────────────────────────────────────────
image_compositor = ImageCompositor()
