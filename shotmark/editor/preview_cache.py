"""
Live previews for effect shapes.

Each effect shape gets one slot, indexed by its position among the effect
shapes being drawn. A slot is reused only while the effect's pixel bounds,
kind and strength and the history version all match; any history change
makes every slot stale.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np

from shotmark.editor.compositor import crop_image_exact
from shotmark.editor.effects import PixelBounds, apply_blur_full, apply_pixelate_full, pixel_bounds
from shotmark.editor.shapes import EffectKind, EffectShape
from shotmark.services.logging_service import get_logger

PreviewKey = Tuple[PixelBounds, EffectKind, int, int]


@dataclass(eq=False)
class EffectPreview:
    """
    A processed crop ready to be drawn over the effect's rectangle.

    Attributes:
        key: (pixel bounds, kind, strength, history version) it was built for.
        pixels: RGBA8 crop of shape (h, w, 4).
    """

    key: PreviewKey
    pixels: np.ndarray = field(repr=False)

    @property
    def bounds(self) -> PixelBounds:
        return self.key[0]


def build_preview(base: np.ndarray, effect: EffectShape, version: int) -> Optional[EffectPreview]:
    """Crop base to the effect rect and run the full-image effect on the crop."""
    height, width = base.shape[:2]
    bounds = pixel_bounds(effect.rect, width, height)
    if bounds is None:
        return None
    pixels = crop_image_exact(base, bounds)
    strength = effect.strength
    if effect.kind is EffectKind.PIXELATE:
        apply_pixelate_full(pixels, strength)
    else:
        apply_blur_full(pixels, strength)
    return EffectPreview((bounds, effect.kind, strength, version), pixels)


class EffectPreviewCache:
    """Slot array of effect previews keyed by the history version."""

    def __init__(self) -> None:
        self._logger = get_logger(__name__)
        self._slots: List[Optional[EffectPreview]] = []

    def __len__(self) -> int:
        return sum(1 for slot in self._slots if slot is not None)

    def clear(self) -> None:
        self._slots.clear()

    def get(
        self,
        index: int,
        effect: EffectShape,
        version: int,
        base: Callable[[], np.ndarray],
        width: int,
        height: int,
    ) -> Optional[EffectPreview]:
        """
        Return the preview for the index-th effect, rebuilding it if stale.

        Args:
            index: Position of the effect among the effect shapes drawn.
            effect: The effect shape.
            version: Current history version.
            base: Produces the unprocessed image the preview is cut from;
                only called when a rebuild is needed.
            width: Image width, for bounds clipping.
            height: Image height, for bounds clipping.

        Returns:
            The cached or rebuilt preview, or None for an empty rectangle.
        """
        bounds = pixel_bounds(effect.rect, width, height)
        if bounds is None:
            return None
        key = (bounds, effect.kind, effect.strength, version)

        if index < len(self._slots):
            cached = self._slots[index]
            if cached is not None and cached.key == key:
                return cached
        else:
            self._slots.extend([None] * (index + 1 - len(self._slots)))

        preview = build_preview(base(), effect, version)
        self._slots[index] = preview
        self._logger.debug(f"Rebuilt {effect.kind.name.lower()} preview #{index} for {bounds}")
        return preview
