"""
Physical page layout to pixel space conversion.

Target marker positions are often known in physical units (e.g. inches on
the printed page). These helpers turn a LayoutSpec and such positions into
the pixel-space target map and destination size used by rectification.
"""

import logging
from typing import Dict, Mapping, Sequence, Tuple

import numpy as np

from src.page_rectification.types import LayoutSpec

logger = logging.getLogger(__name__)


def page_size_px(layout: LayoutSpec) -> Tuple[int, int]:
    """
    Calculate the destination image size in pixels.

    Each extent is scaled by dpi and rounded to nearest (add 0.5, truncate).

    Args:
        layout: Physical page layout.

    Returns:
        Tuple of (width, height) in pixels.

    Example:
        >>> page_size_px(LayoutSpec(0, 0, 10, 8, 100))
        (1000, 800)
    """
    width_px = (layout.page_right - layout.page_left) * layout.dpi
    height_px = (layout.page_bottom - layout.page_top) * layout.dpi

    logger.debug(f"Page width: {width_px:.2f}px; page height: {height_px:.2f}px")

    return int(width_px + 0.5), int(height_px + 0.5)


def markers_to_pixels(
    markers: Mapping[int, Sequence[float]], layout: LayoutSpec
) -> Dict[int, np.ndarray]:
    """
    Convert physical marker positions to destination pixel positions.

    Args:
        markers: Marker identity -> (x, y) in the layout's physical units.
        layout: Physical page layout.

    Returns:
        Marker identity -> float32 (x, y) pixel position.
    """
    origin = np.array([layout.page_left, layout.page_top], dtype=np.float64)

    return {
        marker_id: ((np.asarray(point, dtype=np.float64) - origin) * layout.dpi).astype(
            np.float32
        )
        for marker_id, point in markers.items()
    }


def convert_layout(
    markers: Mapping[int, Sequence[float]], layout: LayoutSpec
) -> Tuple[Dict[int, np.ndarray], Tuple[int, int]]:
    """Pixel-space target map and destination size for a physical layout."""
    return markers_to_pixels(markers, layout), page_size_px(layout)
