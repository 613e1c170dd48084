"""
Page abstraction for marker-based rectification.

A PageImage owns a copy of one page photograph and detects its fiducial
markers once, at construction. Rectification can then be requested any
number of times, against different target layouts or sizes.
"""

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from src.page_rectification.config_loader import PageRectificationConfig, load_config
from src.page_rectification.homography import rectify
from src.page_rectification.layout import convert_layout
from src.page_rectification.marker_detector import detect_markers
from src.page_rectification.marker_identifier import MarkerIdentifier
from src.page_rectification.types import (
    LayoutSpec,
    MarkerDetectionResult,
    RectificationResult,
)

logger = logging.getLogger(__name__)

TargetMarkers = Mapping[int, Sequence[float]]


class PageImage:
    """
    A photographed page together with its detected markers.

    Not safe for concurrent use from several threads; callers must serialize
    access to one instance.

    Example:
        >>> page = PageImage(cv2.imread("page.jpg"), identifier)
        >>> layout = LayoutSpec(0.0, 0.0, 8.5, 11.0, dpi=300)
        >>> image = page.create_page_image(target_inches, layout)
        >>> if image is not None:
        ...     cv2.imwrite("page_flat.png", image)
    """

    def __init__(
        self,
        image: np.ndarray,
        identifier: MarkerIdentifier,
        config: Optional[PageRectificationConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Copy the image and detect its markers.

        Args:
            image: Page photograph (H, W, 3) BGR.
            identifier: Decodes quadrilateral patches into marker identities.
            config: Pre-loaded configuration object. If None, loads from file.
            config_path: Path to config file. If None, uses default location.

        Raises:
            ValueError: If image is None or empty.
        """
        if image is None or image.size == 0:
            raise ValueError("Invalid input image: image is None or empty")

        if config is not None:
            self.config = config
        else:
            self.config = load_config(config_path) if config_path else load_config()

        self._image = np.array(image, copy=True)

        self._detection = detect_markers(
            self._image, identifier, self.config.detection
        )

    @property
    def image(self) -> np.ndarray:
        """Read-only view of the owned source image."""
        view = self._image.view()
        view.setflags(write=False)
        return view

    @property
    def detection(self) -> MarkerDetectionResult:
        return self._detection

    @property
    def markers(self) -> Dict[int, np.ndarray]:
        """Detected marker identity -> source pixel position (a copy)."""
        return {k: v.copy() for k, v in self._detection.markers.items()}

    @property
    def alerts(self) -> Dict[int, bool]:
        return dict(self._detection.alerts)

    def has_alert(self, marker_id: int) -> bool:
        """Check whether the given alert marker was found on the page."""
        return self._detection.alerts.get(marker_id, False)

    def rectify(
        self, target: TargetMarkers, size: Tuple[int, int]
    ) -> RectificationResult:
        """
        Rectify against a pixel-space target marker map.

        Args:
            target: Marker identity -> destination pixel position.
            size: Destination size as (width, height).

        Returns:
            RectificationResult (rectified image on PASS).
        """
        return rectify(
            self._image,
            self._detection.markers,
            target,
            size,
            self.config.rectification,
        )

    def rectify_with_layout(
        self, target: TargetMarkers, layout: LayoutSpec
    ) -> RectificationResult:
        """
        Rectify against marker positions given in physical page units.

        Args:
            target: Marker identity -> position in the layout's units.
            layout: Physical page boundaries and resolution.

        Returns:
            RectificationResult (rectified image on PASS).
        """
        target_px, size = convert_layout(target, layout)
        return self.rectify(target_px, size)

    def create_page_image(
        self,
        target: TargetMarkers,
        size_or_layout: Union[Tuple[int, int], LayoutSpec],
    ) -> Optional[np.ndarray]:
        """
        Produce the rectified page image, or None on failure.

        Args:
            target: Marker identity -> destination position, in pixels when
                size_or_layout is a (width, height) size, in physical units
                when it is a LayoutSpec.
            size_or_layout: Destination size or physical layout.

        Returns:
            The rectified image, or None if rectification was rejected.
        """
        if isinstance(size_or_layout, LayoutSpec):
            result = self.rectify_with_layout(target, size_or_layout)
        else:
            result = self.rectify(target, size_or_layout)

        if not result.is_pass():
            logger.warning(f"No page image created: {result.get_error_message()}")
        return result.rectified_image


def rectify_page(
    image: np.ndarray,
    identifier: MarkerIdentifier,
    target: TargetMarkers,
    size_or_layout: Union[Tuple[int, int], LayoutSpec],
    config: Optional[PageRectificationConfig] = None,
) -> RectificationResult:
    """
    Convenience function for one-shot detection and rectification.

    Args:
        image: Page photograph.
        identifier: Decodes quadrilateral patches into marker identities.
        target: Marker identity -> destination position (pixels or layout units).
        size_or_layout: Destination size or physical layout.
        config: Optional custom configuration. Uses default if None.

    Returns:
        RectificationResult object.
    """
    page = PageImage(image, identifier, config=config)
    if isinstance(size_or_layout, LayoutSpec):
        return page.rectify_with_layout(target, size_or_layout)
    return page.rectify(target, size_or_layout)
