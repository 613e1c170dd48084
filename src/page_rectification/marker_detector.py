"""
Fiducial marker detection.

Finds convex quadrilaterals in a page photograph and resolves them into
marker identities through a MarkerIdentifier.

Pipeline:
1. Grayscale conversion
2. Inverted adaptive mean threshold (marker ink becomes foreground)
3. Contour extraction
4. Quadrilateral filter (exactly 4 vertices and convex)
5. Identification (regular markers vs. alert markers)
"""

import logging
from typing import List, Optional, Tuple

import cv2
import numpy as np

from src.page_rectification.config_loader import DetectionConfig
from src.page_rectification.marker_identifier import MarkerIdentifier
from src.page_rectification.types import MarkerDetectionResult

logger = logging.getLogger(__name__)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert a BGR page image to single-channel grayscale.

    Args:
        image: Image as numpy array (H, W, 3) BGR or (H, W) grayscale.

    Returns:
        Grayscale image of shape (H, W).

    Raises:
        ValueError: If image is None, empty or has an unsupported shape.
    """
    if image is None or image.size == 0:
        raise ValueError("Invalid input image: image is None or empty")

    if image.ndim == 2:
        return image.copy()
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)

    raise ValueError(f"Unsupported image shape {image.shape}")


def binarize(gray: np.ndarray, config: DetectionConfig) -> np.ndarray:
    """Threshold against the local mean so dark marker ink is foreground."""
    return cv2.adaptiveThreshold(
        gray,
        config.adaptive_max_value,
        cv2.ADAPTIVE_THRESH_MEAN_C,
        cv2.THRESH_BINARY_INV,
        config.adaptive_block_size,
        config.adaptive_bias,
    )


def find_quadrilaterals(
    binary: np.ndarray, approx_epsilon: float
) -> Tuple[List[np.ndarray], int]:
    """
    Extract convex quadrilaterals from a binary image.

    Every closed contour (holes included, no hierarchy) is approximated by a
    polygon; only polygons with exactly 4 vertices that are convex survive.
    Vertices keep the order produced by the approximation.

    Args:
        binary: Single-channel binary image.
        approx_epsilon: Douglas-Peucker tolerance in pixels.

    Returns:
        Tuple of (quadrilaterals, num_contours), each quadrilateral as a
        float32 array of shape (4, 2).
    """
    contours, _ = cv2.findContours(binary, cv2.RETR_LIST, cv2.CHAIN_APPROX_NONE)

    quads = []
    for contour in contours:
        poly = cv2.approxPolyDP(contour, approx_epsilon, True)
        if len(poly) != 4 or not cv2.isContourConvex(poly):
            continue
        quads.append(poly.reshape(4, 2).astype(np.float32))

    logger.debug(
        f"Found {len(quads)} convex quadrilaterals among {len(contours)} contours"
    )

    return quads, len(contours)


def detect_markers(
    image: np.ndarray,
    identifier: MarkerIdentifier,
    config: Optional[DetectionConfig] = None,
) -> MarkerDetectionResult:
    """
    Detect fiducial markers in a page photograph.

    Regular markers are recorded by their canonical first corner; a later
    detection of the same identity replaces an earlier one. Reserved alert
    identities only set a flag and never enter the marker map. An image
    without candidates yields empty maps.

    Args:
        image: Page photograph (H, W, 3) BGR.
        identifier: Decodes quadrilateral patches into marker identities.
        config: Detection settings. Uses defaults if None.

    Returns:
        MarkerDetectionResult with the marker map and alert flags.

    Example:
        >>> result = detect_markers(image, identifier)
        >>> print(sorted(result.markers))
        [0, 1, 2, 3]
    """
    if config is None:
        config = DetectionConfig()

    gray = to_grayscale(image)
    binary = binarize(gray, config)
    quads, num_contours = find_quadrilaterals(binary, config.approx_epsilon)

    result = MarkerDetectionResult(
        num_contours=num_contours, num_quadrilaterals=len(quads)
    )

    for quad in quads:
        identification = identifier.identify(gray, quad)
        if identification is None or not identification.is_marker():
            continue

        marker_id = int(identification.marker_id)

        if marker_id in config.alert_markers:
            logger.info(
                f"Marker #{marker_id} (the 'Alert' marker for the "
                f"{config.alert_markers[marker_id]}) found"
            )
            result.alerts[marker_id] = True
            continue

        corners = np.asarray(identification.corners, dtype=np.float32).reshape(-1, 2)
        if marker_id in result.markers:
            logger.debug(f"Marker #{marker_id} detected again, keeping latest")
        result.markers[marker_id] = corners[0].copy()

    logger.info(
        f"Detected {len(result.markers)} markers and {len(result.alerts)} alerts "
        f"from {len(quads)} quadrilaterals"
    )

    return result
