"""
Homography estimation and page rectification.

Matches detected markers to a requested target layout by identity, solves
for the perspective transform between them, and resamples the source page
into a destination raster of the requested size.
"""

import logging
from typing import Mapping, Optional, Sequence, Tuple

import cv2
import numpy as np

from src.page_rectification.config_loader import RectificationConfig
from src.page_rectification.types import (
    DecisionStatus,
    DegenerateGeometryError,
    InsufficientCorrespondenceError,
    RectificationError,
    RectificationResult,
    RejectionReason,
    UnresolvedMarkerError,
)

logger = logging.getLogger(__name__)

# At least 4 point pairs are needed to fix the 8 degrees of freedom
MIN_CORRESPONDENCES = 4


def match_correspondences(
    detected: Mapping[int, Sequence[float]],
    target: Mapping[int, Sequence[float]],
    min_correspondences: int = MIN_CORRESPONDENCES,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Pair detected and target marker positions by identity.

    Rows of both arrays follow ascending marker identity, so row i of the
    source array and row i of the destination array describe the same marker.
    Matching is exact identity equality, never proximity.

    Args:
        detected: Marker identity -> position in the source image.
        target: Marker identity -> desired position in the destination image.
        min_correspondences: Minimum number of target entries.

    Returns:
        Tuple of (src_points, dst_points), float64 arrays of shape (N, 2).

    Raises:
        InsufficientCorrespondenceError: If target has too few entries.
        UnresolvedMarkerError: If any target identity was not detected.

    Example:
        >>> src, dst = match_correspondences(
        ...     {1: (10, 10), 2: (110, 10), 3: (110, 110), 4: (10, 110)},
        ...     {1: (0, 0), 2: (100, 0), 3: (100, 100), 4: (0, 100)},
        ... )
        >>> src.shape
        (4, 2)
    """
    if len(target) < min_correspondences:
        raise InsufficientCorrespondenceError(
            f"At least {min_correspondences} target markers are required, "
            f"got {len(target)}"
        )

    marker_ids = sorted(target)
    missing = [marker_id for marker_id in marker_ids if marker_id not in detected]
    if missing:
        raise UnresolvedMarkerError(missing)

    src_points = np.array(
        [np.asarray(detected[i], dtype=np.float64).reshape(2) for i in marker_ids]
    )
    dst_points = np.array(
        [np.asarray(target[i], dtype=np.float64).reshape(2) for i in marker_ids]
    )

    return src_points, dst_points


def estimate_homography(src_points: np.ndarray, dst_points: np.ndarray) -> np.ndarray:
    """
    Solve for the 3x3 perspective transform mapping src_points onto dst_points.

    With exactly 4 points the solution is exact; with more it is the
    least-squares fit over all points (no outlier rejection). Collinear or
    otherwise degenerate correspondences are the caller's responsibility;
    the result for them is whatever the solver produces.

    Args:
        src_points: Source points, shape (N, 2), N >= 4.
        dst_points: Destination points, shape (N, 2).

    Returns:
        Homography matrix of shape (3, 3), float64.

    Raises:
        DegenerateGeometryError: If the solver returns no matrix.
    """
    homography, _ = cv2.findHomography(src_points, dst_points, 0)

    if homography is None:
        raise DegenerateGeometryError(
            "Marker positions do not define a perspective transform"
        )

    logger.debug(f"Estimated homography:\n{homography}")

    return homography


def warp_to_size(
    image: np.ndarray,
    homography: np.ndarray,
    size: Tuple[int, int],
    interpolation: int = cv2.INTER_LINEAR,
    border_value: int = 0,
) -> np.ndarray:
    """
    Resample image through the homography into a new raster.

    Each destination pixel is looked up at its inverse-mapped source
    location. Destination pixels whose source location falls outside the
    image are filled with border_value.

    Args:
        image: Source image (H, W, C) or (H, W).
        homography: Source -> destination transform, shape (3, 3).
        size: Destination size as (width, height).
        interpolation: OpenCV interpolation flag.
        border_value: Fill value for uncovered pixels.

    Returns:
        Newly allocated destination image of shape (height, width[, C]).
    """
    width, height = size
    if width <= 0 or height <= 0:
        raise ValueError(f"Destination size must be positive, got {width}x{height}")

    return cv2.warpPerspective(
        image,
        homography,
        (int(width), int(height)),
        flags=interpolation,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(border_value,) * 4,
    )


def rectify(
    image: np.ndarray,
    detected: Mapping[int, Sequence[float]],
    target: Mapping[int, Sequence[float]],
    size: Tuple[int, int],
    config: Optional[RectificationConfig] = None,
) -> RectificationResult:
    """
    Warp a page image so that detected markers land on their target positions.

    Fails fast: no destination image is allocated unless the size is
    positive, every requested marker resolves and a transform could be
    estimated. There is no partial output.

    Args:
        image: Source page image.
        detected: Marker map produced by detection.
        target: Marker identity -> destination pixel position.
        size: Destination size as (width, height).
        config: Rectification settings. Uses defaults if None.

    Returns:
        RectificationResult with the rectified image on PASS.

    Example:
        >>> result = rectify(image, detection.markers, target, (1000, 800))
        >>> if result.is_pass():
        ...     cv2.imwrite("page.png", result.rectified_image)
    """
    if config is None:
        config = RectificationConfig()

    size = (int(size[0]), int(size[1]))
    requested = sorted(target)

    def _reject(reason: RejectionReason, missing: Optional[list] = None):
        return RectificationResult(
            decision=DecisionStatus.REJECT,
            rectified_image=None,
            homography=None,
            rejection_reason=reason,
            output_size=size,
            requested_marker_ids=requested,
            missing_marker_ids=missing or [],
        )

    if size[0] <= 0 or size[1] <= 0:
        logger.warning(
            f"Rectification REJECTED: destination size must be positive, "
            f"got {size[0]}x{size[1]}"
        )
        return _reject(RejectionReason.INVALID_SIZE)

    try:
        src_points, dst_points = match_correspondences(
            detected, target, config.min_correspondences
        )
    except InsufficientCorrespondenceError as e:
        logger.warning(f"Rectification REJECTED: {e}")
        return _reject(RejectionReason.INSUFFICIENT_CORRESPONDENCE)
    except UnresolvedMarkerError as e:
        logger.warning(f"Rectification REJECTED: {e}")
        return _reject(RejectionReason.UNRESOLVED_MARKER, e.missing_ids)

    try:
        homography = estimate_homography(src_points, dst_points)
    except RectificationError as e:
        logger.warning(f"Rectification REJECTED: {e}")
        return _reject(RejectionReason.DEGENERATE_GEOMETRY)

    logger.info(
        "The following corner markers are recognized: "
        + " ".join(str(i) for i in requested)
    )

    rectified = warp_to_size(
        image,
        homography,
        size,
        interpolation=config.interpolation_flag,
        border_value=config.border_value,
    )

    logger.info(f"Rectified page to {size[0]}x{size[1]}")

    return RectificationResult(
        decision=DecisionStatus.PASS,
        rectified_image=rectified,
        homography=homography,
        rejection_reason=RejectionReason.NONE,
        output_size=size,
        requested_marker_ids=requested,
        matched_marker_ids=requested,
    )

