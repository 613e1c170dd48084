"""
Data types and structures for the Page Rectification module.

Provides type-safe containers for layouts, detection and rectification
results, and the exceptions raised by the rectification stages.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

# Identity returned by a marker identifier when a patch is not a marker
NO_MARKER = -1


class DecisionStatus(Enum):
    """Rectification decision outcomes."""

    PASS = "PASS"
    REJECT = "REJECT"


class RejectionReason(Enum):
    """Specific reasons for rejection."""

    INSUFFICIENT_CORRESPONDENCE = "Insufficient Correspondence"  # < 4 targets
    UNRESOLVED_MARKER = "Unresolved Marker"  # Target id not detected
    DEGENERATE_GEOMETRY = "Degenerate Geometry"  # Solver found no homography
    INVALID_SIZE = "Invalid Size"  # Destination has no pixels
    NONE = "None"  # No rejection (rectified)


class RectificationError(ValueError):
    """Base class for failures of a single rectification call."""


class InsufficientCorrespondenceError(RectificationError):
    """Raised when fewer target markers than required are requested."""


class UnresolvedMarkerError(RectificationError):
    """Raised when requested marker identities were not detected."""

    def __init__(self, missing_ids: List[int]):
        self.missing_ids = list(missing_ids)
        super().__init__(
            f"Couldn't find marker(s) {', '.join(str(i) for i in self.missing_ids)}"
        )


class DegenerateGeometryError(RectificationError):
    """Raised when the correspondences do not define a homography."""


@dataclass(frozen=True)
class LayoutSpec:
    """
    Physical description of the destination page.

    Attributes:
        page_left: Left page boundary in physical units.
        page_top: Top page boundary in physical units.
        page_right: Right page boundary in physical units.
        page_bottom: Bottom page boundary in physical units.
        dpi: Output resolution in pixels per physical unit.
    """

    page_left: float
    page_top: float
    page_right: float
    page_bottom: float
    dpi: float

    def __post_init__(self):
        if self.dpi <= 0:
            raise ValueError(f"dpi must be positive, got {self.dpi}")
        if self.page_right <= self.page_left:
            raise ValueError(
                f"page_right ({self.page_right}) must be greater than "
                f"page_left ({self.page_left})"
            )
        if self.page_bottom <= self.page_top:
            raise ValueError(
                f"page_bottom ({self.page_bottom}) must be greater than "
                f"page_top ({self.page_top})"
            )


@dataclass
class MarkerIdentification:
    """
    Result of identifying a quadrilateral patch.

    Attributes:
        marker_id: Decoded identity, NO_MARKER if the patch is not a marker.
        corners: The 4 corners in canonical marker order, shape (4, 2).
    """

    marker_id: int
    corners: np.ndarray

    def is_marker(self) -> bool:
        return self.marker_id != NO_MARKER


@dataclass
class MarkerDetectionResult:
    """
    Output of marker detection on one source image.

    Attributes:
        markers: Marker identity -> canonical first corner (x, y).
        alerts: Alert identities that were found (always True).
        num_contours: Contours extracted from the binary image.
        num_quadrilaterals: Convex quadrilaterals passed to the identifier.
    """

    markers: Dict[int, np.ndarray] = field(default_factory=dict)
    alerts: Dict[int, bool] = field(default_factory=dict)
    num_contours: int = 0
    num_quadrilaterals: int = 0


@dataclass
class RectificationResult:
    """
    Output from a single rectification call.

    Attributes:
        decision: PASS or REJECT status.
        rectified_image: The warped page (None if rejected).
        homography: Source -> destination transform (None if rejected).
        rejection_reason: Specific reason if rejected, NONE otherwise.
        output_size: Requested destination size as (width, height).
        requested_marker_ids: Identities present in the target map.
        matched_marker_ids: Identities used as correspondences.
        missing_marker_ids: Requested identities that were not detected.
    """

    decision: DecisionStatus
    rectified_image: Optional[np.ndarray]
    homography: Optional[np.ndarray]
    rejection_reason: RejectionReason
    output_size: Tuple[int, int]
    requested_marker_ids: List[int] = field(default_factory=list)
    matched_marker_ids: List[int] = field(default_factory=list)
    missing_marker_ids: List[int] = field(default_factory=list)

    def is_pass(self) -> bool:
        """Check if rectification succeeded."""
        return self.decision == DecisionStatus.PASS

    def get_error_message(self) -> str:
        """Get human-readable error message."""
        if self.is_pass():
            return "Page rectified"

        reason_messages = {
            RejectionReason.INSUFFICIENT_CORRESPONDENCE: (
                f"At least 4 target markers are required, "
                f"got {len(self.requested_marker_ids)}"
            ),
            RejectionReason.UNRESOLVED_MARKER: (
                f"Couldn't find marker(s) "
                f"{', '.join(str(i) for i in self.missing_marker_ids)}"
            ),
            RejectionReason.DEGENERATE_GEOMETRY: (
                "Marker positions do not define a perspective transform"
            ),
            RejectionReason.INVALID_SIZE: (
                f"Destination size {self.output_size[0]}x{self.output_size[1]} "
                f"must be positive"
            ),
        }

        return reason_messages.get(
            self.rejection_reason, f"Rejected: {self.rejection_reason.value}"
        )
