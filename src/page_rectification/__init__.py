"""
Fiducial-marker page rectification.

Flattens a photographed document page into a geometrically corrected
raster using printed fiducial markers as reference points.

Pipeline stages:
1. Marker detection (adaptive threshold, convex quadrilateral filter,
   pluggable marker identification)
2. Correspondence matching by marker identity
3. Homography estimation
4. Perspective warp into the destination raster
"""

from src.page_rectification.config_loader import (
    PageRectificationConfig,
    get_default_config,
    load_config,
)
from src.page_rectification.homography import (
    estimate_homography,
    match_correspondences,
    rectify,
    warp_to_size,
)
from src.page_rectification.layout import (
    convert_layout,
    markers_to_pixels,
    page_size_px,
)
from src.page_rectification.marker_detector import detect_markers
from src.page_rectification.marker_identifier import MarkerIdentifier
from src.page_rectification.page import PageImage, rectify_page
from src.page_rectification.types import (
    NO_MARKER,
    DecisionStatus,
    DegenerateGeometryError,
    InsufficientCorrespondenceError,
    LayoutSpec,
    MarkerDetectionResult,
    MarkerIdentification,
    RectificationError,
    RectificationResult,
    RejectionReason,
    UnresolvedMarkerError,
)

__all__ = [
    "PageImage",
    "rectify_page",
    "detect_markers",
    "rectify",
    "match_correspondences",
    "estimate_homography",
    "warp_to_size",
    "convert_layout",
    "markers_to_pixels",
    "page_size_px",
    "load_config",
    "get_default_config",
    "PageRectificationConfig",
    "MarkerIdentifier",
    "MarkerIdentification",
    "NO_MARKER",
    "LayoutSpec",
    "MarkerDetectionResult",
    "RectificationResult",
    "DecisionStatus",
    "RejectionReason",
    "RectificationError",
    "InsufficientCorrespondenceError",
    "UnresolvedMarkerError",
    "DegenerateGeometryError",
]
