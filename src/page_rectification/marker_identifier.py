"""
Marker identification interface.

Detection only finds convex quadrilaterals; deciding which fiducial (if any)
a quadrilateral shows is delegated to a MarkerIdentifier so different marker
symbologies can be plugged in without touching detection or rectification.
"""

from typing import Optional, Protocol, runtime_checkable

import numpy as np

from src.page_rectification.types import MarkerIdentification


@runtime_checkable
class MarkerIdentifier(Protocol):
    """
    Capability interface for decoding fiducial markers.

    Implementations receive the grayscale page and a quadrilateral whose
    4 vertices are in contour order (not canonical). They return a
    MarkerIdentification with the corners reordered canonically when the
    patch decodes as a valid marker, and None (or an identification with
    marker_id == NO_MARKER) otherwise.
    """

    def identify(
        self, gray: np.ndarray, quad: np.ndarray
    ) -> Optional[MarkerIdentification]:
        ...
