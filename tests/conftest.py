"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import pytest

# Top-left corners of the synthetic page markers (id -> (x, y))
MARKER_ORIGINS = {
    0: (50, 50),  # Top-left
    1: (670, 50),  # Top-right
    2: (670, 470),  # Bottom-right
    3: (50, 470),  # Bottom-left
}
ALERT_ORIGIN = (360, 50)  # Left page alert marker (id 8)
RIGHT_ALERT_ORIGIN = (360, 470)  # Right page alert marker (id 9)
MARKER_SIZE = 80


class FakeMarkerIdentifier:
    """
    Identifier that knows where the synthetic markers were drawn.

    A quadrilateral is identified as the marker whose square contains the
    quadrilateral's centroid; its canonical corners are the drawn square's
    corners starting at the top-left.
    """

    def __init__(self, squares):
        import numpy as np

        self.squares = {
            marker_id: np.array(corners, dtype=np.float32)
            for marker_id, corners in squares.items()
        }
        self.calls = []

    def identify(self, gray, quad):
        from src.page_rectification.types import MarkerIdentification

        self.calls.append(quad.copy())
        cx, cy = quad.mean(axis=0)

        for marker_id, corners in self.squares.items():
            x_min, y_min = corners.min(axis=0)
            x_max, y_max = corners.max(axis=0)
            if x_min <= cx <= x_max and y_min <= cy <= y_max:
                return MarkerIdentification(marker_id=marker_id, corners=corners)

        return None


def _square_corners(origin, size=MARKER_SIZE):
    x, y = origin
    last = size - 1
    return [(x, y), (x + last, y), (x + last, y + last), (x, y + last)]


def _draw_page(marker_origins):
    import cv2
    import numpy as np

    # White page
    image = np.ones((600, 800, 3), dtype=np.uint8) * 255

    for x, y in marker_origins:
        cv2.rectangle(
            image, (x, y), (x + MARKER_SIZE - 1, y + MARKER_SIZE - 1), (0, 0, 0), -1
        )

    # Non-marker artifacts: a round blob and some text
    cv2.circle(image, (400, 300), 40, (0, 0, 0), -1)
    cv2.putText(
        image, "Chapter 1", (250, 420), cv2.FONT_HERSHEY_SIMPLEX, 1.2, (30, 30, 30), 2
    )

    return image


@pytest.fixture
def blank_page():
    """Fixture providing an image without any marker candidates."""
    import numpy as np

    return np.ones((600, 800, 3), dtype=np.uint8) * 255


@pytest.fixture
def marker_page():
    """Fixture providing a page with markers 0-3 and the left page alert marker."""
    squares = {i: _square_corners(origin) for i, origin in MARKER_ORIGINS.items()}
    squares[8] = _square_corners(ALERT_ORIGIN)

    image = _draw_page(list(MARKER_ORIGINS.values()) + [ALERT_ORIGIN])
    return image, FakeMarkerIdentifier(squares)


@pytest.fixture
def page_targets():
    """Pixel targets that move every marker origin up and left by 50px."""
    return {i: (x - 50, y - 50) for i, (x, y) in MARKER_ORIGINS.items()}


@pytest.fixture
def two_alert_page():
    """Fixture providing a page with markers 0-3 and both alert markers."""
    squares = {i: _square_corners(origin) for i, origin in MARKER_ORIGINS.items()}
    squares[8] = _square_corners(ALERT_ORIGIN)
    squares[9] = _square_corners(RIGHT_ALERT_ORIGIN)

    image = _draw_page(
        list(MARKER_ORIGINS.values()) + [ALERT_ORIGIN, RIGHT_ALERT_ORIGIN]
    )
    return image, FakeMarkerIdentifier(squares)
