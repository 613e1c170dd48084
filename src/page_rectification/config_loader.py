"""
Configuration loader with Pydantic validation for the Page Rectification module.

Loads tuning constants for marker detection and rectification from
config.yaml and validates them.
"""

import logging
from pathlib import Path
from typing import Dict, Literal

import cv2
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

INTERPOLATION_FLAGS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}


class DetectionConfig(BaseModel):
    """Marker detection configuration.

    Attributes:
        adaptive_max_value: Value assigned to foreground pixels.
        adaptive_block_size: Odd neighbourhood size for the local mean.
        adaptive_bias: Constant subtracted from the local mean.
        approx_epsilon: Polygon approximation tolerance in pixels.
        alert_markers: Reserved alert identity -> human-readable name.
    """

    adaptive_max_value: int = Field(default=128, gt=0, le=255)
    adaptive_block_size: int = Field(default=31, gt=1)
    adaptive_bias: float = 8.0
    approx_epsilon: float = Field(default=6.0, gt=0.0)
    alert_markers: Dict[int, str] = Field(
        default_factory=lambda: {8: "left page", 9: "right page"}
    )

    @field_validator("adaptive_block_size")
    @classmethod
    def _validate_block_size(cls, v: int) -> int:
        if v % 2 == 0:
            raise ValueError(f"adaptive_block_size must be odd, got {v}")
        return v


class RectificationConfig(BaseModel):
    """Rectification configuration.

    Attributes:
        min_correspondences: Minimum number of target markers.
        interpolation: Resampling method used by the warp.
        border_value: Fill value for pixels with no source location.
    """

    min_correspondences: int = Field(default=4, ge=4)
    interpolation: Literal["nearest", "linear", "cubic", "area", "lanczos"] = (
        "linear"
    )
    border_value: int = Field(default=0, ge=0, le=255)

    @property
    def interpolation_flag(self) -> int:
        """OpenCV flag for the configured interpolation."""
        return INTERPOLATION_FLAGS[self.interpolation]


class PageRectificationConfig(BaseModel):
    """Complete page rectification configuration.

    Attributes:
        detection: Marker detection settings.
        rectification: Homography and warp settings.
    """

    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    rectification: RectificationConfig = Field(default_factory=RectificationConfig)


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> PageRectificationConfig:
    """
    Load page rectification configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated PageRectificationConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or has wrong value types.

    Example:
        >>> config = load_config()
        >>> print(config.detection.adaptive_block_size)
        31
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading page rectification config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f) or {}

    try:
        config = PageRectificationConfig(**raw_config)
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e

    logger.info("Successfully loaded page rectification configuration")
    return config


def get_default_config() -> PageRectificationConfig:
    """Get default configuration from bundled config.yaml file.

    Returns:
        PageRectificationConfig loaded from src/page_rectification/config.yaml.
    """
    return load_config(DEFAULT_CONFIG_PATH)
