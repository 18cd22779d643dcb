"""Camera image classification and decoding."""

import random
from typing import Optional, Tuple

import cv2
import numpy as np

from .interfaces import ImageServiceInterface, NDArray
from ..config.defaults import CAMERA_SETTINGS
from ..exceptions import ImageLoadError
from ..logging_config import get_logger

logger = get_logger("image_service")


class FakeImageService(ImageServiceInterface):
    """Stand-in classifier that guesses whether a frame contains a cat.

    Each call is an independent coin flip; the only state kept between
    calls is the random generator, which can be seeded for repeatable runs.
    """

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def classify(self, image: NDArray, confidence_threshold: float) -> bool:
        verdict = self._random.random() < 0.5
        logger.debug(f"Classified frame {getattr(image, 'shape', None)} "
                     f"at threshold {confidence_threshold}: cat={verdict}")
        return verdict


def decode_image(data: bytes) -> NDArray:
    """Decode encoded image bytes (JPEG, PNG, ...) into a BGR frame."""
    if not data:
        raise ImageLoadError("No image data supplied")

    buffer = np.frombuffer(data, dtype=np.uint8)
    frame = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if frame is None:
        raise ImageLoadError("Image data could not be decoded")
    return frame


def load_image(path: str) -> NDArray:
    """Load an image file from disk into a BGR frame."""
    frame = cv2.imread(path, cv2.IMREAD_COLOR)
    if frame is None:
        raise ImageLoadError(f"Unable to read image file: {path}")
    logger.info(f"Loaded camera image {path} with shape {frame.shape}")
    return frame


def blank_frame(resolution: Tuple[int, int] = CAMERA_SETTINGS["resolution"]) -> NDArray:
    """Black frame used when the camera has not supplied an image yet."""
    width, height = resolution
    return np.zeros((height, width, CAMERA_SETTINGS["channels"]), dtype=np.uint8)
