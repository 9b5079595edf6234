"""
    PIL Image Preprocessor module
"""

from PIL import Image, ImageOps, UnidentifiedImageError
import io
import logging
from typing import Optional
from dataclasses import dataclass
from config import setup_logging, MAX_IMAGE_DIMENSION


setup_logging()
logger = logging.getLogger(__name__)

@dataclass
class PreprocessConfig:
    """Configuration for listing photo normalisation"""
    max_dimension: int = MAX_IMAGE_DIMENSION
    jpeg_quality: int = 90
    enable_auto_orient: bool = True


class ListingPhotoPreprocessor:
    """
    Normalise a listing photo before it is sent to a vision model:
    EXIF orientation applied, RGB, longest side bounded, JPEG encoded.
    """

    def __init__(self, config: Optional[PreprocessConfig] = None):
        self.config = config or PreprocessConfig()

    def prepare(self, image_data: bytes) -> bytes:
        """
        Args:
            image_data: Input image as bytes (any format Pillow can read)

        Returns:
            JPEG bytes

        Raises:
            ValueError: empty or undecodable image data
        """
        if not image_data:
            raise ValueError("Empty image data provided")

        try:
            img = Image.open(io.BytesIO(image_data))
            img.load()

        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"Unreadable image data: {e}") from e

        logger.info(f"Processing listing photo: {img.size}, mode: {img.mode}")

        if self.config.enable_auto_orient:
            img = self._auto_orient(img)

        if img.mode != 'RGB':
            img = img.convert('RGB')

        img = self._bound_size(img)

        output = io.BytesIO()
        img.save(output, format='JPEG', quality=self.config.jpeg_quality, optimize=True)
        prepared = output.getvalue()

        logger.info(f"Listing photo prepared. Output size: {len(prepared)} bytes")
        return prepared

    def _auto_orient(self, img: Image.Image) -> Image.Image:
        """Auto-orient image based on EXIF data"""
        try:
            return ImageOps.exif_transpose(img)
        except (ValueError, OSError) as e:
            logger.warning(f"Auto-orientation failed: {e}")
            return img

    def _bound_size(self, img: Image.Image) -> Image.Image:
        """Downscale so the longest side fits max_dimension"""
        width, height = img.size
        longest = max(width, height)

        if longest <= self.config.max_dimension:
            return img

        limit = self.config.max_dimension
        if width >= height:
            new_size = (limit, max(1, round(height * limit / width)))
        else:
            new_size = (max(1, round(width * limit / height)), limit)

        resized = img.resize(new_size, Image.Resampling.LANCZOS)
        logger.info(f"Resized from {width}x{height} to {new_size[0]}x{new_size[1]}")

        return resized
