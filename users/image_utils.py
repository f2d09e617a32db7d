# ===============================================
# users/image_utils.py
# Profile image processing
# ===============================================

import logging
import os
import uuid
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError
from django.core.files.base import ContentFile

logger = logging.getLogger('localworker')


class ImageProcessor:
    """Profile image pipeline: validate, square-crop, resize, compress"""

    MAX_SIZE_MB = 5
    ALLOWED_FORMATS = ['JPEG', 'PNG', 'JPG']
    MIN_DIMENSION = 100
    MAX_DIMENSION = 4000
    OUTPUT_SIZE = (800, 800)
    QUALITY = 85

    @classmethod
    def process_profile_image(cls, uploaded_file, user_id):
        """
        Returns a ContentFile holding a square 800x800 JPEG.
        Raises ValueError when the upload is not an acceptable image.
        """
        cls._validate_image(uploaded_file)

        try:
            image = Image.open(uploaded_file)
            image = ImageOps.exif_transpose(image)
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"Corrupted or unreadable image: {e}")

        # flatten transparency on white
        if image.mode in ('RGBA', 'LA', 'P'):
            background = Image.new('RGB', image.size, (255, 255, 255))
            if image.mode == 'P':
                image = image.convert('RGBA')
            background.paste(image, mask=image.split()[-1] if image.mode in ('RGBA', 'LA') else None)
            image = background
        elif image.mode != 'RGB':
            image = image.convert('RGB')

        image = cls._crop_square(image)
        return cls._resize_and_compress(image, cls.OUTPUT_SIZE, user_id)

    @classmethod
    def _validate_image(cls, uploaded_file):
        if uploaded_file.size > cls.MAX_SIZE_MB * 1024 * 1024:
            raise ValueError(f"Image is too large. Maximum size is {cls.MAX_SIZE_MB}MB")

        try:
            image = Image.open(uploaded_file)
            image_format = image.format
            width, height = image.size
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"Corrupted or unreadable image: {e}")
        finally:
            uploaded_file.seek(0)

        if image_format not in cls.ALLOWED_FORMATS:
            raise ValueError(f"Unsupported image type. Allowed: {', '.join(cls.ALLOWED_FORMATS)}")

        if width < cls.MIN_DIMENSION or height < cls.MIN_DIMENSION:
            raise ValueError(f"Image is too small. Minimum is {cls.MIN_DIMENSION}x{cls.MIN_DIMENSION} pixels")

        if width > cls.MAX_DIMENSION or height > cls.MAX_DIMENSION:
            raise ValueError(f"Image is too large. Maximum is {cls.MAX_DIMENSION}x{cls.MAX_DIMENSION} pixels")

    @classmethod
    def _crop_square(cls, image):
        """Center crop to a square"""
        width, height = image.size
        min_dimension = min(width, height)
        left = (width - min_dimension) // 2
        top = (height - min_dimension) // 2
        return image.crop((left, top, left + min_dimension, top + min_dimension))

    @classmethod
    def _resize_and_compress(cls, image, target_size, user_id):
        image = image.resize(target_size, Image.Resampling.LANCZOS)

        output = BytesIO()
        image.save(output, format='JPEG', quality=cls.QUALITY, optimize=True)
        output.seek(0)

        filename = f"profile_{user_id}_{uuid.uuid4().hex[:8]}.jpg"
        return ContentFile(output.getvalue(), name=filename)

    @classmethod
    def delete_old_image(cls, user):
        """Remove the previous avatar file from disk"""
        if not user.profile_image:
            return
        try:
            path = user.profile_image.path
        except NotImplementedError:
            # storage without local paths
            return
        if os.path.isfile(path):
            try:
                os.remove(path)
            except OSError as e:
                logger.warning(f"Could not delete old avatar {path}: {e}")
