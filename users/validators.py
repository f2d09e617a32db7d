# ===============================================
# users/validators.py
# Upload validation for worker documents
# ===============================================

import os

import magic
from PIL import Image, UnidentifiedImageError
from django.conf import settings
from django.core.exceptions import ValidationError

# sniffed MIME type -> extensions it may arrive with
DOCUMENT_MIME_TYPES = {
    'application/pdf': ['.pdf'],
    'image/jpeg': ['.jpg', '.jpeg'],
    'image/png': ['.png'],
}


def clean_file_name(filename):
    """Strip characters that are unsafe in stored file names"""
    forbidden_chars = ['<', '>', ':', '"', '|', '?', '*', '\\', '/']

    clean_name = filename
    for char in forbidden_chars:
        clean_name = clean_name.replace(char, '_')

    if len(clean_name) > 100:
        name, ext = os.path.splitext(clean_name)
        clean_name = name[:90] + ext

    return clean_name


def validate_image_content(uploaded_file):
    """The file must decode as an image"""
    try:
        image = Image.open(uploaded_file)
        image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationError(f"File is not a valid image: {e}")
    finally:
        uploaded_file.seek(0)
    return True


def validate_document_file(uploaded_file):
    """
    Worker documents: JPEG/PNG images or PDF, up to MAX_DOCUMENT_SIZE.
    The extension must match the actual content.
    """
    if uploaded_file.size > settings.MAX_DOCUMENT_SIZE:
        raise ValidationError(
            f"File is too large. Maximum size is {settings.MAX_DOCUMENT_SIZE // (1024 * 1024)}MB"
        )

    extension = os.path.splitext(uploaded_file.name)[1].lower()
    if extension not in settings.ALLOWED_DOCUMENT_EXTENSIONS:
        raise ValidationError(
            f"Unsupported file type. Allowed: {', '.join(settings.ALLOWED_DOCUMENT_EXTENSIONS)}"
        )

    uploaded_file.seek(0)
    file_mime = magic.from_buffer(uploaded_file.read(2048), mime=True)
    uploaded_file.seek(0)

    if extension not in DOCUMENT_MIME_TYPES.get(file_mime, []):
        raise ValidationError(f"File content ({file_mime}) does not match the {extension} extension")

    if file_mime != 'application/pdf':
        validate_image_content(uploaded_file)

    return True
