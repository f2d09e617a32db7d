# ===============================================
# users/upload_views.py
# Profile photo upload
# ===============================================

import logging

from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .image_utils import ImageProcessor

logger = logging.getLogger('localworker')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def upload_profile_image(request):
    """
    Upload a profile photo
    POST /api/auth/upload-photo

    Body: FormData
    - photo: image file (JPEG/PNG, max 5MB)
    """
    uploaded_file = request.FILES.get('photo') or request.FILES.get('image')
    if uploaded_file is None:
        return Response({
            'success': False,
            'code': 'NO_IMAGE_PROVIDED',
            'message': 'No image was uploaded'
        }, status=status.HTTP_400_BAD_REQUEST)

    user = request.user

    try:
        processed = ImageProcessor.process_profile_image(uploaded_file, user.id)
    except ValueError as ve:
        return Response({
            'success': False,
            'code': 'IMAGE_PROCESSING_ERROR',
            'message': str(ve)
        }, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        ImageProcessor.delete_old_image(user)
        user.profile_image = processed
        user.save(update_fields=['profile_image', 'updated_at'])

    logger.info(f"Profile image updated for user {user.id}")

    return Response({
        'success': True,
        'message': 'Profile photo uploaded successfully',
        'data': {
            'profile_image_url': request.build_absolute_uri(user.profile_image.url),
        }
    }, status=status.HTTP_200_OK)
