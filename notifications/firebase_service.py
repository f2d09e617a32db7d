# notifications/firebase_service.py
import logging
from typing import List, Optional, Dict, Any

import firebase_admin
from firebase_admin import credentials, exceptions, messaging
from django.conf import settings
from django.db import models
from django.utils import timezone

from .models import DeviceToken

logger = logging.getLogger('firebase_notifications')

INVALID_TOKEN_ERRORS = ('UNREGISTERED', 'INVALID_ARGUMENT')


class FirebaseNotificationService:
    """
    Firebase push notification service
    """

    _app = None
    _initialized = False

    @classmethod
    def initialize(cls):
        """Initialise the Firebase Admin SDK once per process"""
        if cls._initialized:
            return True

        if not settings.FIREBASE_NOTIFICATIONS.get('ENABLED', True):
            return False

        if not settings.FIREBASE_CREDENTIALS_PATH.exists():
            logger.warning(f"Firebase credentials file not found: {settings.FIREBASE_CREDENTIALS_PATH}")
            return False

        try:
            cred = credentials.Certificate(str(settings.FIREBASE_CREDENTIALS_PATH))
            cls._app = firebase_admin.initialize_app(cred, {
                'projectId': settings.FIREBASE_PROJECT_ID,
            })
        except (ValueError, IOError) as e:
            logger.error(f"Failed to initialize Firebase: {str(e)}")
            return False

        cls._initialized = True
        logger.info("Firebase Admin SDK initialized successfully")
        return True

    @classmethod
    def is_available(cls):
        if not cls._initialized:
            return cls.initialize()
        return cls._initialized

    @classmethod
    def _build_message(cls, token: str, title: str, body: str, data: Optional[Dict[str, str]] = None):
        sound = settings.FIREBASE_NOTIFICATIONS.get('DEFAULT_SOUND', 'default')
        return messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            # FCM only accepts string values
            data={key: str(value) for key, value in (data or {}).items()},
            token=token,
            android=messaging.AndroidConfig(
                priority=settings.FIREBASE_NOTIFICATIONS.get('DEFAULT_PRIORITY', 'high'),
                notification=messaging.AndroidNotification(
                    sound=sound,
                    channel_id='default_channel'
                )
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(sound=sound, badge=1)
                )
            ),
        )

    @staticmethod
    def _error_code(exception):
        error_message = str(exception)
        lowered = error_message.lower()
        if 'not-found' in lowered or 'unregistered' in lowered:
            return 'UNREGISTERED'
        if 'invalid-argument' in lowered:
            return 'INVALID_ARGUMENT'
        return error_message

    @classmethod
    def send_to_multiple_tokens(cls, tokens: List[str], title: str, body: str,
                                data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Send one notification to several devices
        """
        if not cls.is_available():
            return {'success': False, 'error': 'Firebase not available'}

        if not tokens:
            return {'success': True, 'successful_tokens': [], 'failed_tokens': []}

        messages = [cls._build_message(token, title, body, data) for token in tokens]

        try:
            response = messaging.send_each(messages)
        except exceptions.FirebaseError as e:
            logger.error(f"Failed to send batch notification: {str(e)}")
            return {'success': False, 'error': str(e)}

        successful_tokens = []
        failed_tokens = []
        for token, result in zip(tokens, response.responses):
            if result.success:
                successful_tokens.append(token)
            else:
                failed_tokens.append({
                    'token': token,
                    'error': cls._error_code(result.exception) if result.exception else 'Unknown error'
                })

        logger.info(f"Batch sent: {response.success_count}/{len(tokens)} successful")

        return {
            'success': True,
            'success_count': response.success_count,
            'failure_count': response.failure_count,
            'successful_tokens': successful_tokens,
            'failed_tokens': failed_tokens
        }

    @classmethod
    def send_to_user(cls, user, title: str, body: str, data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Send to every active device of the user
        """
        tokens = list(DeviceToken.get_user_active_tokens(user))

        if not tokens:
            logger.info(f"No active tokens found for user {user.id}")
            return {'success': True, 'message': 'No active devices'}

        result = cls.send_to_multiple_tokens(tokens, title, body, data)

        if result['success'] and result.get('successful_tokens'):
            DeviceToken.objects.filter(
                token__in=result['successful_tokens']
            ).update(
                total_notifications_sent=models.F('total_notifications_sent') + 1,
                last_notification_sent=timezone.now()
            )

        if result['success'] and result.get('failed_tokens'):
            invalid_tokens = [
                ft['token'] for ft in result['failed_tokens']
                if ft.get('error') in INVALID_TOKEN_ERRORS
            ]
            if invalid_tokens:
                DeviceToken.objects.filter(token__in=invalid_tokens).update(is_active=False)
                logger.info(f"Deactivated {len(invalid_tokens)} invalid tokens")

        return result


firebase_service = FirebaseNotificationService
