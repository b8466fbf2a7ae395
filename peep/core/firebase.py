import os

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from peep.utils.logger import safe_print


class PushDeliveryError(Exception):
    pass


class FirebaseService:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(FirebaseService, cls).__new__(cls)
            cls._instance.app = None
        return cls._instance

    def _initialize_firebase(self):
        """Initialize Firebase Admin SDK on first use"""
        if self.app is not None:
            return self.app
        try:
            self.app = firebase_admin.get_app()
            return self.app
        except ValueError:
            pass

        private_key = os.getenv("FIREBASE_PRIVATE_KEY")
        if private_key:
            # Service account credentials from environment variables
            firebase_config = {
                "type": "service_account",
                "project_id": os.getenv("FIREBASE_PROJECT_ID"),
                "private_key_id": os.getenv("FIREBASE_PRIVATE_KEY_ID"),
                "private_key": private_key.replace('\\n', '\n'),
                "client_email": os.getenv("FIREBASE_CLIENT_EMAIL"),
                "client_id": os.getenv("FIREBASE_CLIENT_ID"),
                "token_uri": os.getenv("FIREBASE_TOKEN_URI", "https://oauth2.googleapis.com/token"),
            }
            firebase_config = {k: v for k, v in firebase_config.items() if v is not None}
            self.app = firebase_admin.initialize_app(credentials.Certificate(firebase_config))
        else:
            # Application default credentials (GCP runtime or GOOGLE_APPLICATION_CREDENTIALS)
            self.app = firebase_admin.initialize_app()
        safe_print("Firebase initialized")
        return self.app

    def send_push_notification(self, token: str, title: str, body: str, data: dict = None) -> str:
        """Send push notification via FCM; returns the message id"""
        self._initialize_firebase()
        message = messaging.Message(
            notification=messaging.Notification(
                title=title,
                body=body,
            ),
            android=messaging.AndroidConfig(
                notification=messaging.AndroidNotification(sound="default"),
            ),
            token=token,
            # FCM data values must be strings
            data={k: str(v) for k, v in (data or {}).items()},
        )
        try:
            return messaging.send(message)
        except (exceptions.FirebaseError, ValueError) as e:
            raise PushDeliveryError(f"Failed to send notification: {str(e)}")

# Create a global instance
firebase_service = FirebaseService()
