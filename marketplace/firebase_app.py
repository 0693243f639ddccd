import logging

import firebase_admin
from firebase_admin import credentials

from .config import FIREBASE_CREDENTIALS_PATH, FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)


def get_firebase_app() -> firebase_admin.App:
    """Initialize Firebase Admin SDK (only once) and return the default app"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {"projectId": FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None
    if FIREBASE_CREDENTIALS_PATH:
        cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
        logger.info("Firebase Admin initialized with service account file")
        return firebase_admin.initialize_app(cred, options)

    try:
        # Application Default Credentials (GCP runtime or gcloud login)
        cred = credentials.ApplicationDefault()
        app = firebase_admin.initialize_app(cred, options)
        logger.info("Firebase Admin initialized with default credentials")
        return app
    except Exception:
        # Initialize without credentials (limited functionality)
        logger.warning("⚠️ Firebase Admin initialized with project ID only")
        return firebase_admin.initialize_app(options=options)
