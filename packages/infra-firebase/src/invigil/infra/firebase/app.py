"""Firebase Admin app initialization.

The app is created once per process under a configured name and reused on
subsequent calls; nothing is initialized at import time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import firebase_admin
from firebase_admin import credentials

if TYPE_CHECKING:
    from invigil.infra.firebase.settings import FirebaseSettings

logger = logging.getLogger(__name__)


def initialize_firebase_app(settings: FirebaseSettings) -> firebase_admin.App:
    """Return the named Firebase app, creating it on first use.

    Args:
        settings: Firebase configuration.

    Returns:
        The initialized firebase_admin App.

    Raises:
        ValueError: If no credentials are configured or the credentials are
            malformed.
    """
    try:
        return firebase_admin.get_app(settings.app_name)
    except ValueError:
        pass

    cred = credentials.Certificate(settings.credential_source())
    options = {"projectId": settings.project_id} if settings.project_id else None
    app = firebase_admin.initialize_app(cred, options, name=settings.app_name)
    logger.info(
        "firebase_app_initialized",
        extra={"app_name": settings.app_name, "project_id": settings.project_id},
    )
    return app
