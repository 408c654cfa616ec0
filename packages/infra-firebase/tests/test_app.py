"""Tests for Firebase app initialization."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from invigil.infra.firebase.app import initialize_firebase_app
from invigil.infra.firebase.settings import FirebaseSettings

_MODULE = "invigil.infra.firebase.app"


def _settings(**overrides: str) -> FirebaseSettings:
    return FirebaseSettings(_env_file=None, **overrides)  # type: ignore[call-arg]


@pytest.mark.unit
class TestInitializeFirebaseApp:
    def test_reuses_existing_app(self) -> None:
        existing = MagicMock()
        with (
            patch(f"{_MODULE}.firebase_admin.get_app", return_value=existing) as get_app,
            patch(f"{_MODULE}.firebase_admin.initialize_app") as init_app,
        ):
            app = initialize_firebase_app(_settings(credentials_file="/etc/sa.json"))

        assert app is existing
        get_app.assert_called_once_with("invigil")
        init_app.assert_not_called()

    def test_creates_named_app(self) -> None:
        created = MagicMock()
        with (
            patch(f"{_MODULE}.firebase_admin.get_app", side_effect=ValueError("no app")),
            patch(f"{_MODULE}.credentials.Certificate") as certificate,
            patch(f"{_MODULE}.firebase_admin.initialize_app", return_value=created) as init_app,
        ):
            app = initialize_firebase_app(
                _settings(credentials_file="/etc/sa.json", project_id="lms", app_name="lms-app")
            )

        assert app is created
        certificate.assert_called_once_with("/etc/sa.json")
        init_app.assert_called_once_with(
            certificate.return_value, {"projectId": "lms"}, name="lms-app"
        )

    def test_missing_credentials(self) -> None:
        with (
            patch(f"{_MODULE}.firebase_admin.get_app", side_effect=ValueError("no app")),
            patch(f"{_MODULE}.firebase_admin.initialize_app") as init_app,
            pytest.raises(ValueError, match="FIREBASE_CREDENTIALS_FILE"),
        ):
            initialize_firebase_app(_settings())

        init_app.assert_not_called()
