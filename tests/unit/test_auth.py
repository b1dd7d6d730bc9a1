"""Token verification and the auth session."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import jwt
import pytest

from learnplay.auth.jwt import create_access_token, verify_token
from learnplay.auth.session import AuthSession
from learnplay.config import get_settings


class TestVerifyToken:
    def test_round_trip(self):
        token = create_access_token("user-42")
        payload = verify_token(token)
        assert payload["sub"] == "user-42"

    def test_expired(self):
        token = create_access_token("user-42", expires_in=timedelta(seconds=-5))
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "user-42", "exp": 9999999999}, "other-secret", algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_missing_subject(self):
        settings = get_settings()
        token = jwt.encode({"exp": 9999999999}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_issuer_and_audience_enforced(self, monkeypatch):
        monkeypatch.setenv("LP_JWT_ISSUER", "https://id.example.com")
        monkeypatch.setenv("LP_JWT_AUDIENCE", "learnplay")
        get_settings.cache_clear()

        assert verify_token(create_access_token("user-42"))["sub"] == "user-42"

        foreign = jwt.encode(
            {"sub": "user-42", "exp": 9999999999, "iss": "https://id.example.com", "aud": "someone-else"},
            get_settings().jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(foreign)


class TestAuthSession:
    def test_notifies_on_change(self):
        session = AuthSession()
        listener = MagicMock()
        session.subscribe(listener)

        session.set_user("user-1")
        session.set_user("user-1")
        session.sign_out()

        assert [c.args for c in listener.call_args_list] == [("user-1",), (None,)]
        assert session.user_id is None

    def test_failing_listener_is_contained(self):
        session = AuthSession()
        session.subscribe(MagicMock(side_effect=RuntimeError("boom")))
        healthy = MagicMock()
        session.subscribe(healthy)

        session.set_user("user-1")

        healthy.assert_called_once_with("user-1")

    def test_unsubscribe(self):
        session = AuthSession("user-1")
        listener = MagicMock()
        unsubscribe = session.subscribe(listener)
        unsubscribe()

        session.sign_out()

        listener.assert_not_called()
