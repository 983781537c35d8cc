# Overview: Pytest coverage for password handling and bearer-token sessions.

"""
Authentication Tests

SECURITY:
- Passwords are bcrypt hashes; weak passwords never reach the database
- Tokens are stored as SHA-256 hashes only
- Idle, expired and deactivated sessions stop validating
"""

from datetime import timedelta

import pytest

from retailpos.errors import ConflictError
from retailpos.models import SessionToken
from retailpos.services import auth_service, session_service
from retailpos.services.auth_service import PasswordValidationError
from retailpos.time_utils import utcnow


class TestPasswords:

    @pytest.mark.parametrize("password", [
        "Sh0rt!",
        "alllowercase1!",
        "ALLUPPERCASE1!",
        "NoDigitsHere!",
        "NoSpecial123",
    ])
    def test_weak_passwords_rejected(self, db_session, password):
        with pytest.raises(PasswordValidationError):
            auth_service.create_user("weak", password)

    def test_hash_verifies(self, db_session):
        hashed = auth_service.hash_password("Password123!")
        assert hashed != "Password123!"
        assert auth_service.verify_password("Password123!", hashed)
        assert not auth_service.verify_password("Password123?", hashed)

    def test_malformed_hash_is_a_mismatch(self, db_session):
        assert auth_service.verify_password("Password123!", "not-a-bcrypt-hash") is False

    def test_duplicate_username(self, db_session, user_a):
        with pytest.raises(ConflictError):
            auth_service.create_user("user_a", "Password123!")

    def test_authenticate_sets_last_login(self, db_session, user_a):
        user = auth_service.authenticate("user_a", "Password123!")
        assert user.id == user_a.id
        assert user.last_login_at is not None

    def test_inactive_user_cannot_authenticate(self, db_session, user_b):
        user_b.is_active = False
        db_session.commit()
        assert auth_service.authenticate("user_b", "Password123!") is None


class TestSessions:

    def test_token_stored_hashed(self, db_session, user_a):
        session, token = session_service.create_session(user_a.id)
        assert session.token_hash == session_service.hash_token(token)
        assert db_session.query(SessionToken).filter_by(token_hash=token).count() == 0
        assert session_service.validate_session(token).id == user_a.id

    def test_idle_session_is_revoked(self, db_session, user_a):
        session, token = session_service.create_session(user_a.id)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert session_service.validate_session(token) is None
        db_session.refresh(session)
        assert session.is_revoked is True
        assert session.revoked_reason == "Idle timeout"

    def test_expired_session(self, db_session, user_a):
        session, token = session_service.create_session(user_a.id)
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()
        assert session_service.validate_session(token) is None

    def test_deactivated_user_session_is_revoked(self, db_session, user_b):
        session, token = session_service.create_session(user_b.id)
        user_b.is_active = False
        db_session.commit()

        assert session_service.validate_session(token) is None
        db_session.refresh(session)
        assert session.revoked_reason == "User account deactivated"

    def test_revoke(self, db_session, user_a):
        _, token = session_service.create_session(user_a.id)
        assert session_service.revoke_session(token) is True
        assert session_service.revoke_session(token) is False
        assert session_service.validate_session(token) is None

    def test_missing_user(self, db_session):
        with pytest.raises(ValueError):
            session_service.create_session(12345)
