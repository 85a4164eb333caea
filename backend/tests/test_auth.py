"""
Tests for registration, sign-in, sign-out and password reset
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.users import User
from models.log import Log
from models.password_reset import PasswordResetToken
from utils.hashing import get_password_hash, verify_password


class TestRegistration:

    def test_register_success(self, client, db_session):
        response = client.post("/register", json={
            "username": "carol", "email": "Carol@Example.com", "password": "hunter22",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "REGISTERED"
        assert data["account"]["username"] == "carol"
        assert data["account"]["email"] == "carol@example.com"
        assert "password_hash" not in data["account"]

        user = db_session.query(User).filter(User.username == "carol").one()
        assert user.id == data["account"]["id"]
        assert verify_password("hunter22", user.password_hash)

    @pytest.mark.parametrize("payload, message", [
        ({"username": "  ", "email": "x@example.com", "password": "secret123"}, "Please enter a username"),
        ({"username": "x", "email": "not-an-email", "password": "secret123"}, "Please enter a valid email address"),
        ({"username": "x", "email": "", "password": "secret123"}, "Please enter a valid email address"),
        ({"username": "x", "email": "x@example.com", "password": "12345"}, "Password must be at least 6 characters"),
    ])
    def test_register_validation(self, client, db_session, payload, message):
        response = client.post("/register", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"] == message
        assert db_session.query(User).count() == 0

    def test_register_duplicate_username(self, client, db_session, test_user):
        response = client.post("/register", json={
            "username": test_user.username, "email": "other@example.com", "password": "secret123",
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "Username already exists."
        assert db_session.query(User).count() == 1

        failure = db_session.query(Log).filter(Log.action == "REGISTER").one()
        assert failure.status == "FAIL"
        assert failure.meta["state"] == "REGISTRATION_FAILED"

    def test_register_duplicate_email(self, client, test_user):
        response = client.post("/register", json={
            "username": "someone-else", "email": test_user.email.upper(), "password": "secret123",
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_register_loses_race_on_commit(self, client, db_session):
        """A twin row lands between the existence check and the commit"""
        def insert_twin(session, flush_context, instances):
            pending = [obj for obj in session.new if isinstance(obj, User) and obj.username == "dave"]
            if pending:
                session.connection().exec_driver_sql(
                    "INSERT INTO users (id, username, email, password_hash) VALUES (?, ?, ?, ?)",
                    ("f" * 32, "dave", "dave.twin@example.com", "x"),
                )

        event.listen(Session, "before_flush", insert_twin)
        try:
            response = client.post("/register", json={
                "username": "dave", "email": "dave@example.com", "password": "secret123",
            })
        finally:
            event.remove(Session, "before_flush", insert_twin)

        assert response.status_code == 400
        assert response.json()["detail"] == "Username already exists."

        failure = db_session.query(Log).filter(Log.action == "REGISTER").one()
        assert failure.status == "FAIL"
        assert failure.user_id is None
        assert failure.meta["state"] == "REGISTRATION_FAILED"
        assert failure.meta["username"] == "dave"
        assert db_session.query(User).filter(User.username == "dave").count() == 0

    def test_username_unique_at_database_level(self, db_session, test_user):
        db_session.add(User(username=test_user.username, email="twin@example.com",
                            password_hash=get_password_hash("secret123")))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestLogin:

    def test_login_success(self, client, test_user):
        response = client.post("/login", json={"username": "alice", "password": "secret123"})

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "AUTHENTICATED"
        assert data["token_type"] == "bearer"
        assert data["username"] == "alice"

        me = client.get("/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200
        assert me.json() == {"id": test_user.id, "username": "alice", "email": "alice@example.com"}

    def test_login_unknown_username(self, client):
        response = client.post("/login", json={"username": "ghost", "password": "secret123"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Username not found."

    def test_login_wrong_password(self, client, test_user):
        response = client.post("/login", json={"username": "alice", "password": "wrong-one"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect password. Please try again."

    @pytest.mark.parametrize("payload, message", [
        ({"username": "", "password": "secret123"}, "Please enter your username"),
        ({"username": "alice", "password": ""}, "Please enter your password"),
    ])
    def test_login_blank_fields(self, client, payload, message):
        response = client.post("/login", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"] == message

    def test_me_requires_token(self, client):
        assert client.get("/me").status_code in (401, 403)

    def test_me_rejects_garbage_token(self, client):
        response = client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestLogout:

    def test_logout_revokes_token(self, client, auth_headers):
        assert client.get("/me", headers=auth_headers).status_code == 200

        response = client.post("/logout", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"state": "IDLE"}

        assert client.get("/me", headers=auth_headers).status_code == 401
        assert client.get("/inventory", headers=auth_headers).status_code == 401

    def test_other_sessions_survive_logout(self, client, test_user, auth_headers):
        second = client.post("/login", json={"username": "alice", "password": "secret123"}).json()
        client.post("/logout", headers=auth_headers)

        response = client.get("/me", headers={"Authorization": f"Bearer {second['access_token']}"})
        assert response.status_code == 200


class TestPasswordReset:

    def test_reset_unknown_email(self, client):
        response = client.post("/password-reset", json={"email": "nobody@example.com"})

        assert response.status_code == 404
        assert response.json()["detail"] == "No user found with this email."

    def test_reset_blank_email(self, client):
        response = client.post("/password-reset", json={"email": " "})

        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter your email address"

    def test_reset_flow(self, client, db_session, test_user):
        response = client.post("/password-reset", json={"email": "alice@example.com"})
        assert response.status_code == 200
        assert response.json() == {"message": "Password reset email sent."}

        reset = db_session.query(PasswordResetToken).filter(PasswordResetToken.user_id == test_user.id).one()

        confirm = client.post("/password-reset/confirm", json={"token": reset.token, "new_password": "brand-new"})
        assert confirm.status_code == 200

        assert client.post("/login", json={"username": "alice", "password": "secret123"}).status_code == 401
        assert client.post("/login", json={"username": "alice", "password": "brand-new"}).status_code == 200

        # Single use
        again = client.post("/password-reset/confirm", json={"token": reset.token, "new_password": "another1"})
        assert again.status_code == 400
        assert again.json()["detail"] == "Invalid or expired reset token"

    def test_reset_expired_token(self, client, db_session, test_user):
        db_session.add(PasswordResetToken(token="stale", user_id=test_user.id,
                                          expires_at=datetime.utcnow() - timedelta(minutes=1)))
        db_session.commit()

        response = client.post("/password-reset/confirm", json={"token": "stale", "new_password": "brand-new"})
        assert response.status_code == 400

    def test_reset_short_password(self, client, db_session, test_user):
        db_session.add(PasswordResetToken(token="fresh", user_id=test_user.id,
                                          expires_at=datetime.utcnow() + timedelta(minutes=5)))
        db_session.commit()

        response = client.post("/password-reset/confirm", json={"token": "fresh", "new_password": "abc"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Password must be at least 6 characters"
