"""Tests for sign-up, sign-in, sessions and the suspension kill switch over HTTP.

Covers:
- Sign-up creates a pending member profile; duplicates rejected
- Sign-in / sign-out / bad credentials
- /api/auth/me exposes claim view and profile view separately
- Suspended member: session terminated, one-shot notice, guest afterwards
- Rejected member cannot keep a session
- Password reset never reveals whether an account exists
"""
from clubhouse.models.principal import AuthSession, PasswordResetRequest
from clubhouse.models.profile import ProfileStatus
from tests.conftest import PASSWORD, auth, create_admin, create_member, edit_profile, login, signup


class TestSignup:
    def test_signup_creates_pending_member(self, client):
        profile = signup(client, email="Ana@Example.com ", first_name="Ana", last_name="Lopez", bio="Hi")
        assert profile["status"] == "pending"
        assert profile["role"] == "member"
        assert profile["suspended"] is False
        assert profile["email"] == "ana@example.com"
        assert profile["name"] == "Ana Lopez"
        assert profile["stats"] == {"posts": 0, "likes": 0, "events": 0, "connections": 0}

    def test_duplicate_email_rejected(self, client):
        signup(client, email="dup@example.com")
        resp = client.post("/api/auth/signup", json={"email": "DUP@example.com", "password": PASSWORD})
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "invalid-argument"

    def test_short_password_rejected(self, client):
        resp = client.post("/api/auth/signup", json={"email": "x@example.com", "password": "abc"})
        assert resp.status_code == 400


class TestLogin:
    def test_login_and_me(self, client):
        profile = signup(client, email="me@example.com")
        token = login(client, "me@example.com")
        resp = client.get("/api/auth/me", headers=auth(token))
        assert resp.status_code == 200
        data = resp.json()
        assert data["state"] == "pending"
        assert data["principal_id"] == profile["principal_id"]
        assert data["profile_role"] == "member"
        assert data["claim_admin"] is False
        assert data["can_interact"] is False

    def test_login_touches_last_login(self, client):
        signup(client, email="touch@example.com")
        token = login(client, "touch@example.com")
        me = client.get("/api/profiles/me", headers=auth(token)).json()
        assert me["last_login_at"] is not None

    def test_bad_password(self, client):
        signup(client, email="bad@example.com")
        resp = client.post("/api/auth/login", json={"email": "bad@example.com", "password": "wrong-pw"})
        assert resp.status_code == 401
        assert resp.json()["detail"]["code"] == "unauthenticated"

    def test_anonymous_me_is_guest(self, client):
        data = client.get("/api/auth/me").json()
        assert data["state"] == "guest"
        assert data["principal_id"] is None

    def test_garbage_token_is_guest(self, client):
        data = client.get("/api/auth/me", headers=auth("not-a-token")).json()
        assert data["state"] == "guest"

    def test_logout_revokes_session(self, client):
        signup(client, email="out@example.com")
        token = login(client, "out@example.com")
        assert client.post("/api/auth/logout", headers=auth(token)).status_code == 204
        assert client.get("/api/auth/me", headers=auth(token)).json()["state"] == "guest"
        # Idempotent
        assert client.post("/api/auth/logout", headers=auth(token)).status_code == 204

    def test_admin_me_shows_both_views(self, client, db):
        admin_id, headers = create_admin(client, db)
        data = client.get("/api/auth/me", headers=headers).json()
        assert data["state"] == "admin"
        assert data["profile_role"] == "admin"
        assert data["claim_admin"] is True


class TestSuspension:
    def test_active_session_terminated_on_suspension(self, client, db):
        principal_id, headers = create_member(client, db)
        headers = {**headers, "X-Client-Id": "browser-1"}
        assert client.get("/api/auth/me", headers=headers).json()["state"] == "approved"

        edit_profile(db, principal_id, suspended=True)

        data = client.get("/api/auth/me", headers=headers).json()
        assert data["state"] == "guest"
        assert data["principal_id"] is None

        # The session token itself was revoked exactly once
        session = db.query(AuthSession).filter(AuthSession.principal_id == principal_id).one()
        assert session.revoked_at is not None

        resp = client.get("/api/profiles/me", headers=headers)
        assert resp.status_code == 401

    def test_notice_is_one_shot(self, client, db):
        principal_id, headers = create_member(client, db)
        edit_profile(db, principal_id, suspended=True)
        client.get("/api/auth/me", headers={**headers, "X-Client-Id": "browser-2"})

        first = client.get("/api/auth/notice", headers={"X-Client-Id": "browser-2"}).json()
        second = client.get("/api/auth/notice", headers={"X-Client-Id": "browser-2"}).json()
        assert "suspended" in first["message"]
        assert second["message"] is None

    def test_suspended_cannot_sign_in(self, client, db):
        profile = signup(client, email="susp@example.com")
        edit_profile(db, profile["principal_id"], status=ProfileStatus.approved, suspended=True)
        resp = client.post("/api/auth/login", json={"email": "susp@example.com", "password": PASSWORD},
                           headers={"X-Client-Id": "browser-3"})
        assert resp.status_code == 403
        assert "suspended" in resp.json()["detail"]["message"]
        notice = client.get("/api/auth/notice", headers={"X-Client-Id": "browser-3"}).json()
        assert notice["message"] is not None
        db.expire_all()
        sessions = db.query(AuthSession).filter(AuthSession.principal_id == profile["principal_id"]).all()
        assert all(s.revoked_at is not None for s in sessions)

    def test_reinstated_member_signs_in_again(self, client, db):
        _, admin_headers = create_admin(client, db)
        principal_id, _ = create_member(client, db, email="back@example.com")
        client.post(f"/api/profiles/{principal_id}/suspension", headers=admin_headers, json={"suspended": True})
        assert client.post("/api/auth/login", json={"email": "back@example.com", "password": PASSWORD}).status_code == 403

        resp = client.post(f"/api/profiles/{principal_id}/suspension", headers=admin_headers, json={"suspended": False})
        assert resp.status_code == 200
        token = login(client, "back@example.com")
        assert client.get("/api/auth/me", headers=auth(token)).json()["state"] == "approved"

    def test_rejected_member_signed_out(self, client, db):
        profile = signup(client, email="rej@example.com")
        edit_profile(db, profile["principal_id"], status=ProfileStatus.rejected)
        resp = client.post("/api/auth/login", json={"email": "rej@example.com", "password": PASSWORD})
        assert resp.status_code == 403
        assert "deactivated" in resp.json()["detail"]["message"]


class TestPasswordReset:
    def test_known_and_unknown_email_same_response(self, client, db):
        signup(client, email="reset@example.com")
        known = client.post("/api/auth/password-reset", json={"email": "reset@example.com"})
        unknown = client.post("/api/auth/password-reset", json={"email": "nobody@example.com"})
        assert known.status_code == unknown.status_code == 202
        assert known.json() == unknown.json()
        rows = db.query(PasswordResetRequest).all()
        assert [r.email for r in rows] == ["reset@example.com"]
