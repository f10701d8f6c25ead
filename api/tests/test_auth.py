"""Tests for authentication endpoints."""
from datetime import timedelta

from app.core.security import create_access_token
from app.core.time import utc_now
from app.models.invitation import UserInvitation
from app.models.user import User, UserStatus


class TestLogin:
    """Test /auth/login endpoint."""

    def test_login_success(self, client, test_user):
        """Test successful login returns token."""
        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "testpass123"}
        )
        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"
        assert data["session_id"]

    def test_login_records_session(self, client, db_session, test_user):
        """Test that login records a session."""
        response = client.post(
            "/auth/login",
            json={"email": "TEST@example.com", "password": "testpass123"}
        )
        assert response.status_code == 200
        db_session.expire_all()
        user = db_session.get(User, test_user.user_id)
        assert user.current_session_id == response.json()["session_id"]
        assert user.last_active_at is not None

    def test_login_wrong_password(self, client, test_user):
        """Test login with wrong password fails."""
        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "wrongpass"}
        )
        assert response.status_code == 401
        assert "Incorrect email or password" in response.json()["detail"]

    def test_login_nonexistent_user(self, client):
        """Test login with nonexistent user."""
        response = client.post(
            "/auth/login",
            json={"email": "nobody@example.com", "password": "anypass"}
        )
        assert response.status_code == 401

    def test_login_invalid_email_format(self, client):
        """Test login with invalid email format."""
        response = client.post(
            "/auth/login",
            json={"email": "not-an-email", "password": "anypass"}
        )
        assert response.status_code == 422

    def test_pending_user_cannot_login(self, client, user_factory, organization):
        """Test that pending users cannot log in."""
        user_factory("pending@example.com", "user", organization, status=UserStatus.PENDING.value)
        response = client.post(
            "/auth/login",
            json={"email": "pending@example.com", "password": "testpass123"}
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Account is awaiting administrator approval"

    def test_suspended_user_cannot_login(self, client, user_factory, organization):
        """Test that suspended users cannot log in."""
        user_factory("gone@example.com", "user", organization, status=UserStatus.SUSPENDED.value)
        response = client.post(
            "/auth/login",
            json={"email": "gone@example.com", "password": "testpass123"}
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Account is suspended"

    def test_suspended_organization_blocks_login(self, client, db_session, organization, test_user):
        """Test that a suspended organization blocks login."""
        organization.status = "suspended"
        db_session.commit()
        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "testpass123"}
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Organization is suspended"


class TestGetMe:
    """Test /auth/me endpoint."""

    def test_get_me_authenticated(self, client, test_user, auth_headers):
        """Test getting current user when authenticated."""
        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "test@example.com"
        assert data["full_name"] == "Test User"
        assert data["role"] == "user"
        assert data["role_display"] == "User"
        assert data["organization_name"] == "Acme Bank"
        assert data["capabilities"]["can_edit_governance"] is True
        assert data["capabilities"]["can_manage_users"] is False
        assert data["capabilities"]["can_manage_platform"] is False

    def test_get_me_admin_capabilities(self, client, admin_headers):
        """Test the capabilities reported for an admin."""
        data = client.get("/auth/me", headers=admin_headers).json()
        assert data["role_display"] == "Primary Admin"
        assert data["capabilities"]["can_manage_users"] is True
        assert data["capabilities"]["can_approve_appetite"] is True

    def test_get_me_viewer_is_read_only(self, client, viewer_headers):
        """Test that viewers are reported as read-only."""
        data = client.get("/auth/me", headers=viewer_headers).json()
        assert data["capabilities"]["can_edit_governance"] is False

    def test_get_me_super_admin(self, client, super_admin_headers):
        """Test getting current user as super admin."""
        data = client.get("/auth/me", headers=super_admin_headers).json()
        assert data["organization_name"] is None
        assert data["capabilities"]["can_manage_platform"] is True
        assert data["capabilities"]["is_org_admin"] is False

    def test_get_me_unauthenticated(self, client):
        """Test getting current user without authentication."""
        response = client.get("/auth/me")
        assert response.status_code == 401

    def test_get_me_invalid_token(self, client):
        """Test getting current user with an invalid token."""
        response = client.get(
            "/auth/me",
            headers={"Authorization": "Bearer invalid_token"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Could not validate credentials"

    def test_token_for_deleted_user(self, client):
        """Test a valid token for a user that no longer exists."""
        token = create_access_token(data={"sub": "ghost@example.com"})
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_existing_token_rejected_after_suspension(self, client, db_session, test_user, auth_headers):
        """Test that tokens stop working once the user is suspended."""
        test_user.status = UserStatus.SUSPENDED.value
        db_session.commit()
        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Account is suspended"

    def test_existing_token_rejected_after_org_suspension(self, client, db_session, organization, auth_headers):
        """Test that tokens stop working once the organization is suspended."""
        organization.status = "suspended"
        db_session.commit()
        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Organization is suspended"


class TestSignup:

    def test_signup_creates_pending_user(self, client, organization):
        """Test that signup creates a pending user."""
        response = client.post("/auth/signup", json={
            "email": "New.Person@example.com",
            "full_name": "New Person",
            "password": "password123",
            "organization_code": "acme",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new.person@example.com"
        assert data["status"] == "pending"
        assert data["role"] == "user"
        assert data["organization_id"] == organization.organization_id

    def test_signup_unknown_organization(self, client):
        """Test signup against an unknown organization."""
        response = client.post("/auth/signup", json={
            "email": "someone@example.com",
            "full_name": "Someone",
            "password": "password123",
            "organization_code": "NOPE",
        })
        assert response.status_code == 404

    def test_signup_duplicate_email(self, client, test_user, organization):
        """Test signup with an email already in use."""
        response = client.post("/auth/signup", json={
            "email": "test@example.com",
            "full_name": "Again",
            "password": "password123",
            "organization_code": "ACME",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_signup_short_password(self, client, organization):
        """Test signup with a short password."""
        response = client.post("/auth/signup", json={
            "email": "short@example.com",
            "full_name": "Short",
            "password": "short",
            "organization_code": "ACME",
        })
        assert response.status_code == 422


class TestRegisterWithInvitation:

    def _invite(self, client, admin_headers, email="invitee@example.com", role="secondary_admin"):
        response = client.post("/invitations/", json={"email": email, "role": role},
                               headers=admin_headers)
        assert response.status_code == 201
        return response.json()

    def test_register_approves_with_invited_role(self, client, admin_headers, organization):
        """Test that registering with an invitation approves the invited role."""
        invitation = self._invite(client, admin_headers)
        response = client.post("/auth/register", json={
            "email": "invitee@example.com",
            "full_name": "Invited Person",
            "password": "password123",
            "invite_code": invitation["invite_code"].lower(),
        })
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "approved"
        assert data["role"] == "secondary_admin"
        assert data["organization_id"] == organization.organization_id

        login = client.post("/auth/login", json={"email": "invitee@example.com", "password": "password123"})
        assert login.status_code == 200

    def test_invitation_cannot_be_reused(self, client, admin_headers, db_session):
        """Test that an invitation cannot be used twice."""
        invitation = self._invite(client, admin_headers)
        payload = {
            "email": "invitee@example.com",
            "full_name": "Invited Person",
            "password": "password123",
            "invite_code": invitation["invite_code"],
        }
        assert client.post("/auth/register", json=payload).status_code == 201

        response = client.post("/auth/register", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invitation has already been used"

    def test_email_must_match_invitation(self, client, admin_headers):
        """Test that the email must match the invitation."""
        invitation = self._invite(client, admin_headers)
        response = client.post("/auth/register", json={
            "email": "someone-else@example.com",
            "full_name": "Someone Else",
            "password": "password123",
            "invite_code": invitation["invite_code"],
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid invitation code or email"

    def test_expired_invitation_is_marked(self, client, admin_headers, db_session):
        """Test that an expired invitation is marked on use."""
        invitation = self._invite(client, admin_headers)
        row = db_session.get(UserInvitation, invitation["invitation_id"])
        row.expires_at = utc_now() - timedelta(minutes=1)
        db_session.commit()

        response = client.post("/auth/register", json={
            "email": "invitee@example.com",
            "full_name": "Late Person",
            "password": "password123",
            "invite_code": invitation["invite_code"],
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Invitation has expired"
        db_session.expire_all()
        assert db_session.get(UserInvitation, invitation["invitation_id"]).status == "expired"


class TestHeartbeat:

    def test_current_session_is_valid(self, client, test_user):
        """Test the heartbeat for the current session."""
        token = client.post("/auth/login",
                            json={"email": "test@example.com", "password": "testpass123"}).json()["access_token"]
        response = client.post("/auth/heartbeat", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["session_valid"] is True

    def test_newer_login_invalidates_older_session(self, client, test_user):
        """Test that a newer login invalidates the older session."""
        credentials = {"email": "test@example.com", "password": "testpass123"}
        first = client.post("/auth/login", json=credentials).json()["access_token"]
        client.post("/auth/login", json=credentials)

        response = client.post("/auth/heartbeat", headers={"Authorization": f"Bearer {first}"})
        assert response.status_code == 200
        assert response.json()["session_valid"] is False

    def test_token_without_session(self, client, auth_headers):
        """Test the heartbeat for a token without a session."""
        response = client.post("/auth/heartbeat", headers=auth_headers)
        assert response.json()["session_valid"] is False
