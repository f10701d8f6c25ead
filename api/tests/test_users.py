"""Tests for organization user administration."""
from app.models.audit_log import AuditLog
from app.models.user import User, UserStatus


class TestListUsers:

    def test_list_is_org_scoped(self, client, auth_headers, primary_admin, other_admin):
        """Test that user lists are scoped to the organization."""
        emails = {u["email"] for u in client.get("/users/", headers=auth_headers).json()}
        assert emails == {"test@example.com", "admin@example.com"}

    def test_filters(self, client, admin_headers, test_user, user_factory, organization):
        """Test filtering users."""
        user_factory("waiting@example.com", "user", organization, status=UserStatus.PENDING.value)
        pending = client.get("/users/?status=pending", headers=admin_headers).json()
        assert [u["email"] for u in pending] == ["waiting@example.com"]

        found = client.get("/users/?search=test user", headers=admin_headers).json()
        assert [u["email"] for u in found] == ["test@example.com"]

    def test_super_admin_has_no_org_listing(self, client, super_admin_headers):
        """Test that a super admin has no organization listing."""
        assert client.get("/users/", headers=super_admin_headers).status_code == 403


class TestApproval:

    def test_approve_pending(self, client, admin_headers, primary_admin, user_factory, organization, db_session):
        """Test approving a pending user."""
        pending = user_factory("waiting@example.com", "user", organization, status=UserStatus.PENDING.value)
        assert [u["user_id"] for u in client.get("/users/pending", headers=admin_headers).json()] == [pending.user_id]

        response = client.post(f"/users/{pending.user_id}/approve", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

        db_session.expire_all()
        user = db_session.get(User, pending.user_id)
        assert user.approved_by_id == primary_admin.user_id
        assert db_session.query(AuditLog).filter(AuditLog.action == "APPROVE").count() == 1

    def test_approve_twice_rejected(self, client, admin_headers, test_user):
        """Test approving a user twice."""
        response = client.post(f"/users/{test_user.user_id}/approve", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Only pending users can be approved (status: approved)"

    def test_reject_suspends(self, client, admin_headers, user_factory, organization):
        """Test that rejecting a user suspends them."""
        pending = user_factory("waiting@example.com", "user", organization, status=UserStatus.PENDING.value)
        response = client.post(f"/users/{pending.user_id}/reject", headers=admin_headers)
        assert response.json()["status"] == "suspended"

    def test_cannot_approve_other_org_user(self, client, admin_headers, user_factory, other_organization):
        """Test that another organization's user cannot be approved."""
        pending = user_factory("far@example.com", "user", other_organization, status=UserStatus.PENDING.value)
        response = client.post(f"/users/{pending.user_id}/approve", headers=admin_headers)
        assert response.status_code == 404

    def test_regular_user_cannot_approve(self, client, auth_headers, user_factory, organization):
        """Test that plain users cannot approve."""
        pending = user_factory("waiting@example.com", "user", organization, status=UserStatus.PENDING.value)
        assert client.post(f"/users/{pending.user_id}/approve", headers=auth_headers).status_code == 403


class TestRoleAndStatus:

    def test_change_role(self, client, admin_headers, test_user):
        """Test changing a user's role."""
        response = client.patch(f"/users/{test_user.user_id}/role", json={"role": "viewer"},
                                headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["role"] == "viewer"

    def test_role_display_name_accepted(self, client, admin_headers, test_user):
        """Test that role display names are accepted."""
        response = client.patch(f"/users/{test_user.user_id}/role", json={"role": "Secondary Admin"},
                                headers=admin_headers)
        assert response.json()["role"] == "secondary_admin"

    def test_cannot_assign_platform_role(self, client, admin_headers, test_user):
        """Test that platform roles cannot be assigned."""
        response = client.patch(f"/users/{test_user.user_id}/role", json={"role": "super_admin"},
                                headers=admin_headers)
        assert response.status_code == 400

    def test_secondary_admin_cannot_grant_primary(self, client, secondary_admin_headers, test_user):
        """Test that a secondary admin cannot grant primary admin."""
        response = client.patch(f"/users/{test_user.user_id}/role", json={"role": "primary_admin"},
                                headers=secondary_admin_headers)
        assert response.status_code == 403

    def test_secondary_admin_cannot_demote_primary(self, client, secondary_admin_headers, primary_admin):
        """Test that a secondary admin cannot demote a primary admin."""
        response = client.patch(f"/users/{primary_admin.user_id}/role", json={"role": "user"},
                                headers=secondary_admin_headers)
        assert response.status_code == 403

    def test_cannot_change_own_role(self, client, admin_headers, primary_admin):
        """Test that users cannot change their own role."""
        response = client.patch(f"/users/{primary_admin.user_id}/role", json={"role": "user"},
                                headers=admin_headers)
        assert response.status_code == 400

    def test_suspend_clears_session(self, client, admin_headers, test_user, db_session):
        """Test that suspension clears the user's session."""
        test_user.current_session_id = "abc"
        db_session.commit()
        response = client.patch(f"/users/{test_user.user_id}/status", json={"status": "suspended"},
                                headers=admin_headers)
        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, test_user.user_id).current_session_id is None

    def test_invalid_status(self, client, admin_headers, test_user):
        """Test setting an invalid status."""
        response = client.patch(f"/users/{test_user.user_id}/status", json={"status": "archived"},
                                headers=admin_headers)
        assert response.status_code == 400


class TestDeleteUser:

    def test_delete(self, client, admin_headers, test_user, db_session):
        """Test deleting a user."""
        assert client.delete(f"/users/{test_user.user_id}", headers=admin_headers).status_code == 204
        assert db_session.query(User).filter(User.email == "test@example.com").count() == 0

    def test_cannot_delete_self(self, client, admin_headers, primary_admin):
        """Test that users cannot delete themselves."""
        assert client.delete(f"/users/{primary_admin.user_id}", headers=admin_headers).status_code == 400

    def test_secondary_cannot_delete_primary(self, client, secondary_admin_headers, primary_admin):
        """Test that a secondary admin cannot delete a primary admin."""
        response = client.delete(f"/users/{primary_admin.user_id}", headers=secondary_admin_headers)
        assert response.status_code == 403
