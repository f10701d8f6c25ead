"""Tests for the organization audit trail."""
from datetime import timedelta

import pytest

from app.core.audit import create_audit_log
from app.core.time import utc_now
from app.models.audit_log import AuditLog


@pytest.fixture
def audit_trail(db_session, organization, other_organization, primary_admin, test_user):
    create_audit_log(db_session, "AppetiteStatement", 1, "CREATE", test_user.user_id,
                     organization_id=organization.organization_id, entity_code="Statement v1")
    create_audit_log(db_session, "AppetiteStatement", 1, "APPROVE", primary_admin.user_id,
                     {"status": {"old": "DRAFT", "new": "APPROVED"}},
                     organization_id=organization.organization_id, entity_code="Statement v1")
    create_audit_log(db_session, "ToleranceMetric", 7, "ACTIVATE", test_user.user_id,
                     organization_id=organization.organization_id, entity_code="NPL-RATIO")
    create_audit_log(db_session, "Division", 3, "CREATE", None,
                     organization_id=other_organization.organization_id, entity_code="Foreign")
    db_session.commit()


class TestListAuditLogs:

    def test_scoped_to_organization(self, client, auth_headers, audit_trail):
        """Test that audit logs are scoped to the caller's organization."""
        logs = client.get("/audit-logs/", headers=auth_headers).json()
        assert len(logs) == 3
        assert "Foreign" not in {log["entity_code"] for log in logs}

    def test_most_recent_first_with_user(self, client, auth_headers, audit_trail):
        """Test that logs are newest first and include the user."""
        latest = client.get("/audit-logs/?limit=1", headers=auth_headers).json()[0]
        assert latest["action"] == "ACTIVATE"
        assert latest["user"]["email"] == "test@example.com"

    @pytest.mark.parametrize("query, expected", [
        ("entity_type=AppetiteStatement", ["APPROVE", "CREATE"]),
        ("exclude_entity_types=AppetiteStatement", ["ACTIVATE"]),
        ("action=APPROVE", ["APPROVE"]),
        ("entity_code=npl", ["ACTIVATE"]),
        ("user_email=admin@", ["APPROVE"]),
        ("search=approve", ["APPROVE"]),
        ("entity_id=7", ["ACTIVATE"]),
    ])
    def test_filters(self, client, auth_headers, audit_trail, query, expected):
        """Test filtering audit logs."""
        logs = client.get(f"/audit-logs/?{query}", headers=auth_headers).json()
        assert [log["action"] for log in logs] == expected

    def test_date_range_is_inclusive(self, client, auth_headers, audit_trail, db_session):
        """Test that the date range filter includes both ends."""
        old = db_session.query(AuditLog).filter(AuditLog.action == "CREATE",
                                                AuditLog.entity_type == "AppetiteStatement").one()
        old.timestamp = utc_now() - timedelta(days=10)
        db_session.commit()

        today = utc_now().date().isoformat()
        recent = client.get(f"/audit-logs/?start_date={today}&end_date={today}", headers=auth_headers).json()
        assert [log["action"] for log in recent] == ["ACTIVATE", "APPROVE"]

    def test_pagination(self, client, auth_headers, audit_trail):
        """Test skip and limit pagination."""
        page = client.get("/audit-logs/?limit=2&offset=2", headers=auth_headers).json()
        assert [log["action"] for log in page] == ["CREATE"]

    def test_super_admin_without_org_is_forbidden(self, client, super_admin_headers):
        """Test that a super admin without an organization is forbidden."""
        response = client.get("/audit-logs/", headers=super_admin_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "This action requires organization membership"


class TestAuditVocabulary:

    def test_entity_types(self, client, auth_headers, audit_trail):
        """Test listing distinct entity types."""
        response = client.get("/audit-logs/entity-types", headers=auth_headers)
        assert response.json() == ["AppetiteStatement", "ToleranceMetric"]

    def test_actions(self, client, auth_headers, audit_trail):
        """Test listing distinct actions."""
        response = client.get("/audit-logs/actions", headers=auth_headers)
        assert response.json() == ["ACTIVATE", "APPROVE", "CREATE"]

    def test_governance_actions_are_recorded(self, client, admin_headers):
        """Test that governance actions appear in the audit log."""
        client.post("/appetite/statements", json={"statement_text": "Low appetite for credit losses"},
                    headers=admin_headers)
        actions = client.get("/audit-logs/actions", headers=admin_headers).json()
        assert "CREATE" in actions
        assert client.get("/audit-logs/entity-types", headers=admin_headers).json() == ["AppetiteStatement"]
