"""Tests for the regulator catalog, organization assignment and regulator users."""
import pytest

from app.models.organization import Organization
from app.models.regulator import DEFAULT_ALERT_THRESHOLDS


@pytest.fixture
def regulators(client, super_admin_headers):
    created = []
    for code, name in (("CBN", "Central Bank"), ("SEC", "Securities Commission")):
        response = client.post("/regulators/", json={"code": code, "name": name},
                               headers=super_admin_headers)
        assert response.status_code == 201
        created.append(response.json())
    return created


class TestCatalog:

    def test_create_fills_default_thresholds(self, client, super_admin_headers):
        """Test that new regulators get default thresholds."""
        response = client.post("/regulators/", json={
            "code": "NAICOM", "name": "Insurance Commission", "alert_thresholds": {"credit": 10},
        }, headers=super_admin_headers)
        assert response.status_code == 201
        thresholds = response.json()["alert_thresholds"]
        assert thresholds["credit"] == 10
        assert thresholds["market"] == DEFAULT_ALERT_THRESHOLDS["market"]

    @pytest.mark.parametrize("code", ["cbn", "C B N", ""])
    def test_code_format(self, client, super_admin_headers, code):
        """Test regulator code format validation."""
        response = client.post("/regulators/", json={"code": code, "name": "X"}, headers=super_admin_headers)
        assert response.status_code == 422

    def test_duplicate_code(self, client, super_admin_headers, regulators):
        """Test creating a regulator with a duplicate code."""
        response = client.post("/regulators/", json={"code": "CBN", "name": "Again"}, headers=super_admin_headers)
        assert response.status_code == 400

    def test_org_admin_cannot_create(self, client, admin_headers):
        """Test that organization admins cannot create regulators."""
        response = client.post("/regulators/", json={"code": "X", "name": "X"}, headers=admin_headers)
        assert response.status_code == 403

    def test_anyone_authenticated_can_list(self, client, auth_headers, regulators):
        """Test that any authenticated user can list regulators."""
        codes = [r["code"] for r in client.get("/regulators/", headers=auth_headers).json()]
        assert codes == ["CBN", "SEC"]

    def test_update_merges_thresholds(self, client, super_admin_headers, regulators):
        """Test that updates merge thresholds."""
        regulator_id = regulators[0]["regulator_id"]
        response = client.patch(f"/regulators/{regulator_id}",
                                json={"alert_thresholds": {"esg": 5}, "is_active": False},
                                headers=super_admin_headers)
        data = response.json()
        assert data["alert_thresholds"]["esg"] == 5
        assert data["alert_thresholds"]["liquidity"] == DEFAULT_ALERT_THRESHOLDS["liquidity"]
        assert data["is_active"] is False

    def test_unknown_regulator(self, client, auth_headers):
        """Test fetching an unknown regulator."""
        assert client.get("/regulators/999", headers=auth_headers).status_code == 404


class TestOrganizationAssignment:

    def test_assign_with_primary(self, client, super_admin_headers, admin_headers, organization,
                                 regulators, db_session):
        """Test assigning regulators with a primary regulator."""
        cbn, sec = (r["regulator_id"] for r in regulators)
        response = client.put(f"/regulators/organizations/{organization.organization_id}",
                              json={"regulator_ids": [cbn, sec], "primary_regulator_id": sec},
                              headers=super_admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert [(a["regulator"]["code"], a["is_primary"]) for a in data] == [("SEC", True), ("CBN", False)]

        db_session.expire_all()
        assert db_session.get(Organization, organization.organization_id).primary_regulator_id == sec

        visible = client.get(f"/regulators/organizations/{organization.organization_id}",
                             headers=admin_headers)
        assert visible.status_code == 200
        assert len(visible.json()) == 2

    def test_reassign_replaces_set(self, client, super_admin_headers, organization, regulators):
        """Test that reassigning replaces the regulator set."""
        cbn, sec = (r["regulator_id"] for r in regulators)
        url = f"/regulators/organizations/{organization.organization_id}"
        client.put(url, json={"regulator_ids": [cbn, sec]}, headers=super_admin_headers)
        data = client.put(url, json={"regulator_ids": [cbn]}, headers=super_admin_headers).json()
        assert [a["regulator_id"] for a in data] == [cbn]

    def test_primary_must_be_assigned(self, client, super_admin_headers, organization, regulators):
        """Test that the primary regulator must be in the assigned set."""
        cbn, sec = (r["regulator_id"] for r in regulators)
        response = client.put(f"/regulators/organizations/{organization.organization_id}",
                              json={"regulator_ids": [cbn], "primary_regulator_id": sec},
                              headers=super_admin_headers)
        assert response.status_code == 400

    def test_unknown_regulator_id(self, client, super_admin_headers, organization):
        """Test assigning an unknown regulator id."""
        response = client.put(f"/regulators/organizations/{organization.organization_id}",
                              json={"regulator_ids": [999]}, headers=super_admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Regulator not found: 999"

    def test_other_org_cannot_view(self, client, other_admin_headers, organization):
        """Test that another organization cannot view the assignment."""
        response = client.get(f"/regulators/organizations/{organization.organization_id}",
                              headers=other_admin_headers)
        assert response.status_code == 403

    def test_delete_blocked_while_assigned(self, client, super_admin_headers, organization, regulators):
        """Test that an assigned regulator cannot be deleted."""
        cbn, sec = (r["regulator_id"] for r in regulators)
        client.put(f"/regulators/organizations/{organization.organization_id}",
                   json={"regulator_ids": [cbn]}, headers=super_admin_headers)
        assert client.delete(f"/regulators/{cbn}", headers=super_admin_headers).status_code == 409
        assert client.delete(f"/regulators/{sec}", headers=super_admin_headers).status_code == 204


class TestRegulatorUsers:

    def test_regulator_sees_granted_organizations(self, client, super_admin_headers, organization,
                                                  other_organization, regulators):
        """Test that regulator users see only granted organizations."""
        cbn, sec = (r["regulator_id"] for r in regulators)
        client.put(f"/regulators/organizations/{organization.organization_id}",
                   json={"regulator_ids": [cbn], "primary_regulator_id": cbn}, headers=super_admin_headers)
        client.put(f"/regulators/organizations/{other_organization.organization_id}",
                   json={"regulator_ids": [sec]}, headers=super_admin_headers)

        response = client.post("/regulators/users", json={
            "email": "examiner@cbn.example.com",
            "full_name": "Bank Examiner",
            "password": "password123",
            "regulator_ids": [cbn],
        }, headers=super_admin_headers)
        assert response.status_code == 201
        created = response.json()
        assert [r["code"] for r in created["regulators"]] == ["CBN"]

        login = client.post("/auth/login", json={"email": "examiner@cbn.example.com", "password": "password123"})
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
        visible = client.get("/regulators/me/organizations", headers=headers).json()
        assert [(o["code"], o["regulator_code"], o["is_primary"]) for o in visible] == [("ACME", "CBN", True)]

        client.put(f"/regulators/users/{created['user_id']}/access",
                   json={"regulator_ids": [cbn, sec]}, headers=super_admin_headers)
        visible = client.get("/regulators/me/organizations", headers=headers).json()
        assert {o["code"] for o in visible} == {"ACME", "OTHER"}

    def test_regulator_is_read_only_on_governance(self, client, super_admin_headers):
        """Test that regulator users are read-only."""
        client.post("/regulators/users", json={
            "email": "examiner@sec.example.com", "full_name": "Examiner", "password": "password123",
        }, headers=super_admin_headers)
        login = client.post("/auth/login", json={"email": "examiner@sec.example.com", "password": "password123"})
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
        assert client.post("/appetite/statements", json={"statement_text": "x"}, headers=headers).status_code == 403

    def test_org_user_cannot_use_regulator_view(self, client, admin_headers):
        """Test that organization users cannot use the regulator view."""
        assert client.get("/regulators/me/organizations", headers=admin_headers).status_code == 403

    def test_duplicate_email(self, client, super_admin_headers, test_user):
        """Test creating a regulator user with a duplicate email."""
        response = client.post("/regulators/users", json={
            "email": "test@example.com", "full_name": "Dup", "password": "password123",
        }, headers=super_admin_headers)
        assert response.status_code == 400

    def test_access_update_requires_regulator_user(self, client, super_admin_headers, test_user):
        """Test that access updates need a regulator user."""
        response = client.put(f"/regulators/users/{test_user.user_id}/access",
                              json={"regulator_ids": []}, headers=super_admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Regulator user not found"

    def test_list_regulator_users(self, client, super_admin_headers, regulators):
        """Test listing regulator users."""
        client.post("/regulators/users", json={
            "email": "examiner@cbn.example.com", "full_name": "Examiner", "password": "password123",
            "regulator_ids": [regulators[0]["regulator_id"]],
        }, headers=super_admin_headers)
        users = client.get("/regulators/users", headers=super_admin_headers).json()
        assert [u["email"] for u in users] == ["examiner@cbn.example.com"]
