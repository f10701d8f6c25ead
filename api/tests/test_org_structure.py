"""Tests for divisions and departments."""
from app.models.org_structure import Department


def _division(client, headers, name="Retail Banking"):
    response = client.post("/org-structure/divisions", json={"name": name}, headers=headers)
    assert response.status_code == 201
    return response.json()


def _department(client, headers, name="Cards", division_id=None):
    response = client.post("/org-structure/departments",
                           json={"name": name, "division_id": division_id}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestDivisions:

    def test_create_and_list_with_departments(self, client, admin_headers, auth_headers):
        """Test creating divisions and listing them with departments."""
        division = _division(client, admin_headers)
        _department(client, admin_headers, "Cards", division["division_id"])
        _department(client, admin_headers, "Mortgages", division["division_id"])

        divisions = client.get("/org-structure/divisions", headers=auth_headers).json()
        assert len(divisions) == 1
        assert [d["name"] for d in divisions[0]["departments"]] == ["Cards", "Mortgages"]

    def test_duplicate_name_rejected(self, client, admin_headers):
        """Test that duplicate division names are rejected."""
        _division(client, admin_headers)
        response = client.post("/org-structure/divisions", json={"name": " Retail Banking "},
                               headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Division with this name already exists"

    def test_same_name_in_other_org(self, client, admin_headers, other_admin_headers):
        """Test that another organization may reuse a division name."""
        _division(client, admin_headers)
        _division(client, other_admin_headers)

    def test_rename(self, client, admin_headers):
        """Test renaming a division."""
        division = _division(client, admin_headers)
        response = client.patch(f"/org-structure/divisions/{division['division_id']}",
                                json={"name": "Consumer Banking"}, headers=admin_headers)
        assert response.json()["name"] == "Consumer Banking"

    def test_delete_unassigns_departments(self, client, admin_headers, db_session):
        """Test that deleting a division unassigns its departments."""
        division = _division(client, admin_headers)
        department = _department(client, admin_headers, division_id=division["division_id"])

        response = client.delete(f"/org-structure/divisions/{division['division_id']}", headers=admin_headers)
        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.get(Department, department["department_id"]).division_id is None

        unassigned = client.get("/org-structure/departments?unassigned=true", headers=admin_headers).json()
        assert [d["department_id"] for d in unassigned] == [department["department_id"]]

    def test_user_cannot_create(self, client, auth_headers):
        """Test that plain users cannot create divisions."""
        response = client.post("/org-structure/divisions", json={"name": "X"}, headers=auth_headers)
        assert response.status_code == 403


class TestDepartments:

    def test_assign_and_unassign(self, client, admin_headers):
        """Test assigning and unassigning a department's division."""
        division = _division(client, admin_headers)
        department = _department(client, admin_headers)
        url = f"/org-structure/departments/{department['department_id']}/division"

        assigned = client.put(url, json={"division_id": division["division_id"]}, headers=admin_headers)
        assert assigned.json()["division_id"] == division["division_id"]
        in_division = client.get(f"/org-structure/departments?division_id={division['division_id']}",
                                 headers=admin_headers).json()
        assert len(in_division) == 1

        unassigned = client.put(url, json={"division_id": None}, headers=admin_headers)
        assert unassigned.json()["division_id"] is None

    def test_cannot_assign_to_other_org_division(self, client, admin_headers, other_admin_headers):
        """Test that departments cannot join another organization's division."""
        foreign = _division(client, other_admin_headers)
        department = _department(client, admin_headers)
        response = client.put(f"/org-structure/departments/{department['department_id']}/division",
                              json={"division_id": foreign["division_id"]}, headers=admin_headers)
        assert response.status_code == 404

    def test_update_description(self, client, admin_headers):
        """Test updating a department description."""
        department = _department(client, admin_headers)
        response = client.patch(f"/org-structure/departments/{department['department_id']}",
                                json={"description": "Card issuing"}, headers=admin_headers)
        assert response.json()["description"] == "Card issuing"

    def test_duplicate_department_name(self, client, admin_headers):
        """Test creating a department with a duplicate name."""
        _department(client, admin_headers)
        response = client.post("/org-structure/departments", json={"name": "Cards"}, headers=admin_headers)
        assert response.status_code == 400

    def test_delete(self, client, admin_headers):
        """Test deleting a department."""
        department = _department(client, admin_headers)
        response = client.delete(f"/org-structure/departments/{department['department_id']}",
                                 headers=admin_headers)
        assert response.status_code == 204
        assert client.get("/org-structure/departments", headers=admin_headers).json() == []
