"""Tests for risk library generation from the seed catalog."""
import pytest

from app.core.library_generation import (
    category_matches,
    generate_library,
    industry_matches,
    select_seed_items,
)
from app.core.exceptions import ValidationFailed
from app.models.library import ControlLibrary, IndicatorLibrary, RootCauseLibrary, SeedLibraryItem
from app.seed import seed_library_catalog


@pytest.fixture
def seed_catalog(db_session):
    seed_library_catalog(db_session)


def _item(code, hints=(), tags=("universal",), item_type="root_cause"):
    return SeedLibraryItem(item_type=item_type, code=code, name=code,
                           category_hints=list(hints), industry_tags=list(tags))


class TestMatching:

    @pytest.mark.parametrize("hints, selected, expected", [
        (["Credit"], ["Credit Risk"], True),
        (["credit risk"], ["Credit"], True),
        (["Liquidity"], ["Credit Risk"], False),
        ([], ["Credit Risk"], False),
    ])
    def test_category_matches(self, hints, selected, expected):
        """Test category hint matching against the selection."""
        assert category_matches(hints, selected) is expected

    @pytest.mark.parametrize("tags, industry, expected", [
        (["universal"], None, True),
        (["Banking"], "banking", True),
        (["insurance"], "banking", False),
        (["banking"], None, False),
    ])
    def test_industry_matches(self, tags, industry, expected):
        """Test industry tag matching."""
        assert industry_matches(tags, industry) is expected

    def test_hinted_items_need_a_category_match(self):
        """Test that hinted items need a category match and generic items an industry match."""
        items = [
            _item("HINTED-MATCH", hints=["Credit"], tags=["insurance"]),
            _item("HINTED-MISS", hints=["Market"], tags=["universal"]),
            _item("GENERIC-UNIVERSAL"),
            _item("GENERIC-BANKING", tags=["banking"]),
            _item("GENERIC-INSURANCE", tags=["insurance"]),
        ]
        selected = select_seed_items(items, ["Credit Risk"], "banking")
        assert [i.code for i in selected] == ["HINTED-MATCH", "GENERIC-UNIVERSAL", "GENERIC-BANKING"]


class TestGenerateLibrary:

    def test_counts_by_item_type(self, db_session, organization, seed_catalog, primary_admin):
        """Test generation counts by item type."""
        result = generate_library(db_session, organization.organization_id, ["Credit Risk"],
                                  "banking", primary_admin.user_id)
        assert result.counts == {"root_cause": 2, "impact": 1, "control": 1, "kri": 1, "kci": 0}
        assert result.categories_used == ["Credit Risk"]

        control = db_session.query(ControlLibrary).filter(ControlLibrary.code == "CT-CR-001").one()
        assert control.control_type == "preventive"
        assert control.category == "Credit"
        indicator = db_session.query(IndicatorLibrary).filter(IndicatorLibrary.code == "KRI-CR-001").one()
        assert indicator.indicator_type == "KRI"
        assert indicator.unit == "%"
        generic = db_session.query(RootCauseLibrary).filter(RootCauseLibrary.code == "RC-GEN-001").one()
        assert generic.category == "General"

    def test_second_hint_becomes_root_cause_subcategory(self, db_session, organization, seed_catalog,
                                                       primary_admin):
        """Root causes keep the second category hint; a single hint leaves it empty."""
        db_session.add(_item("RC-CR-002", hints=["Credit", "Underwriting"]))
        db_session.commit()
        generate_library(db_session, organization.organization_id, ["Credit"], "banking", primary_admin.user_id)
        db_session.flush()

        rows = {row.code: row for row in db_session.query(RootCauseLibrary).all()}
        assert (rows["RC-CR-002"].category, rows["RC-CR-002"].subcategory) == ("Credit", "Underwriting")
        assert rows["RC-CR-001"].subcategory is None

    def test_regeneration_upserts_by_code(self, db_session, organization, seed_catalog, primary_admin):
        """Test that regenerating updates rows by code."""
        generate_library(db_session, organization.organization_id, ["Credit"], "banking", primary_admin.user_id)
        db_session.commit()
        seed = db_session.query(SeedLibraryItem).filter(SeedLibraryItem.code == "RC-CR-001").one()
        seed.name = "Weak underwriting standards"
        db_session.commit()

        generate_library(db_session, organization.organization_id, ["Credit"], "banking", primary_admin.user_id)
        db_session.commit()
        rows = db_session.query(RootCauseLibrary).filter(RootCauseLibrary.code == "RC-CR-001").all()
        assert len(rows) == 1
        assert rows[0].name == "Weak underwriting standards"

    def test_inactive_seed_items_skipped(self, db_session, organization, seed_catalog, primary_admin):
        """Test that inactive seed items are skipped."""
        seed = db_session.query(SeedLibraryItem).filter(SeedLibraryItem.code == "CT-CR-001").one()
        seed.is_active = False
        db_session.commit()
        result = generate_library(db_session, organization.organization_id, ["Credit"], "banking",
                                  primary_admin.user_id)
        assert result.counts["control"] == 0

    def test_requires_categories(self, db_session, organization):
        """Test that at least one category is required."""
        with pytest.raises(ValidationFailed):
            generate_library(db_session, organization.organization_id, [" "], "banking", None)


class TestLibraryEndpoints:

    def test_generate_uses_org_industry(self, client, admin_headers, seed_catalog):
        """Test that generation uses the organization's industry."""
        response = client.post("/library/generate", json={"categories": ["Liquidity Risk"]},
                               headers=admin_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["industry_type"] == "banking"
        assert data["counts"]["impact"] == 2
        assert data["counts"]["kri"] == 1

        logs = client.get("/library/logs", headers=admin_headers).json()
        assert logs[0]["log_id"] == data["log_id"]
        assert logs[0]["impacts_count"] == 2

    def test_list_library_with_category(self, client, admin_headers, auth_headers, seed_catalog):
        """Test listing a library filtered by category."""
        client.post("/library/generate", json={"categories": ["Credit", "Operational"]}, headers=admin_headers)
        controls = client.get("/library/controls", headers=auth_headers).json()
        assert [c["code"] for c in controls] == ["CT-CR-001", "CT-OP-001"]
        credit_only = client.get("/library/controls?category=Credit", headers=auth_headers).json()
        assert [c["code"] for c in credit_only] == ["CT-CR-001"]

    def test_unknown_library(self, client, auth_headers):
        """Test requesting an unknown library."""
        response = client.get("/library/widgets", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Unknown library 'widgets'"

    def test_user_cannot_generate(self, client, auth_headers):
        """Test that plain users cannot generate libraries."""
        response = client.post("/library/generate", json={"categories": ["Credit"]}, headers=auth_headers)
        assert response.status_code == 403

    def test_empty_selection_rejected(self, client, admin_headers):
        """Test that an empty category selection is rejected."""
        response = client.post("/library/generate", json={"categories": []}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "validation_failed"
