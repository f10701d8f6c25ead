"""Tests for appetite chain validation."""
from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.core import appetite_chain
from app.core.appetite_chain import GapSeverity, evaluate_chain, validate_chain
from app.core.exceptions import ChainDataUnavailable
from app.models.appetite import (
    RiskAppetiteCategory,
    RiskAppetiteStatement,
    StatementStatus,
    ToleranceMetric,
)
from app.models.kri import KriValue


class TestEvaluateChain:
    """Gap computation over taxonomy {A, B, C}."""

    NAMES = ["A", "B", "C"]

    def test_no_appetite_everything_critical(self):
        """Test that categories with no appetite are all CRITICAL gaps."""
        gaps = evaluate_chain(self.NAMES, {}, {})
        assert [(g.category, g.severity) for g in gaps] == [
            ("A", GapSeverity.CRITICAL), ("B", GapSeverity.CRITICAL), ("C", GapSeverity.CRITICAL)]

    def test_appetite_without_active_metric_is_warning(self):
        """Test that an appetite with no active metric is a WARNING gap."""
        gaps = evaluate_chain(self.NAMES, {"a": "LOW", "b": "HIGH"}, {"a": 1})
        assert [(g.category, g.severity) for g in gaps] == [
            ("B", GapSeverity.WARNING), ("C", GapSeverity.CRITICAL)]
        assert "HIGH" in gaps[0].detail

    def test_complete_chain_has_no_gaps(self):
        """Test that a complete chain reports no gaps."""
        levels = {"a": "LOW", "b": "LOW", "c": "ZERO"}
        assert evaluate_chain(self.NAMES, levels, {"a": 1, "b": 2, "c": 1}) == []

    def test_names_are_matched_case_insensitively(self):
        """Test that taxonomy names match appetite categories ignoring case and spaces."""
        gaps = evaluate_chain(["Credit Risk"], {"credit risk": "LOW"}, {"credit risk": 1})
        assert gaps == []

    def test_empty_taxonomy(self):
        """Test that an empty taxonomy is valid."""
        assert evaluate_chain([], {"a": "LOW"}, {}) == []

    def test_each_category_reported_once(self):
        """Test that each taxonomy category yields at most one gap."""
        gaps = evaluate_chain(self.NAMES, {"a": "LOW"}, {})
        assert sorted(g.category for g in gaps) == self.NAMES


def _statement(db_session, organization, status=StatementStatus.APPROVED.value, version=1):
    statement = RiskAppetiteStatement(
        organization_id=organization.organization_id,
        version_number=version,
        statement_text="Appetite",
        status=status,
        effective_from=date(2026, 1, 1),
    )
    db_session.add(statement)
    db_session.flush()
    return statement


def _category(db_session, statement, name, level="LOW"):
    category = RiskAppetiteCategory(
        organization_id=statement.organization_id,
        statement_id=statement.statement_id,
        risk_category=name,
        appetite_level=level,
    )
    db_session.add(category)
    db_session.flush()
    return category


def _active_metric(db_session, category, kri_id=None, name="Metric"):
    metric = ToleranceMetric(
        organization_id=category.organization_id,
        appetite_category_id=category.appetite_category_id,
        metric_key=f"{name}-{category.appetite_category_id}",
        metric_name=name,
        metric_type="MAXIMUM",
        amber_max=5.0,
        kri_id=kri_id,
        is_active=True,
        never_activated=False,
    )
    db_session.add(metric)
    db_session.flush()
    return metric


class TestValidateChain:

    def test_no_statement(self, db_session, organization, taxonomy):
        """Test validation when the organization has no approved statement."""
        result = validate_chain(db_session, organization.organization_id)
        assert result.is_valid is False
        assert result.statement_id is None
        assert result.categories_checked == 3
        assert {g.severity for g in result.gaps} == {GapSeverity.CRITICAL}

    def test_mixed_gaps(self, db_session, organization, taxonomy, kri):
        """Test a chain with both missing appetites and missing metrics."""
        statement = _statement(db_session, organization)
        a = _category(db_session, statement, "A")
        _category(db_session, statement, "B")
        _active_metric(db_session, a, kri.kri_id)
        db_session.add(KriValue(kri_id=kri.kri_id, measurement_date=date.today(), value=1.0))
        db_session.commit()

        result = validate_chain(db_session, organization.organization_id)
        assert result.is_valid is False
        assert result.statement_version == 1
        assert [(g.category, g.severity) for g in result.gaps] == [
            ("B", GapSeverity.WARNING), ("C", GapSeverity.CRITICAL)]
        assert result.advisories == []

    def test_valid_chain(self, db_session, organization, taxonomy, kri):
        """Test that every category with an active metric gives a valid chain."""
        statement = _statement(db_session, organization)
        for name in ("A", "B", "C"):
            _active_metric(db_session, _category(db_session, statement, name), kri.kri_id, name=name)
        db_session.add(KriValue(kri_id=kri.kri_id, measurement_date=date.today(), value=1.0))
        db_session.commit()

        result = validate_chain(db_session, organization.organization_id)
        assert result.is_valid is True
        assert result.gaps == []

    def test_inactive_metrics_do_not_count(self, db_session, organization, taxonomy):
        """Test that inactive metrics leave the chain incomplete."""
        statement = _statement(db_session, organization)
        for name in ("A", "B", "C"):
            metric = _active_metric(db_session, _category(db_session, statement, name), name=name)
            metric.is_active = False
        db_session.commit()

        result = validate_chain(db_session, organization.organization_id)
        assert [g.severity for g in result.gaps] == [GapSeverity.WARNING] * 3

    def test_advisories_do_not_affect_validity(self, db_session, organization, taxonomy, kri):
        """Test that stale, unlinked and orphaned metrics only raise advisories."""
        statement = _statement(db_session, organization)
        for name in ("A", "B"):
            _active_metric(db_session, _category(db_session, statement, name), kri.kri_id, name=name)
        _active_metric(db_session, _category(db_session, statement, "C"), None, name="C")
        _category(db_session, statement, "Legacy")
        db_session.add(KriValue(kri_id=kri.kri_id,
                                measurement_date=date.today() - timedelta(days=365), value=1.0))
        db_session.commit()

        result = validate_chain(db_session, organization.organization_id)
        assert result.is_valid is True
        issues = sorted((a.category, a.issue) for a in result.advisories)
        assert issues == [
            ("A", "Stale KRI data"),
            ("B", "Stale KRI data"),
            ("C", "Active metric without KRI"),
            ("Legacy", "Not in taxonomy"),
        ]

    def test_specific_draft_statement(self, db_session, organization, taxonomy):
        """Test validating a draft statement by id."""
        _statement(db_session, organization)
        draft = _statement(db_session, organization, StatementStatus.DRAFT.value, version=2)
        _category(db_session, draft, "A")
        db_session.commit()

        result = validate_chain(db_session, organization.organization_id, statement_id=draft.statement_id)
        assert result.statement_id == draft.statement_id
        assert [(g.category, g.severity) for g in result.gaps] == [
            ("A", GapSeverity.WARNING), ("B", GapSeverity.CRITICAL), ("C", GapSeverity.CRITICAL)]

    def test_other_organization_is_isolated(self, db_session, organization, other_organization, taxonomy):
        """Test that another organization's rows are ignored."""
        _statement(db_session, other_organization)
        db_session.commit()
        result = validate_chain(db_session, other_organization.organization_id)
        assert result.categories_checked == 0
        assert result.is_valid is True

    def test_fetch_failure_is_distinct_error(self, db_session, organization, taxonomy, monkeypatch):
        """Test that a database error raises ChainDataUnavailable instead of passing."""
        def fail(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(appetite_chain, "_resolve_statement", fail)
        with pytest.raises(ChainDataUnavailable):
            validate_chain(db_session, organization.organization_id)


class TestChainValidationEndpoint:

    def test_reports_gaps(self, client, auth_headers, taxonomy):
        """Test the chain validation endpoint."""
        response = client.get("/appetite/chain-validation", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is False
        assert data["categories_checked"] == 3
        assert [g["category"] for g in data["gaps"]] == ["A", "B", "C"]
        assert all(g["severity"] == "CRITICAL" for g in data["gaps"])

    def test_unknown_statement(self, client, auth_headers, taxonomy):
        """Test validating an unknown statement id."""
        response = client.get("/appetite/chain-validation?statement_id=999", headers=auth_headers)
        assert response.status_code == 404

    def test_unavailable_data_returns_503(self, client, auth_headers, taxonomy, monkeypatch):
        """Test that a failed fetch is reported as 503."""
        def fail(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(appetite_chain, "_resolve_statement", fail)
        response = client.get("/appetite/chain-validation", headers=auth_headers)
        assert response.status_code == 503
        assert response.json()["code"] == "chain_data_unavailable"

    def test_requires_organization(self, client, super_admin_headers):
        """Test that users without an organization are rejected."""
        response = client.get("/appetite/chain-validation", headers=super_admin_headers)
        assert response.status_code == 403


class TestEnterpriseStatus:

    def test_no_approved_statement(self, client, auth_headers):
        """Test enterprise status without an approved statement."""
        data = client.get("/appetite/status", headers=auth_headers).json()
        assert data["status"] == "UNKNOWN"
        assert data["categories"] == []

    def test_worst_category_wins(self, client, auth_headers, db_session, organization, kri):
        """Test that enterprise status takes the worst category status."""
        statement = _statement(db_session, organization)
        credit = _category(db_session, statement, "Credit")
        _category(db_session, statement, "Market")
        _active_metric(db_session, credit, kri.kri_id)
        db_session.add(KriValue(kri_id=kri.kri_id, measurement_date=date(2026, 3, 31), value=9.0))
        db_session.commit()

        data = client.get("/appetite/status", headers=auth_headers).json()
        assert data["status"] == "AMBER"
        by_name = {c["risk_category"]: c for c in data["categories"]}
        assert by_name["Credit"]["status"] == "AMBER"
        assert by_name["Market"]["status"] == "UNKNOWN"
        assert data["amber_count"] == 1
        assert data["unknown_count"] == 1
