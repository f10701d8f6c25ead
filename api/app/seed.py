"""Seed minimal reference data."""
import os
import sys
from sqlalchemy.orm import Session
from app.core.database import SessionLocal
from app.core.config import settings
from app.core.roles import RoleCode
from app.core.security import get_password_hash, verify_password
from app.core.time import utc_now
from app.models import (
    Organization,
    Regulator,
    RiskCategory,
    RiskSubcategory,
    SeedLibraryItem,
    User,
)
from app.models.regulator import default_alert_thresholds
from app.models.user import UserStatus


REGULATORS = [
    {"code": "CBN", "name": "Central Bank of Nigeria", "jurisdiction": "Nigeria",
     "sector": "Banking & Finance"},
    {"code": "SEC", "name": "Securities and Exchange Commission", "jurisdiction": "Nigeria",
     "sector": "Capital Markets"},
    {"code": "PENCOM", "name": "National Pension Commission", "jurisdiction": "Nigeria",
     "sector": "Pension Funds"},
]

# Category hints are matched against the names an organization selects at generation time
SEED_LIBRARY_ITEMS = [
    {"item_type": "root_cause", "code": "RC-CR-001", "name": "Weak credit underwriting",
     "category_hints": ["Credit"], "industry_tags": ["banking"]},
    {"item_type": "root_cause", "code": "RC-OP-001", "name": "Inadequate staff training",
     "category_hints": ["Operational"], "industry_tags": ["universal"]},
    {"item_type": "root_cause", "code": "RC-GEN-001", "name": "Ineffective board oversight",
     "category_hints": [], "industry_tags": ["universal"]},
    {"item_type": "impact", "code": "IM-FIN-001", "name": "Financial loss",
     "category_hints": [], "industry_tags": ["universal"]},
    {"item_type": "impact", "code": "IM-LQ-001", "name": "Funding shortfall",
     "category_hints": ["Liquidity"], "industry_tags": ["banking", "insurance"]},
    {"item_type": "control", "code": "CT-CR-001", "name": "Independent credit committee approval",
     "category_hints": ["Credit"], "industry_tags": ["banking"],
     "attributes": {"control_type": "preventive"}},
    {"item_type": "control", "code": "CT-OP-001", "name": "Daily reconciliations",
     "category_hints": ["Operational"], "industry_tags": ["universal"],
     "attributes": {"control_type": "detective"}},
    {"item_type": "kri", "code": "KRI-CR-001", "name": "Non-performing loan ratio",
     "category_hints": ["Credit"], "industry_tags": ["banking"], "attributes": {"unit": "%"}},
    {"item_type": "kri", "code": "KRI-LQ-001", "name": "Liquidity coverage ratio",
     "category_hints": ["Liquidity"], "industry_tags": ["banking"], "attributes": {"unit": "%"}},
    {"item_type": "kci", "code": "KCI-OP-001", "name": "Overdue reconciliations",
     "category_hints": ["Operational"], "industry_tags": ["universal"], "attributes": {"unit": "count"}},
]

DEMO_TAXONOMY = {
    "Credit Risk": ["Counterparty default", "Concentration"],
    "Liquidity Risk": ["Funding liquidity", "Market liquidity"],
    "Operational Risk": ["Process failure", "People", "Systems"],
}


def is_production_env() -> bool:
    return settings.ENVIRONMENT.lower() == "production"


def parse_bool_env(value: str | None) -> bool | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y"}:
        return True
    if normalized in {"0", "false", "no", "n"}:
        return False
    return None


def should_seed_demo_data() -> bool:
    override = parse_bool_env(os.getenv("SEED_DEMO_DATA"))
    if override is None:
        return not is_production_env()
    return override


def get_seed_admin_password() -> str | None:
    password = os.getenv("SEED_ADMIN_PASSWORD")
    if password:
        password = password.strip()

    if is_production_env():
        if password:
            if password == "admin123":
                print("FATAL: SEED_ADMIN_PASSWORD cannot be the default in production.", file=sys.stderr)
                sys.exit(1)
            return password
        return None

    return password or "admin123"


def seed_regulators(db: Session) -> int:
    created = 0
    for values in REGULATORS:
        if db.query(Regulator).filter(Regulator.code == values["code"]).first():
            continue
        db.add(Regulator(alert_thresholds=default_alert_thresholds(), **values))
        created += 1
    db.commit()
    return created


def seed_library_catalog(db: Session) -> int:
    created = 0
    for values in SEED_LIBRARY_ITEMS:
        if db.query(SeedLibraryItem).filter(SeedLibraryItem.code == values["code"]).first():
            continue
        db.add(SeedLibraryItem(**values))
        created += 1
    db.commit()
    return created


def seed_demo_organization(db: Session, super_admin: User) -> None:
    org = db.query(Organization).filter(Organization.code == "DEMO").first()
    if not org:
        org = Organization(name="Demo Bank", code="DEMO", industry_type="banking",
                           institution_type="Commercial Bank")
        db.add(org)
        db.flush()
        print("✓ Created demo organization (DEMO)")

    if not db.query(User).filter(User.email == "cro@example.com").first():
        db.add(User(
            email="cro@example.com",
            full_name="Chief Risk Officer",
            password_hash=get_password_hash("cro12345"),
            role=RoleCode.PRIMARY_ADMIN.value,
            status=UserStatus.APPROVED.value,
            organization_id=org.organization_id,
            approved_by_id=super_admin.user_id,
            approved_at=utc_now(),
        ))
        print("✓ Created demo primary admin (cro@example.com)")

    for category_name, subcategories in DEMO_TAXONOMY.items():
        category = db.query(RiskCategory).filter(
            RiskCategory.organization_id == org.organization_id,
            RiskCategory.name == category_name
        ).first()
        if category:
            continue
        category = RiskCategory(organization_id=org.organization_id, name=category_name)
        category.subcategories = [RiskSubcategory(name=name) for name in subcategories]
        db.add(category)
    db.commit()


def seed_database():
    """Seed essential data."""
    db = SessionLocal()

    try:
        print("Starting database seeding...")
        admin_password = get_seed_admin_password()

        admin = db.query(User).filter(User.email == "admin@example.com").first()
        if not admin:
            if admin_password is None:
                print("FATAL: SEED_ADMIN_PASSWORD is required to create the admin user in production.", file=sys.stderr)
                sys.exit(1)
            admin = User(
                email="admin@example.com",
                full_name="Platform Administrator",
                password_hash=get_password_hash(admin_password),
                role=RoleCode.SUPER_ADMIN.value,
                status=UserStatus.APPROVED.value,
                organization_id=None,
                approved_at=utc_now(),
            )
            db.add(admin)
            db.commit()
            print("✓ Created super admin user (admin@example.com)")
        else:
            print("✓ Super admin user already exists")
            if is_production_env() and verify_password("admin123", admin.password_hash):
                print("WARNING: admin@example.com still uses the default password in production. Rotate immediately.", file=sys.stderr)

        print(f"✓ Created {seed_regulators(db)} regulators")
        print(f"✓ Created {seed_library_catalog(db)} seed library items")

        if should_seed_demo_data():
            seed_demo_organization(db, admin)

        print("✓ Database seeding complete")
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
