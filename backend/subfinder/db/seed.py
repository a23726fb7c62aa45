"""Demo data for a fresh install.

Run with ``python -m subfinder.db.seed`` or set ``SUBFINDER_SEED_DEMO_DATA=true``.
"""
from __future__ import annotations

import logging

from sqlalchemy import func, select

from subfinder.core.security import get_password_hash
from subfinder.db.store import Store
from subfinder.models.organization import Organization
from subfinder.models.school_class import SchoolClass
from subfinder.models.user import User, UserRole

logger = logging.getLogger(__name__)

ALREADY_SEEDED = "Database already seeded"
SEEDED = "Database seeded successfully"

DEMO_USERS = [
    ("admin", "admin-password", "admin@example.com", "System", "Administrator", UserRole.admin),
    ("manager", "manager-password", "manager@example.com", "School", "Manager", UserRole.org_manager),
    ("substitute", "substitute-password", "substitute@example.com", "Jane", "Substitute", UserRole.substitute),
]


def seed_demo_data(store: Store) -> str:
    # Hash outside the store lock.
    hashed = {username: get_password_hash(password) for username, password, *_ in DEMO_USERS}

    with store.session() as db:
        admin_count = db.execute(
            select(func.count()).select_from(User).where(User.role == UserRole.admin)
        ).scalar_one()
        if admin_count > 0:
            return ALREADY_SEEDED

        organization = Organization(
            name="Demo School District",
            description="A sample school district for testing",
        )
        db.add(organization)
        db.flush()

        for username, _password, email, first_name, last_name, role in DEMO_USERS:
            db.add(
                User(
                    username=username,
                    hashed_password=hashed[username],
                    email=email,
                    first_name=first_name,
                    last_name=last_name,
                    role=role,
                    organization_id=organization.id,
                    is_active=True,
                )
            )

        db.add(
            SchoolClass(
                name="5th Grade Math",
                organization_id=organization.id,
                subject="Mathematics",
                grade_level="5",
                room_number="101",
            )
        )

    logger.info("Seeded demo organization, users and class")
    return SEEDED


if __name__ == "__main__":  # pragma: no cover
    from subfinder.core.config import get_settings
    from subfinder.db.bootstrap import ensure_runtime_schema
    from subfinder.db.session import create_store

    logging.basicConfig(level=logging.INFO)
    demo_store = create_store(get_settings())
    ensure_runtime_schema(demo_store)
    print(seed_demo_data(demo_store))
