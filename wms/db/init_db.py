# wms/db/init_db.py
from __future__ import annotations

import argparse
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wms.core.config import settings
from wms.core.security import hash_password
from wms.db.base import Base
from wms.db.session import engine as default_engine

# Import all models so metadata is complete
from wms.models import Permission, User, UserPermission, UserRole  # noqa: F401


def print_tables(bind: Engine) -> set:
    names = inspect(bind).get_table_names()
    print("Existing tables:", names)
    return set(names)


def seed_admin(db: Session) -> Optional[User]:
    """
    Create the SUPER_ADMIN account once and make sure it holds every
    permission tag. Safe to run multiple times.
    """
    if not settings.ADMIN_PASSWORD:
        print("ADMIN_PASSWORD not set; skipping admin seed.")
        return None

    admin = (db.query(User).filter(
        User.username == settings.ADMIN_USERNAME).first())
    if not admin:
        admin = User(
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL or None,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            first_name="System",
            last_name="Administrator",
            role=UserRole.SUPER_ADMIN,
            is_active=True,
        )
        db.add(admin)
        db.flush()

    have = {p.permission for p in admin.permissions}
    for perm in Permission:
        if perm.value not in have:
            admin.permissions.append(
                UserPermission(permission=perm.value, granted_by="SYSTEM"))
    return admin


def run(fresh: bool = False, bind: Optional[Engine] = None) -> None:
    bind = bind or default_engine

    if fresh:
        print("WARNING: Dropping ALL tables (dev only) …")
        Base.metadata.drop_all(bind=bind)

    print("Creating all missing tables …")
    Base.metadata.create_all(bind=bind)
    print_tables(bind)

    try:
        with Session(bind) as db:
            if seed_admin(db):
                db.commit()
                print(f"Admin '{settings.ADMIN_USERNAME}' seeded with all permissions.")
    except SQLAlchemyError as e:
        print("Seeding failed:", e)
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Initialize DB (create tables, seed admin).")
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Drop & recreate all tables (DEV ONLY).",
    )
    args = parser.parse_args()
    run(fresh=args.fresh)
