"""
Pytest configuration and fixtures.

Every test gets its own SQLite file (threads allowed, so the parallel
aggregation reads work), a session factory bound to it, and a `make`
factory for seeding rows.
"""
import os

# must be set before anything from wms is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_ALL_ACCESS"] = "false"

from datetime import datetime  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from wms.api.deps import get_db, get_session_factory  # noqa: E402
from wms.core.security import hash_password  # noqa: E402
from wms.db.base import Base  # noqa: E402
from wms.db.session import make_engine, make_session_factory  # noqa: E402
from wms.main import app as fastapi_app  # noqa: E402
from wms.models import (  # noqa: E402
    Adjustment,
    AdjustmentType,
    CurrentInventory,
    InventoryMovement,
    Item,
    ItemEntry,
    MovementType,
    Purchase,
    PurchaseStatus,
    Supplier,
    Transfer,
    TransferItem,
    TransferStatus,
    User,
    UserPermission,
    UserRole,
    Warehouse,
    Withdrawal,
    WithdrawalItem,
    WithdrawalStatus,
)
from wms.schemas.session import GrantOut, SessionUser  # noqa: E402

NOW = datetime(2024, 3, 15, 12, 0, 0)
PASSWORD = "Passw0rd!"

# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'wms.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def broken_factory(tmp_path):
    """Sessions on a database without any tables: every query fails."""
    eng = make_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    yield make_session_factory(eng)
    eng.dispose()


# ============================================================================
# FACTORIES
# ============================================================================


class Factory:

    def __init__(self, db):
        self.db = db
        self._n = 0

    def _seq(self) -> int:
        self._n += 1
        return self._n

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def user(self,
             username=None,
             password=PASSWORD,
             role=UserRole.USER,
             is_active=True,
             **kw):
        n = self._seq()
        return self._save(
            User(
                username=username or f"user{n}",
                email=kw.pop("email", f"user{n}@example.com"),
                password_hash=hash_password(password),
                role=role,
                is_active=is_active,
                **kw,
            ))

    def grant(self, user, permission, expires_at=None, granted_by="SYSTEM"):
        code = getattr(permission, "value", permission)
        return self._save(
            UserPermission(user_id=user.id,
                           permission=code,
                           granted_by=granted_by,
                           expires_at=expires_at))

    def warehouse(self, name=None, **kw):
        return self._save(
            Warehouse(name=name or f"Warehouse {self._seq()}", **kw))

    def supplier(self, name=None, **kw):
        return self._save(Supplier(name=name or f"Supplier {self._seq()}",
                                   **kw))

    def item(self, supplier=None, reorder_level=None, description=None,
             **kw):
        supplier = supplier or self.supplier()
        n = self._seq()
        return self._save(
            Item(
                item_code=kw.pop("item_code", f"ITM-{n:04d}"),
                description=description or f"Item {n}",
                supplier_id=supplier.id,
                reorder_level=reorder_level,
                standard_cost=kw.pop("standard_cost", Decimal("10.00")),
                **kw,
            ))

    def inventory(self, item, warehouse, quantity, total_value=0,
                  avg_unit_cost=0):
        return self._save(
            CurrentInventory(item_id=item.id,
                             warehouse_id=warehouse.id,
                             quantity=Decimal(str(quantity)),
                             avg_unit_cost=Decimal(str(avg_unit_cost)),
                             total_value=Decimal(str(total_value))))

    def movement(self, item, warehouse, movement_type, quantity,
                 created_at=NOW, total_value=0, reference_id=None,
                 notes=None):
        return self._save(
            InventoryMovement(item_id=item.id,
                              warehouse_id=warehouse.id,
                              movement_type=movement_type,
                              quantity=Decimal(str(quantity)),
                              total_value=Decimal(str(total_value)),
                              reference_id=reference_id,
                              notes=notes,
                              created_at=created_at))

    def entry(self,
              item,
              warehouse,
              supplier=None,
              created_at=NOW,
              entry_date=None,
              total_value=100,
              purchase_reference=None,
              quantity=1,
              landed_cost=None,
              notes=None):
        return self._save(
            ItemEntry(
                item_id=item.id,
                supplier_id=(supplier.id if supplier else item.supplier_id),
                warehouse_id=warehouse.id,
                quantity=Decimal(str(quantity)),
                landed_cost=Decimal(str(
                    total_value if landed_cost is None else landed_cost)),
                notes=notes,
                total_value=Decimal(str(total_value)),
                purchase_reference=purchase_reference,
                entry_date=entry_date or created_at,
                created_at=created_at,
            ))

    def purchase(self,
                 supplier,
                 warehouse=None,
                 status=PurchaseStatus.PENDING,
                 total_cost=0,
                 created_at=NOW):
        return self._save(
            Purchase(purchase_order=f"PO-{self._seq():05d}",
                     supplier_id=supplier.id,
                     warehouse_id=warehouse.id if warehouse else None,
                     status=status,
                     total_cost=Decimal(str(total_cost)),
                     created_at=created_at))

    def transfer(self,
                 src,
                 dst,
                 status=TransferStatus.PENDING,
                 created_at=NOW,
                 notes=None,
                 items=()):
        t = Transfer(transfer_number=f"TR-{self._seq():05d}",
                     from_warehouse_id=src.id,
                     to_warehouse_id=dst.id,
                     status=status,
                     notes=notes,
                     transfer_date=created_at,
                     created_at=created_at)
        for item, qty in items:
            t.items.append(
                TransferItem(item_id=item.id, quantity=Decimal(str(qty))))
        return self._save(t)

    def withdrawal(self,
                   warehouse,
                   status=WithdrawalStatus.PENDING,
                   purpose=None,
                   created_at=NOW,
                   values=()):
        w = Withdrawal(withdrawal_number=f"WD-{self._seq():05d}",
                       warehouse_id=warehouse.id,
                       status=status,
                       purpose=purpose,
                       withdrawal_date=created_at,
                       created_at=created_at)
        for v in values:
            w.items.append(
                WithdrawalItem(item_id=self.item().id,
                               quantity=Decimal("1"),
                               unit_cost=Decimal(str(v)),
                               total_value=Decimal(str(v))))
        return self._save(w)

    def adjustment(self,
                   warehouse,
                   adjustment_type=AdjustmentType.DAMAGE,
                   reason="Broken pallet",
                   created_at=NOW):
        return self._save(
            Adjustment(adjustment_number=f"ADJ-{self._seq():05d}",
                       warehouse_id=warehouse.id,
                       adjustment_type=adjustment_type,
                       reason=reason,
                       created_at=created_at))


@pytest.fixture
def make(db):
    return Factory(db)


# ============================================================================
# IDENTITIES
# ============================================================================


def identity_for(user, *permissions, role=None) -> SessionUser:
    """Session user as enrichment would produce it, without touching the DB."""
    return SessionUser(
        id=user.id,
        email=user.email,
        name=user.username,
        username=user.username,
        role=getattr(role or user.role, "value", role or user.role),
        is_active=True,
        permissions=[
            GrantOut(id=f"g{i}",
                     permission=getattr(p, "value", p),
                     granted_at=NOW) for i, p in enumerate(permissions)
        ],
    )


@pytest.fixture
def admin(make):
    return make.user(username="admin", role=UserRole.SUPER_ADMIN)


@pytest.fixture
def admin_identity(admin):
    return identity_for(admin)


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def client(session_factory):

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    fastapi_app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


def login(client, username, password=PASSWORD):
    """Helper to log in through the API and return the auth header."""
    resp = client.post("/api/auth/login",
                       json={"login": username, "password": password})
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}

