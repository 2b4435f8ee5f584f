# FILE: wms/services/search_service.py
from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Dict, List

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload, sessionmaker

from wms.core.rbac import has_perm, require_any
from wms.db.parallel import gather_reads
from wms.models.documents import ItemEntry, Transfer, Withdrawal
from wms.models.inventory import Item
from wms.models.permission import Permission
from wms.models.user import User
from wms.models.warehouse import Supplier, Warehouse
from wms.schemas.common import ActionResult, ErrorKind
from wms.schemas.search import SearchFilters, SearchMetadata, SearchResult
from wms.services.dashboard_service import safe_scalar
from wms.services.session_service import display_name

logger = logging.getLogger(__name__)

# also the tie-break order when ranking results
SEARCH_TYPES = ("ITEM", "ITEM_ENTRY", "TRANSFER", "WITHDRAWAL", "WAREHOUSE",
                "SUPPLIER", "USER")

Results = List[SearchResult]


def _money(value: Any) -> str:
    return f"{safe_scalar(value):.2f}"


# ---------- one searcher per type ----------


def _search_items(db: Session, like: str, take: int) -> Results:
    rows = (db.query(Item).options(joinedload(Item.supplier)).filter(
        or_(Item.item_code.ilike(like), Item.description.ilike(like))).order_by(
            Item.item_code).limit(take).all())
    return [
        SearchResult(
            id=i.id,
            type="ITEM",
            title=i.item_code,
            description=i.description,
            metadata=SearchMetadata(
                value=_money(i.standard_cost),
                location=i.supplier.name if i.supplier else None),
        ) for i in rows
    ]


def _search_item_entries(db: Session, like: str, take: int) -> Results:
    rows = (db.query(ItemEntry).options(
        joinedload(ItemEntry.item), joinedload(ItemEntry.supplier),
        joinedload(ItemEntry.warehouse)).filter(
            or_(ItemEntry.purchase_reference.ilike(like),
                ItemEntry.notes.ilike(like))).order_by(
                    ItemEntry.entry_date.desc()).limit(take).all())
    return [
        SearchResult(
            id=e.id,
            type="ITEM_ENTRY",
            title=e.purchase_reference or f"Entry for {e.item.item_code}",
            description=f"{e.item.description} from {e.supplier.name}",
            metadata=SearchMetadata(occurred_at=e.entry_date,
                                    value=_money(e.total_value),
                                    location=e.warehouse.name),
        ) for e in rows
    ]


def _search_transfers(db: Session, like: str, take: int) -> Results:
    rows = (db.query(Transfer).options(
        joinedload(Transfer.from_warehouse),
        joinedload(Transfer.to_warehouse)).filter(
            or_(Transfer.transfer_number.ilike(like),
                Transfer.notes.ilike(like))).order_by(
                    Transfer.transfer_date.desc()).limit(take).all())
    return [
        SearchResult(
            id=t.id,
            type="TRANSFER",
            title=t.transfer_number,
            description=f"{t.from_warehouse.name} → {t.to_warehouse.name}",
            metadata=SearchMetadata(occurred_at=t.transfer_date,
                                    status=t.status.value),
        ) for t in rows
    ]


def _search_withdrawals(db: Session, like: str, take: int) -> Results:
    rows = (db.query(Withdrawal).options(
        joinedload(Withdrawal.warehouse),
        selectinload(Withdrawal.items)).filter(
            or_(Withdrawal.withdrawal_number.ilike(like),
                Withdrawal.purpose.ilike(like))).order_by(
                    Withdrawal.withdrawal_date.desc()).limit(take).all())
    return [
        SearchResult(
            id=w.id,
            type="WITHDRAWAL",
            title=w.withdrawal_number,
            description=w.purpose or "Material withdrawal",
            metadata=SearchMetadata(
                occurred_at=w.withdrawal_date,
                status=w.status.value,
                location=w.warehouse.name,
                value=_money(sum(safe_scalar(i.total_value) for i in w.items)),
            ),
        ) for w in rows
    ]


def _search_warehouses(db: Session, like: str, take: int) -> Results:
    rows = (db.query(Warehouse).options(selectinload(
        Warehouse.current_inventory)).filter(
            or_(Warehouse.name.ilike(like), Warehouse.location.ilike(like),
                Warehouse.description.ilike(like))).order_by(
                    Warehouse.name).limit(take).all())
    return [
        SearchResult(
            id=w.id,
            type="WAREHOUSE",
            title=w.name,
            description=w.description or "Warehouse facility",
            metadata=SearchMetadata(
                location=w.location,
                value=f"{len(w.current_inventory)} items"),
        ) for w in rows
    ]


def _search_suppliers(db: Session, like: str, take: int) -> Results:
    rows = (db.query(Supplier).options(
        selectinload(Supplier.items),
        selectinload(Supplier.item_entries)).filter(
            or_(Supplier.name.ilike(like), Supplier.contact_info.ilike(like),
                Supplier.address.ilike(like))).order_by(
                    Supplier.name).limit(take).all())
    return [
        SearchResult(
            id=s.id,
            type="SUPPLIER",
            title=s.name,
            description=s.contact_info or "Supplier",
            metadata=SearchMetadata(
                value=f"{len(s.items)} items, {len(s.item_entries)} entries"),
        ) for s in rows
    ]


def _search_users(db: Session, like: str, take: int) -> Results:
    rows = (db.query(User).filter(
        User.is_active.is_(True),
        or_(User.username.ilike(like), User.first_name.ilike(like),
            User.last_name.ilike(like), User.email.ilike(like),
            User.employee_id.ilike(like))).order_by(
                User.username).limit(take).all())
    return [
        SearchResult(
            id=u.id,
            type="USER",
            title=display_name(u.first_name, u.last_name, u.username),
            description=f"@{u.username} - {u.position or u.role.value}",
            metadata=SearchMetadata(occurred_at=u.last_login_at,
                                    status="Active",
                                    location=u.department),
        ) for u in rows
    ]


SEARCHERS: Dict[str, Callable[..., Results]] = {
    "ITEM": _search_items,
    "ITEM_ENTRY": _search_item_entries,
    "TRANSFER": _search_transfers,
    "WITHDRAWAL": _search_withdrawals,
    "WAREHOUSE": _search_warehouses,
    "SUPPLIER": _search_suppliers,
    "USER": _search_users,
}


def rank(results: Results, term: str) -> Results:
    """Results whose title or description contain the term first, then by type."""

    def key(r: SearchResult):
        mentioned = term in r.title.lower() or term in r.description.lower()
        return (not mentioned, SEARCH_TYPES.index(r.type))

    return sorted(results, key=key)


async def global_search(
    identity: Any,
    session_factory: sessionmaker,
    filters: SearchFilters,
) -> ActionResult[List[SearchResult]]:
    """
    Case-insensitive substring search across the main entities.

    Each type is read concurrently on its own session. Without a type filter
    every type gets an equal share of `limit`; user accounts are only
    searched for callers who may manage users.
    """
    if not identity:
        return ActionResult.unauthorized()

    term = (filters.query or "").strip().lower()
    if not term:
        return ActionResult.fail(ErrorKind.VALIDATION,
                                 "Search query is required")

    wanted = (filters.type or "").strip().upper()
    if wanted and wanted not in SEARCHERS:
        return ActionResult.fail(ErrorKind.VALIDATION, "Invalid search type")

    see_users = has_perm(identity, Permission.MANAGE_USERS)
    if wanted == "USER" and not see_users:
        return require_any(identity, [Permission.MANAGE_USERS])

    if wanted:
        types = [wanted]
        take = filters.limit
    else:
        types = [t for t in SEARCH_TYPES if t != "USER" or see_users]
        take = max(1, filters.limit // len(SEARCH_TYPES))

    like = f"%{term}%"
    reads = {t: partial(SEARCHERS[t], like=like, take=take) for t in types}

    try:
        found = await gather_reads(session_factory, reads)
    except Exception:
        logger.exception("Error performing global search for %r", term)
        return ActionResult.fail(ErrorKind.DATA_ACCESS, "Search failed")

    results = [r for t in types for r in found[t]]
    return ActionResult.ok(rank(results, term)[:filters.limit])
