"""
Global search across items, documents, locations, suppliers and users.
"""
import asyncio

import pytest
from conftest import identity_for

from wms.models import Permission
from wms.schemas.common import ErrorKind
from wms.schemas.search import SearchFilters
from wms.services.search_service import global_search, rank

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def _search(identity, session_factory, query, **kw):
    return asyncio.run(
        global_search(identity, session_factory,
                      SearchFilters(query=query, **kw)))


@pytest.fixture
def clerk(make):
    return identity_for(make.user(username="clerk"))


@pytest.fixture
def manager(make):
    return identity_for(make.user(username="manager"), Permission.MANAGE_USERS)


@pytest.fixture
def catalog(make):
    acme = make.supplier(name="Acme Fasteners",
                         contact_info="sales@acme.test")
    main = make.warehouse(name="Main Depot", location="Dock Road")
    annex = make.warehouse(name="Annex")
    bolt = make.item(supplier=acme, item_code="BOLT-10",
                     description="Hex bolt M10")
    make.inventory(bolt, main, 40, total_value=400)
    make.entry(bolt, main, purchase_reference="PO-BOLT-1", total_value=80)
    make.transfer(main, annex, notes="bolt rebalance")
    make.withdrawal(main, purpose="Bolt replacement", values=(12.5, ))
    make.user(username="bolton", first_name="Bob", last_name="Olten",
              position="Picker")
    make.user(username="boltz", is_active=False)
    return {"acme": acme, "main": main}


# ============================================================================
# VALIDATION & ACCESS
# ============================================================================


def test_requires_identity_and_query(session_factory, clerk):
    assert _search(None, session_factory, "bolt").error_kind == \
        ErrorKind.UNAUTHORIZED

    blank = _search(clerk, session_factory, "   ")
    assert blank.error_kind == ErrorKind.VALIDATION
    assert blank.error == "Search query is required"

    bad_type = _search(clerk, session_factory, "bolt", type="INVOICE")
    assert bad_type.error_kind == ErrorKind.VALIDATION
    assert bad_type.error == "Invalid search type"


def test_user_search_needs_manage_users(session_factory, clerk, catalog):
    result = _search(clerk, session_factory, "bolt", type="user")

    assert result.error_kind == ErrorKind.FORBIDDEN


def test_data_access_failure(broken_factory, clerk):
    result = _search(clerk, broken_factory, "bolt")

    assert result.error_kind == ErrorKind.DATA_ACCESS
    assert result.error == "Search failed"


# ============================================================================
# RESULTS
# ============================================================================


def test_search_across_types_ranked(session_factory, clerk, catalog):
    result = _search(clerk, session_factory, "BOLT")

    types = [r.type for r in result.data]
    # the transfer only matches on its notes, so it ranks last
    assert types == ["ITEM", "ITEM_ENTRY", "WITHDRAWAL", "TRANSFER"]
    item, entry, withdrawal, transfer = result.data
    assert item.title == "BOLT-10"
    assert item.metadata.value == "10.00"
    assert item.metadata.location == "Acme Fasteners"
    assert entry.title == "PO-BOLT-1"
    assert entry.description == "Hex bolt M10 from Acme Fasteners"
    assert withdrawal.metadata.value == "12.50"
    assert withdrawal.metadata.location == "Main Depot"
    assert transfer.description == "Main Depot → Annex"
    assert transfer.metadata.status == "PENDING"


def test_manager_also_finds_active_users(session_factory, manager, catalog):
    result = _search(manager, session_factory, "bolt", type="USER")

    (user, ) = result.data
    assert user.title == "Bob Olten"
    assert user.description == "@bolton - Picker"
    assert user.metadata.status == "Active"

    everything = _search(manager, session_factory, "bolt")
    assert "USER" in {r.type for r in everything.data}


def test_warehouse_and_supplier_counts(session_factory, clerk, catalog):
    (warehouse, ) = _search(clerk, session_factory, "dock",
                            type="WAREHOUSE").data
    (supplier, ) = _search(clerk, session_factory, "acme",
                           type="SUPPLIER").data

    assert warehouse.title == "Main Depot"
    assert warehouse.description == "Warehouse facility"
    assert warehouse.metadata.value == "1 items"
    assert supplier.description == "sales@acme.test"
    assert supplier.metadata.value == "1 items, 1 entries"


def test_limit_is_shared_between_types(session_factory, make, clerk):
    for n in range(3):
        make.item(item_code=f"CLIP-{n}", description="Spring clip")

    shared = _search(clerk, session_factory, "clip", limit=7)
    items_only = _search(clerk, session_factory, "clip", type="ITEM", limit=7)
    capped = _search(clerk, session_factory, "clip", type="ITEM", limit=2)

    assert len(shared.data) == 1
    assert [r.title for r in items_only.data] == ["CLIP-0", "CLIP-1", "CLIP-2"]
    assert len(capped.data) == 2


def test_rank_prefers_mentions_then_type(session_factory, clerk, catalog):
    result = _search(clerk, session_factory, "bolt")

    assert rank(list(reversed(result.data)), "bolt") == result.data
