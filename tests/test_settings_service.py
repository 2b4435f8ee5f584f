"""
System settings: defaults, permission-gated partial updates, persistence
and the audit row written for every change.
"""
import pytest
from conftest import identity_for

from wms.models import AuditLog, Permission
from wms.schemas.common import ErrorKind
from wms.schemas.settings import SystemSettings, SystemSettingsUpdate
from wms.schemas.session import SessionUser
from wms.services.settings_service import (
    SettingsRepository,
    SqlSettingsRepository,
    get_system_settings,
    update_system_settings,
)


class MemoryRepository(SettingsRepository):

    def __init__(self, data=None):
        self.data = data
        self.saved_by = None

    def load(self):
        return self.data

    def save(self, data, updated_by=None):
        self.data = dict(data)
        self.saved_by = updated_by


class FailingRepository(MemoryRepository):

    def load(self):
        raise RuntimeError("storage offline")


@pytest.fixture
def operator(make):
    return identity_for(make.user(), Permission.SYSTEM_SETTINGS)


def test_defaults_when_nothing_stored(db, make):
    result = get_system_settings(identity_for(make.user()),
                                 SqlSettingsRepository(db))

    assert result.success
    assert result.data == SystemSettings()
    assert result.data.default_costing_method == "WEIGHTED_AVERAGE"


def test_read_requires_identity(db):
    result = get_system_settings(None, SqlSettingsRepository(db))

    assert result.error_kind == ErrorKind.UNAUTHORIZED


def test_stored_values_override_defaults():
    repo = MemoryRepository({"maintenance_mode": True, "legacy_key": 1})

    viewer = SessionUser(id="u1", name="Viewer", is_active=True)

    result = get_system_settings(viewer, repo)

    assert result.data.maintenance_mode is True
    assert result.data.backup_frequency == "DAILY"


def test_update_requires_system_settings(db, make):
    plain = identity_for(make.user())

    result = update_system_settings(plain, SqlSettingsRepository(db),
                                    SystemSettingsUpdate(maintenance_mode=True))

    assert result.error_kind == ErrorKind.FORBIDDEN
    assert SqlSettingsRepository(db).load() is None


def test_partial_update_persists(db, operator):
    update_system_settings(operator, SqlSettingsRepository(db),
                           SystemSettingsUpdate(backup_frequency="WEEKLY"))
    result = update_system_settings(
        operator, SqlSettingsRepository(db),
        SystemSettingsUpdate(system_name="Main Depot"))

    assert result.success
    stored = get_system_settings(operator, SqlSettingsRepository(db)).data
    assert stored.backup_frequency == "WEEKLY"
    assert stored.system_name == "Main Depot"


def test_update_writes_audit_row(db, operator):
    update_system_settings(operator,
                           SqlSettingsRepository(db),
                           SystemSettingsUpdate(maintenance_mode=True),
                           db=db)

    log = db.query(AuditLog).one()
    assert log.table_name == "system_settings"
    assert log.action == "UPDATE"
    assert log.user_id == operator.id
    assert log.changed_fields == ["maintenance_mode"]


def test_update_records_who_saved(operator):
    repo = MemoryRepository()

    update_system_settings(operator, repo,
                           SystemSettingsUpdate(email_notifications=False))

    assert repo.saved_by == operator.id
    assert repo.data["email_notifications"] is False


def test_storage_failure_is_data_access(operator):
    result = update_system_settings(operator, FailingRepository(),
                                    SystemSettingsUpdate(maintenance_mode=True))

    assert result.error_kind == ErrorKind.DATA_ACCESS
    assert result.error == "Failed to update system settings"
