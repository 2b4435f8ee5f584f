from sqlalchemy import Column, String, DateTime, JSON, ForeignKey

from wms.db.base import Base
from wms.models.common import Id
from wms.utils.timezone import now_local


class SystemSetting(Base):
    """Key/value store for business settings (one JSON document per key)."""
    __tablename__ = "system_settings"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=False)

    updated_at = Column(DateTime,
                        default=now_local,
                        onupdate=now_local,
                        nullable=False)
    updated_by_id = Column(Id, ForeignKey("users.id"), nullable=True)
