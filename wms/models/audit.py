from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    JSON,
    Text,
)
from sqlalchemy.orm import relationship

from wms.db.base import Base
from wms.models.common import Id, new_id
from wms.utils.timezone import now_local


class AuditLog(Base):
    """
    Audit trail.
    Every CREATE / UPDATE / DELETE on managed records should write here.
    """
    __tablename__ = "audit_logs"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(Id, primary_key=True, default=new_id)

    user_id = Column(Id, ForeignKey("users.id"),
                     nullable=True)  # system jobs may be null
    user_email = Column(String(191), nullable=True)
    action = Column(String(20), nullable=False)  # CREATE / UPDATE / DELETE

    table_name = Column(String(255), nullable=False, index=True)
    record_id = Column(String(100), nullable=False)

    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    changed_fields = Column(JSON, nullable=True)  # list[str]

    transaction_type = Column(String(100), nullable=True)
    reference_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    ip_address = Column(String(45), nullable=True)  # IPv4/IPv6
    user_agent = Column(String(255), nullable=True)

    timestamp = Column(DateTime, default=now_local, nullable=False, index=True)

    user = relationship("User")
