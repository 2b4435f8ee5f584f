# wms/models/common.py
import uuid

from sqlalchemy import Numeric, String

Money = Numeric(14, 2)
Qty = Numeric(14, 4)
Id = String(32)


def new_id() -> str:
    return uuid.uuid4().hex
