from typing import Any
from pydantic import BaseModel

class RecordNotFoundError(Exception):
    """Raised when a record does not exist within the caller's organization"""
    pass

def apply_update(record: Any, data: BaseModel) -> Any:
    """
    Copy the fields the client actually sent onto an ORM row

    An explicit null is ignored for columns that cannot be null.
    """
    columns = record.__table__.columns
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in columns and not columns[field].nullable:
            continue
        setattr(record, field, value)
    return record
