"""
Partial update helper shared by the resource routes.
"""
from typing import Any, Dict, Iterable
from fastapi import HTTPException, status


def apply_update(record, changes: Dict[str, Any], required: Iterable[str] = ()) -> None:
    """
    Copy explicitly supplied fields onto a model instance.

    Args:
        record: SQLAlchemy model instance
        changes: Output of ``model_dump(exclude_unset=True)``
        required: Fields that may be omitted but not cleared

    Raises:
        HTTPException: 400 if a required field is set to null
    """
    for field in required:
        if field in changes and changes[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be empty"
            )
    for field, value in changes.items():
        setattr(record, field, value)
