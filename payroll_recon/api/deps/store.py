from __future__ import annotations

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_recon.core.errors import ConflictError, InputError, NotFoundError, PayrollError
from payroll_recon.db.session import get_db
from payroll_recon.db.store import RecordStore


async def get_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def http_error(exc: PayrollError) -> HTTPException:
    """Engine error -> HTTP error, message kept as the detail."""
    if isinstance(exc, InputError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=exc.message)
