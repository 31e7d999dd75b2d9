"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pool_payroll.config import CompanySettings, company_settings
from pool_payroll.database import init_db


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit explicitly; anything left uncommitted is rolled back.
    """
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_user_id(
    x_user_id: Annotated[str | None, Header()] = None
) -> UUID | None:
    """Extract the acting user ID from header, if any."""
    if not x_user_id:
        return None
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-ID format",
        )


def get_company_settings() -> CompanySettings:
    """Company settings built from the environment."""
    return company_settings()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
UserId = Annotated[UUID | None, Depends(get_user_id)]
Company = Annotated[CompanySettings, Depends(get_company_settings)]
