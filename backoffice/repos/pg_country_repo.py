"""PostgreSQL implementation of CountryRepo."""

from __future__ import annotations

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.db.tables import CountryRow
from backoffice.models.country import Country


class PgCountryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, country_id: int) -> bool:
        stmt = select(exists().where(CountryRow.id == country_id))
        return bool((await self._session.execute(stmt)).scalar())

    async def list_all(self) -> list[Country]:
        stmt = select(CountryRow).order_by(CountryRow.name)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [Country(id=r.id, name=r.name, code=r.code) for r in rows]
