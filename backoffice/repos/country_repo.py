from __future__ import annotations

from typing import Protocol

from backoffice.models.country import Country


class CountryRepo(Protocol):
    async def exists(self, country_id: int) -> bool: ...
    async def list_all(self) -> list[Country]: ...


class InMemoryCountryRepo:
    """Read-only from the registration flow; add() is for fixtures."""

    def __init__(self) -> None:
        self._by_id: dict[int, Country] = {}

    async def exists(self, country_id: int) -> bool:
        return country_id in self._by_id

    async def list_all(self) -> list[Country]:
        return sorted(self._by_id.values(), key=lambda c: c.name)

    def add(self, country: Country) -> None:
        if country.id in self._by_id:
            raise ValueError(f"country {country.id} already exists")
        self._by_id[country.id] = country

    def clear(self) -> None:
        self._by_id.clear()
