from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Country:
    id: int
    name: str
    code: str  # ISO-3166 alpha-2
