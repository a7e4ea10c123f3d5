"""Symbol models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class NormalizedSymbol:
    raw: str
    symbol: str
    rule: str

    @property
    def aliased(self) -> bool:
        return self.symbol != self.raw

    def __str__(self) -> str:
        return self.symbol
