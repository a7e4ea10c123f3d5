"""Symbol validation and crypto alias expansion."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from functools import lru_cache

from quotewatch.core.exceptions import SymbolValidationError
from quotewatch.core.models.symbols import NormalizedSymbol

MAX_SYMBOL_LENGTH = 10

_SYMBOL_PATTERN = re.compile(r"^[A-Za-z0-9.^-]+$")
_CRYPTO_SUFFIX = ".X"

CRYPTO_ALIASES: Mapping[str, str] = {
    "BTC": "BTC-USD",
    "ETH": "ETH-USD",
    "SOL": "SOL-USD",
    "DOGE": "DOGE-USD",
    "XRP": "XRP-USD",
    "ADA": "ADA-USD",
    "DOT": "DOT-USD",
    "MATIC": "MATIC-USD",
    "LINK": "LINK-USD",
    "UNI": "UNI-USD",
    "AVAX": "AVAX-USD",
    "ATOM": "ATOM-USD",
    "LTC": "LTC-USD",
}


def is_valid_symbol(text: str) -> bool:
    """Non-empty, at most ``MAX_SYMBOL_LENGTH`` characters, letters, digits and ``.^-`` only."""
    return 0 < len(text) <= MAX_SYMBOL_LENGTH and _SYMBOL_PATTERN.fullmatch(text) is not None


def _expand(symbol: str) -> tuple[str, str]:
    if symbol.endswith(_CRYPTO_SUFFIX) and len(symbol) > len(_CRYPTO_SUFFIX):
        return f"{symbol[: -len(_CRYPTO_SUFFIX)]}-USD", "crypto_suffix"
    # only all-caps short tickers are treated as crypto shorthand
    if len(symbol) <= 5 and symbol.isascii() and symbol.isalpha() and symbol.isupper():
        expanded = CRYPTO_ALIASES.get(symbol)
        if expanded is not None:
            return expanded, "alias"
    return symbol, "passthrough"


def expand_symbol(symbol: str) -> str:
    """Apply the alias table without validating."""
    return _expand(symbol)[0]


class SymbolNormalizer:
    """Validates raw symbols and maps crypto shorthand to Yahoo pairs."""

    def normalize(self, raw: str) -> NormalizedSymbol:
        """Validate ``raw``, expand it and validate the expanded form.

        Raises:
            SymbolValidationError: either form is invalid
        """
        if not is_valid_symbol(raw):
            raise SymbolValidationError(raw)
        symbol, rule = _expand(raw)
        if not is_valid_symbol(symbol):
            raise SymbolValidationError(raw, reason=f"expanded symbol {symbol!r} is invalid")
        return NormalizedSymbol(raw=raw, symbol=symbol, rule=rule)

    def partition(self, raws: Iterable[str]) -> tuple[list[NormalizedSymbol], list[str]]:
        """Split raw input into accepted symbols and rejected raw strings.

        Accepted symbols keep input order; a raw string whose normalized form was
        already accepted is dropped so each symbol is fetched once.
        """
        valid: list[NormalizedSymbol] = []
        invalid: list[str] = []
        seen: set[str] = set()
        for raw in raws:
            try:
                normalized = self.normalize(raw)
            except SymbolValidationError:
                invalid.append(raw)
                continue
            if normalized.symbol in seen:
                continue
            seen.add(normalized.symbol)
            valid.append(normalized)
        return valid, invalid


@lru_cache(maxsize=1)
def get_symbol_normalizer() -> SymbolNormalizer:
    return SymbolNormalizer()
