"""
Valuation Engine - Asset Identifier Resolver.

============================================================
RESPONSIBILITY
============================================================
Classifies user tokens into asset identifiers.

- Purely syntactic, no network access
- "gold" (any case) is the gold commodity
- Uppercase letters/digits up to 10 characters are equity symbols
- Any other well-formed token is a CoinGecko id

============================================================
AMBIGUITY
============================================================
An all-caps crypto id (e.g. "1INCH") passes the equity syntax check
and is classified as an equity. Type crypto ids in lowercase.

============================================================
"""

import re
import unicodedata
from typing import Iterable, List

from core.assets import EQUITY_SYMBOL_PATTERN, GOLD_KEY, AssetIdentifier
from core.exceptions import EmptyTokenError, InvalidSyntaxError


TOKEN_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


def resolve(token: str) -> AssetIdentifier:
    """
    Classify a single token.

    Raises:
        EmptyTokenError: If the token is blank
        InvalidSyntaxError: If the token contains disallowed characters
    """
    if token is None:
        raise EmptyTokenError("")

    stripped = token.strip()
    if not stripped:
        raise EmptyTokenError(token)

    if stripped.lower() == GOLD_KEY:
        return AssetIdentifier.gold()

    if not TOKEN_PATTERN.fullmatch(stripped):
        raise InvalidSyntaxError(token, _describe_violation(stripped))

    if EQUITY_SYMBOL_PATTERN.fullmatch(stripped):
        return AssetIdentifier.equity(stripped)

    return AssetIdentifier.crypto(stripped)


def resolve_all(tokens: Iterable[str]) -> List[AssetIdentifier]:
    """Resolve tokens in order, failing on the first bad one."""
    return [resolve(token) for token in tokens]


def _describe_violation(token: str) -> str:
    if not token[0].isascii() or not token[0].isalnum():
        return "must start with a letter or digit"
    for char in token:
        if TOKEN_PATTERN.fullmatch("a" + char):
            continue
        if unicodedata.category(char).startswith("C"):
            return f"contains control character U+{ord(char):04X}"
        if char.isspace():
            return "contains whitespace"
        return f"contains disallowed character {char!r}"
    return "malformed token"
