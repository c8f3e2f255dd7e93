"""
Tests for the asset identifier resolver.
"""

import pytest

from core.assets import AssetIdentifier, AssetKind
from core.exceptions import EmptyTokenError, InvalidSyntaxError
from valuation_engine.identifiers import resolve, resolve_all


class TestResolve:
    """Tests for resolve()."""

    @pytest.mark.parametrize("token", ["gold", "GOLD", "Gold", "  gold  "])
    def test_gold_any_case(self, token):
        """'gold' in any case resolves to the gold commodity."""
        assert resolve(token) == AssetIdentifier.gold()

    @pytest.mark.parametrize("token", ["AAPL", "NVDA", "BRK", "X", "ABCDEFGHIJ"])
    def test_uppercase_is_equity(self, token):
        """Uppercase letters/digits up to 10 characters are equities."""
        identifier = resolve(token)

        assert identifier.kind == AssetKind.EQUITY
        assert identifier.key == token

    @pytest.mark.parametrize("token", ["bitcoin", "ethereum", "shiba-inu", "usd-coin", "Solana"])
    def test_other_tokens_are_crypto(self, token):
        """Everything else that is well formed is a CoinGecko id."""
        identifier = resolve(token)

        assert identifier.kind == AssetKind.CRYPTO
        assert identifier.key == token.lower()

    def test_long_uppercase_is_crypto(self):
        """More than 10 uppercase characters cannot be an equity."""
        assert resolve("ABCDEFGHIJK").kind == AssetKind.CRYPTO

    def test_all_caps_crypto_resolves_as_equity(self):
        """Known ambiguity: all-caps crypto ids look like equities."""
        assert resolve("1INCH").kind == AssetKind.EQUITY

    def test_surrounding_whitespace_stripped(self):
        assert resolve("  AAPL\t") == AssetIdentifier.equity("AAPL")

    @pytest.mark.parametrize("token", ["", "   ", "\t\n"])
    def test_empty_token(self, token):
        with pytest.raises(EmptyTokenError):
            resolve(token)

    @pytest.mark.parametrize(
        "token,reason",
        [
            ("bit coin", "whitespace"),
            ("btc$", "'$'"),
            ("-eth", "start with a letter or digit"),
            ("eth\x00", "control character"),
        ],
    )
    def test_invalid_syntax(self, token, reason):
        """Malformed tokens name the violation."""
        with pytest.raises(InvalidSyntaxError) as exc_info:
            resolve(token)

        assert reason in exc_info.value.reason
        assert exc_info.value.token == token


class TestResolveAll:
    """Tests for resolve_all()."""

    def test_preserves_order(self):
        identifiers = resolve_all(["bitcoin", "AAPL", "gold"])

        assert [i.kind for i in identifiers] == [AssetKind.CRYPTO, AssetKind.EQUITY, AssetKind.GOLD]

    def test_first_bad_token_fails(self):
        with pytest.raises(InvalidSyntaxError) as exc_info:
            resolve_all(["AAPL", "bad token", "also bad!"])

        assert exc_info.value.token == "bad token"
