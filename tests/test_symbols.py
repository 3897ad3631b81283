"""Unit tests for symbol normalization and provider mapping."""

import pytest

from idxwatch.providers.symbols import (
    COMPOSITE_ALIAS,
    COMPOSITE_INDEX,
    display_symbol,
    from_provider,
    is_composite,
    normalize_symbol,
    to_provider,
)


class TestToProvider:
    """Tests for canonical -> provider symbol mapping."""

    def test_domestic_symbol_gets_suffix(self):
        assert to_provider("BBCA") == "BBCA.JK"

    def test_lowercase_is_uppercased(self):
        assert to_provider("bbca") == "BBCA.JK"

    def test_no_double_suffix(self):
        assert to_provider("BBCA.JK") == "BBCA.JK"

    def test_composite_index_passes_through(self):
        assert to_provider(COMPOSITE_INDEX) == "^JKSE"

    def test_other_index_passes_through(self):
        assert to_provider("^GSPC") == "^GSPC"


class TestFromProvider:
    """Tests for provider -> canonical symbol mapping."""

    def test_suffix_is_stripped(self):
        assert from_provider("BBRI.JK") == "BBRI"

    def test_composite_index_unchanged(self):
        assert from_provider("^JKSE") == COMPOSITE_INDEX

    @pytest.mark.parametrize("symbol", ["BBCA", "TLKM", "GOTO", COMPOSITE_INDEX])
    def test_mapping_is_reversible(self, symbol):
        assert from_provider(to_provider(symbol)) == symbol


class TestDisplay:
    def test_composite_alias(self):
        assert display_symbol(COMPOSITE_INDEX) == COMPOSITE_ALIAS

    def test_plain_symbol_shown_as_is(self):
        assert display_symbol("ASII") == "ASII"

    def test_is_composite(self):
        assert is_composite("^JKSE")
        assert not is_composite("BBCA")


class TestNormalize:
    def test_strips_and_uppercases(self):
        assert normalize_symbol("  bbca ") == "BBCA"

    def test_removes_stray_characters(self):
        assert normalize_symbol("bb-ca!") == "BBCA"

    def test_keeps_index_marker(self):
        assert normalize_symbol("^jkse") == "^JKSE"

    def test_empty_input(self):
        assert normalize_symbol("   ") == ""

    def test_market_suffix_dropped(self):
        assert normalize_symbol("bbca.jk") == "BBCA"

    def test_normalized_symbol_survives_provider_round_trip(self):
        symbol = normalize_symbol(" tlkm.JK ")
        assert from_provider(to_provider(symbol)) == symbol
