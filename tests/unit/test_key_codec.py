"""
Unit Tests for the Composite Key Codec.

Test Aspects Covered:
    ✅ Business Logic: Fixed dimension order, "all" tokens
    ✅ Edge Cases: Grouper permutations, empty vs. omitted dimensions
    ✅ Error Handling: Unknown dimensions in patterns
"""

from __future__ import annotations

import pytest

from budget_cache.caching.key_codec import (
    decode_tokens,
    encode_key,
    encode_token,
    matches,
)
from budget_cache.domain.entities import BudgetQuery


class TestEncodeKey:
    """Tests for encode_key."""

    def test_full_query_encodes_in_fixed_order(self) -> None:
        query = BudgetQuery(
            period_id="2024-05", estudio_id=5, grouper_ids=[3, 1], payment_method="credit"
        )

        assert encode_key(query) == "period:2024-05|estudio:5|groupers:1,3|payment:credit"

    def test_missing_dimensions_encode_to_all(self) -> None:
        key = encode_key(BudgetQuery(period_id="2024-05"))

        assert key == "period:2024-05|estudio:all|groupers:all|payment:all"

    def test_grouper_permutations_share_a_key(self) -> None:
        """
        SCENARIO: Same groupers in different order
        EXPECTED: Identical keys
        """
        a = encode_key(BudgetQuery(period_id="p1", grouper_ids=[3, 1, 2]))
        b = encode_key(BudgetQuery(period_id="p1", grouper_ids=[1, 2, 3]))

        assert a == b

    def test_groupers_sorted_numerically(self) -> None:
        key = encode_key(BudgetQuery(period_id="p1", grouper_ids=[10, 9, 100]))

        assert "groupers:9,10,100" in key

    def test_empty_and_omitted_dimensions_are_equivalent(self) -> None:
        """
        SCENARIO: Explicit None/empty values vs. omitted fields
        EXPECTED: Identical keys
        """
        omitted = encode_key(BudgetQuery())
        explicit = encode_key(
            BudgetQuery(estudio_id=None, grouper_ids=[], payment_method=None)
        )

        assert omitted == explicit

    def test_null_empty_and_omitted_groupers_share_a_key(self) -> None:
        """
        SCENARIO: grouper_ids given as None (e.g. a JSON null), [] or omitted
        EXPECTED: All three queries are valid and produce the same key
        """
        null = BudgetQuery(period_id="p1", grouper_ids=None)
        empty = BudgetQuery(period_id="p1", grouper_ids=[])
        omitted = BudgetQuery(period_id="p1")

        assert null.grouper_ids == ()
        assert not null.has_grouper_scope
        assert encode_key(null) == encode_key(empty) == encode_key(omitted)

    def test_explicit_all_payment_equals_omitted(self) -> None:
        assert encode_key(BudgetQuery(period_id="p1", payment_method="all")) == encode_key(
            BudgetQuery(period_id="p1")
        )

    def test_estudio_zero_is_not_all(self) -> None:
        key = encode_key(BudgetQuery(period_id="p1", estudio_id=0))

        assert "estudio:0" in key

    def test_encoding_does_not_reorder_query(self) -> None:
        query = BudgetQuery(period_id="p1", grouper_ids=[3, 1, 2])

        encode_key(query)

        assert query.grouper_ids == (3, 1, 2)


class TestDecodeAndMatch:
    """Tests for decode_tokens and matches."""

    def test_decode_tokens_round_trip_fields(self) -> None:
        key = encode_key(BudgetQuery(period_id="p1", estudio_id=7))

        tokens = decode_tokens(key)

        assert tokens == {
            "period_id": "period:p1",
            "estudio_id": "estudio:7",
            "grouper_ids": "groupers:all",
            "payment_method": "payment:all",
        }

    def test_absent_pattern_fields_are_wildcards(self) -> None:
        key = encode_key(BudgetQuery(period_id="p1", estudio_id=7, payment_method="cash"))

        assert matches(key, {"period_id": "p1"})
        assert matches(key, {})

    def test_none_in_pattern_matches_only_all_token(self) -> None:
        scoped = encode_key(BudgetQuery(period_id="p1", estudio_id=7))
        unscoped = encode_key(BudgetQuery(period_id="p1"))

        assert not matches(scoped, {"estudio_id": None})
        assert matches(unscoped, {"estudio_id": None})

    def test_match_is_exact_not_substring(self) -> None:
        """
        SCENARIO: Period "p1" vs. stored period "p10"
        EXPECTED: No match (per-token equality)
        """
        key = encode_key(BudgetQuery(period_id="p10"))

        assert not matches(key, {"period_id": "p1"})

    def test_delimiters_in_identifiers_are_escaped(self) -> None:
        key = encode_key(BudgetQuery(period_id="2024|05", payment_method="a:b%"))

        assert key == "period:2024%7C05|estudio:all|groupers:all|payment:a%3Ab%25"
        assert decode_tokens(key)["period_id"] == "period:2024%7C05"
        assert matches(key, {"period_id": "2024|05", "payment_method": "a:b%"})

    def test_escaping_keeps_distinct_periods_apart(self) -> None:
        piped = encode_key(BudgetQuery(period_id="2024|05"))

        assert not matches(piped, {"period_id": "2024"})
        assert not matches(piped, {"period_id": "2024%7C05"})

    def test_unknown_dimension_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown query dimension"):
            encode_token("currency", "EUR")
