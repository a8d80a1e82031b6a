from __future__ import annotations

from typed_defaults.conversion import (
    ABSENT,
    FLOAT,
    INT,
    INVALID,
    STR,
    list_of,
    mapping_of,
    optional_of,
)


def test_optional_present_delegates_to_inner() -> None:
    conversion = optional_of(INT)
    assert conversion.encode(2) == 2
    assert conversion.decode(2) == 2


def test_optional_absent_encodes_to_absent() -> None:
    assert optional_of(STR).encode(None) is ABSENT


def test_optional_decode_keeps_inner_failure() -> None:
    assert optional_of(INT).decode("not an int") is INVALID


def test_list_round_trip_preserves_order() -> None:
    conversion = list_of(INT)
    encoded = conversion.encode([5, 6, 1])
    assert encoded == [5, 6, 1]
    assert conversion.decode(encoded) == [5, 6, 1]


def test_empty_list_round_trip() -> None:
    conversion = list_of(STR)
    assert conversion.decode(conversion.encode([])) == []


def test_list_decode_is_all_or_nothing() -> None:
    assert list_of(INT).decode([1, "2", 3]) is INVALID


def test_list_decode_requires_sequence() -> None:
    assert list_of(INT).decode({"a": 1}) is INVALID
    assert list_of(STR).decode("abc") is INVALID


def test_list_encode_accepts_tuples_but_not_strings() -> None:
    assert list_of(INT).encode((1, 2)) == [1, 2]
    assert list_of(STR).encode("ab") is INVALID


def test_list_encode_fails_on_any_bad_element() -> None:
    assert list_of(INT).encode([1, "2"]) is INVALID


def test_list_of_optional_cannot_hold_absent_elements() -> None:
    assert list_of(optional_of(INT)).encode([1, None]) is INVALID
    assert list_of(optional_of(INT)).encode([1, 2]) == [1, 2]


def test_mapping_round_trip() -> None:
    conversion = mapping_of(FLOAT)
    value = {"k1": 1.1, "k2": 2.2}
    assert conversion.decode(conversion.encode(value)) == value


def test_empty_mapping_round_trip() -> None:
    conversion = mapping_of(INT)
    assert conversion.decode(conversion.encode({})) == {}


def test_mapping_decode_is_all_or_nothing() -> None:
    assert mapping_of(FLOAT).decode({"k1": 1.1, "k2": "2.2"}) is INVALID


def test_mapping_rejects_non_string_keys() -> None:
    assert mapping_of(INT).decode({1: 1}) is INVALID
    assert mapping_of(INT).encode({1: 1}) is INVALID


def test_mapping_encode_fails_on_absent_value() -> None:
    assert mapping_of(optional_of(STR)).encode({"a": None}) is INVALID


def test_nested_composition_round_trip() -> None:
    conversion = optional_of(mapping_of(list_of(optional_of(INT))))
    value = {"a": [1, 2], "b": []}
    assert conversion.decode(conversion.encode(value)) == value
    assert conversion.encode(None) is ABSENT


def test_nested_decode_fails_on_deep_mismatch() -> None:
    conversion = mapping_of(list_of(INT))
    assert conversion.decode({"a": [1, 2], "b": [3, True]}) is INVALID
