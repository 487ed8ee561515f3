from __future__ import annotations

import pytest

from lockdrop.state.canonical import bounded_json_size, canonical_json_bytes, domain_sep_bytes, sha256_hex


def test_key_order_does_not_matter() -> None:
    assert canonical_json_bytes({"b": 1, "a": [1, 2]}) == canonical_json_bytes({"a": [1, 2], "b": 1})


def test_compact_utf8() -> None:
    assert canonical_json_bytes({"k": "é", "n": None}) == '{"k":"é","n":null}'.encode("utf-8")


@pytest.mark.parametrize("value", [1.5, {"a": 0.0}, [1, 2.0]])
def test_floats_rejected(value) -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes(value)


def test_surrogates_rejected() -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes({"k": "\ud800"})


def test_non_string_keys_rejected() -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes({1: "a"})


def test_domain_separation() -> None:
    assert domain_sep_bytes("staking_snapshot") == b"lockdrop:staking_snapshot:v1\x00"
    assert domain_sep_bytes("staking_snapshot", version=2) != domain_sep_bytes("staking_snapshot")
    with pytest.raises(ValueError):
        domain_sep_bytes("bad\x00label")
    with pytest.raises(ValueError):
        domain_sep_bytes("x", version=0)


def test_sha256_hex_prefix() -> None:
    assert sha256_hex(b"") == "0xe3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


@pytest.mark.parametrize(
    "value",
    [
        {"a": [1, -22, 0, 10**40], "b": None, "c": True, "d": False},
        {"k": 'quote" back\\slash \x01 é 𝄞', "nested": {"x": [[], {}]}},
        [],
    ],
)
def test_bounded_size_covers_encoding(value) -> None:
    actual = len(canonical_json_bytes(value))
    assert bounded_json_size(value, max_bytes=10_000) >= actual


def test_bounded_size_stops_early() -> None:
    with pytest.raises(ValueError):
        bounded_json_size({"big": ["x" * 100] * 1000}, max_bytes=1000)
    with pytest.raises(ValueError):
        bounded_json_size([[[1]]], max_bytes=100, max_depth=2)
    with pytest.raises(TypeError):
        bounded_json_size({"f": 1.5}, max_bytes=100)
