"""
Deterministic canonical encoding primitives.

Used for state snapshot commitments: the same state must always hash to the
same digest, independent of dict insertion order or platform.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


CANONICAL_ENCODING_VERSION = 1


def _reject_surrogates(s: str) -> None:
    # Surrogate code points are not valid Unicode scalar values and lead to
    # implementation-defined behavior across JSON encoders/UTF-8 encoders.
    for ch in s:
        o = ord(ch)
        if 0xD800 <= o <= 0xDFFF:
            raise TypeError("surrogate code points are not allowed in canonical encoding")


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, str):
        _reject_surrogates(value)
    if isinstance(value, dict):
        for k in value.keys():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
        for k, v in value.items():
            _reject_surrogates(k)
            _reject_floats(v)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)
        return


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats rejected (to avoid representation ambiguity)
    """
    _reject_floats(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def _str_size_bound(s: str) -> int:
    # Quotes plus UTF-8 length plus worst-case escape overhead.
    n = 2
    for ch in s:
        o = ord(ch)
        if 0xD800 <= o <= 0xDFFF:
            raise TypeError("surrogate code points are not allowed in canonical encoding")
        if ch in ('"', "\\"):
            n += 2
        elif o < 0x20:
            n += 6
        else:
            n += len(ch.encode("utf-8"))
    return n


def bounded_json_size(value: Any, *, max_bytes: int, max_depth: int = 32) -> int:
    """
    Upper bound on `len(canonical_json_bytes(value))`, computed without encoding.

    Raises ValueError as soon as the running bound passes `max_bytes`, so an
    oversized snapshot is refused before it is serialized.
    """
    if not isinstance(max_bytes, int) or isinstance(max_bytes, bool) or max_bytes <= 0:
        raise ValueError("max_bytes must be a positive int")

    total = 0
    stack = [(value, 0)]
    while stack:
        v, depth = stack.pop()
        if depth > max_depth:
            raise ValueError("json nesting exceeds max_depth")
        if isinstance(v, float):
            raise TypeError("floats are not allowed in canonical encoding")
        if v is None or v is True:
            total += 4
        elif v is False:
            total += 5
        elif isinstance(v, int):
            # digits(n) <= floor(bit_length * log10(2)) + 1, plus a sign.
            total += (abs(v).bit_length() * 30103) // 100000 + 2
        elif isinstance(v, str):
            total += _str_size_bound(v)
        elif isinstance(v, (list, tuple)):
            total += 2 + max(len(v) - 1, 0)
            stack.extend((item, depth + 1) for item in v)
        elif isinstance(v, dict):
            total += 2 + max(len(v) - 1, 0)
            for k, item in v.items():
                if not isinstance(k, str):
                    raise TypeError("dict keys must be str for canonical encoding")
                total += _str_size_bound(k) + 1
                stack.append((item, depth + 1))
        else:
            raise TypeError(f"unsupported type for canonical encoding: {type(v)}")
        if total > max_bytes:
            raise ValueError("json size exceeds max_bytes")
    return total


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Create a domain separation prefix.

    The output is ASCII-only and NUL-terminated to make concatenation unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    try:
        label_bytes = label.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("label must be ASCII") from exc
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"lockdrop:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"
