"""Bech32 account addresses and the chain's address prefixes."""

from __future__ import annotations

import hashlib
import secrets
from collections.abc import Iterable

ACCOUNT_ADDRESS_PREFIX = "cosmos"
ACCOUNT_PUBKEY_PREFIX = ACCOUNT_ADDRESS_PREFIX + "pub"
VALIDATOR_ADDRESS_PREFIX = ACCOUNT_ADDRESS_PREFIX + "valoper"
VALIDATOR_PUBKEY_PREFIX = ACCOUNT_ADDRESS_PREFIX + "valoperpub"
CONSENSUS_ADDRESS_PREFIX = ACCOUNT_ADDRESS_PREFIX + "valcons"
CONSENSUS_PUBKEY_PREFIX = ACCOUNT_ADDRESS_PREFIX + "valconspub"
CHAIN_COIN_TYPE = 118

MAX_ADDRESS_LENGTH = 255
_MAX_BECH32_LENGTH = 1023
_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_INDEX = {char: index for index, char in enumerate(_CHARSET)}
_GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)


def _polymod(values: Iterable[int]) -> int:
    checksum = 1
    for value in values:
        top = checksum >> 25
        checksum = ((checksum & 0x1FFFFFF) << 5) ^ value
        for bit, generator in enumerate(_GENERATORS):
            if (top >> bit) & 1:
                checksum ^= generator
    return checksum


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _create_checksum(hrp: str, data: list[int]) -> list[int]:
    polymod = _polymod(_hrp_expand(hrp) + data + [0] * 6) ^ 1
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def _convert_bits(data: Iterable[int], from_bits: int, to_bits: int, pad: bool) -> list[int]:
    accumulator = 0
    bits = 0
    result: list[int] = []
    max_value = (1 << to_bits) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise ValueError(f"invalid data value {value}")
        accumulator = (accumulator << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            result.append((accumulator >> bits) & max_value)
    if pad:
        if bits:
            result.append((accumulator << (to_bits - bits)) & max_value)
    elif bits >= from_bits or ((accumulator << (to_bits - bits)) & max_value):
        raise ValueError("invalid padding in bech32 data")
    return result


def _decode(text: str) -> tuple[str, list[int]]:
    if len(text) > _MAX_BECH32_LENGTH:
        raise ValueError(f"bech32 string too long: {len(text)}")
    if any(ord(c) < 33 or ord(c) > 126 for c in text):
        raise ValueError("bech32 string contains invalid characters")
    if text.lower() != text and text.upper() != text:
        raise ValueError("bech32 string has mixed case")
    text = text.lower()
    separator = text.rfind("1")
    if separator < 1 or separator + 7 > len(text):
        raise ValueError("invalid bech32 separator position")
    hrp = text[:separator]
    try:
        data = [_CHARSET_INDEX[c] for c in text[separator + 1:]]
    except KeyError as exc:
        raise ValueError(f"invalid bech32 character {exc.args[0]!r}") from None
    if _polymod(_hrp_expand(hrp) + data) != 1:
        raise ValueError("invalid bech32 checksum")
    return hrp, data[:-6]


class Bech32Codec:
    """Converts raw address bytes to and from bech32 text with a fixed prefix."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def bytes_to_string(self, data: bytes) -> str:
        if not data:
            return ""
        words = _convert_bits(data, 8, 5, True)
        return self.prefix + "1" + "".join(
            _CHARSET[w] for w in words + _create_checksum(self.prefix, words)
        )

    def string_to_bytes(self, text: str) -> bytes:
        if not text.strip():
            raise ValueError("empty address string is not allowed")
        hrp, words = _decode(text)
        if hrp != self.prefix:
            raise ValueError(f"invalid Bech32 prefix; expected {self.prefix}, got {hrp}")
        data = bytes(_convert_bits(words, 5, 8, False))
        if not data:
            raise ValueError("addresses cannot be empty")
        if len(data) > MAX_ADDRESS_LENGTH:
            raise ValueError(f"address max length is {MAX_ADDRESS_LENGTH}, got {len(data)}")
        return data


def module_address(name: str) -> bytes:
    """Return the deterministic account address of a module."""
    return hashlib.sha256(name.encode()).digest()[:20]


def acc_address() -> str:
    """Return a fresh random account address, for samples and tests."""
    public_key = secrets.token_bytes(32)
    raw = hashlib.sha256(public_key).digest()[:20]
    return Bech32Codec(ACCOUNT_ADDRESS_PREFIX).bytes_to_string(raw)