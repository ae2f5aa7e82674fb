"""
Sui address and coin type handling

Addresses are 32-byte object/account ids rendered as "0x" + 64 lowercase hex
characters. Short forms such as "0x2" are left-padded with zeros.

Coin types follow "<address>::<module>::<Name>" with optional generics, e.g.
"0x2::sui::SUI" -> "0x0000...0002::sui::SUI".
"""

import re
from typing import Any

from ..errors import InvalidAddress


ADDRESS_HEX_LENGTH = 64

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
# Leading address of a coin type or of a nested generic argument
_TYPE_ADDRESS_RE = re.compile(r"(?<![0-9A-Za-z_])(0[xX][0-9a-fA-F]+)(?=::)")


def _normalize_hex(raw: Any) -> str:
    if not isinstance(raw, str):
        raise InvalidAddress(raw, "expected a string")

    value = raw.strip()
    if not value:
        raise InvalidAddress(raw, "empty")

    if value[:2] in ("0x", "0X"):
        value = value[2:]

    if not value:
        raise InvalidAddress(raw, "no hex digits after prefix")
    if len(value) > ADDRESS_HEX_LENGTH:
        raise InvalidAddress(raw, f"longer than {ADDRESS_HEX_LENGTH} hex characters")
    if not _HEX_RE.match(value):
        raise InvalidAddress(raw, "contains non-hex characters")

    return "0x" + value.lower().rjust(ADDRESS_HEX_LENGTH, "0")


class Address(str):
    """
    Canonical Sui address

    Always "0x" followed by 64 lowercase hex characters. Two addresses
    compare equal exactly when their normalized strings are equal.

    Usage:
        addr = Address("0x2")
        assert addr == "0x" + "0" * 63 + "2"
    """

    __slots__ = ()

    def __new__(cls, raw: Any) -> "Address":
        if isinstance(raw, Address):
            return raw
        return super().__new__(cls, _normalize_hex(raw))

    def __repr__(self) -> str:
        return f"Address({shorten(self)})"

    @property
    def hex(self) -> str:
        """Hex body without the 0x prefix"""
        return self[2:]

    def to_bytes(self) -> bytes:
        return bytes.fromhex(self[2:])

    @property
    def is_zero(self) -> bool:
        return int(self[2:], 16) == 0


class CoinType(str):
    """
    Canonical Move coin type

    The package address is normalized; module and struct names are kept as-is.
    Generic arguments that are themselves types get their addresses
    normalized too.
    """

    __slots__ = ()

    def __new__(cls, raw: Any) -> "CoinType":
        if isinstance(raw, CoinType):
            return raw
        return super().__new__(cls, _normalize_type(raw))

    def __repr__(self) -> str:
        return f"CoinType({self})"

    @property
    def package(self) -> Address:
        return Address(self.split("::", 1)[0])

    @property
    def module(self) -> str:
        return self.split("::")[1]

    @property
    def name(self) -> str:
        return self.split("::", 2)[2]

    @property
    def symbol(self) -> str:
        """Struct name without generics, e.g. "SUI" """
        return self.name.split("<", 1)[0]


def _normalize_type(raw: Any) -> str:
    if not isinstance(raw, str):
        raise InvalidAddress(raw, "coin type must be a string")

    value = raw.strip()
    parts = value.split("::", 2)
    if len(parts) != 3 or not parts[1] or not parts[2]:
        raise InvalidAddress(raw, "coin type must look like <address>::<module>::<Name>")

    package = _normalize_hex(parts[0])
    rest = parts[1] + "::" + parts[2]
    # Nested generic addresses, e.g. Pool<0x2::sui::SUI, 0x5d4b...::coin::COIN>
    rest = _TYPE_ADDRESS_RE.sub(lambda m: _normalize_hex(m.group(1)), rest)
    return package + "::" + rest


# ========== Codec Operations ==========

def normalize(raw: Any) -> Address:
    """
    Normalize an address to its canonical form

    Idempotent: normalize(normalize(x)) == normalize(x).

    Raises:
        InvalidAddress: empty input, over-length, bad prefix or non-hex characters
    """
    return Address(raw)


def normalize_coin_type(raw: Any) -> CoinType:
    """Normalize a coin type's package address"""
    return CoinType(raw)


def is_valid(raw: Any) -> bool:
    """Check whether raw parses as an address (never raises)"""
    try:
        Address(raw)
    except InvalidAddress:
        return False
    return True


def is_valid_coin_type(raw: Any) -> bool:
    try:
        CoinType(raw)
    except InvalidAddress:
        return False
    return True


def is_zero(raw: Any) -> bool:
    """True for the all-zero address in any accepted spelling"""
    return Address(raw).is_zero


def equals(a: Any, b: Any) -> bool:
    """
    Compare two addresses after normalization

    Returns False when either side is not a valid address.
    """
    try:
        return Address(a) == Address(b)
    except InvalidAddress:
        return False


def shorten(raw: Any, chars: int = 8) -> str:
    """
    Shortened display form: "0x" + first N hex + "..." + last N hex

    Returns the full address when it is not longer than the shortened form.
    """
    addr = Address(raw)
    body = addr[2:]
    if chars <= 0 or chars * 2 >= len(body):
        return str(addr)
    return f"0x{body[:chars]}...{body[-chars:]}"


def extract_package_id(raw: Any) -> Address:
    """
    Package address of a coin type, or the address itself

    extract_package_id("0x2::sui::SUI") -> 0x000...0002
    """
    if isinstance(raw, str) and "::" in raw:
        return Address(raw.split("::", 1)[0])
    return Address(raw)


def is_package_address(raw: Any, package_id: Any) -> bool:
    """True when raw (address or coin type) belongs to package_id"""
    try:
        return extract_package_id(raw) == Address(package_id)
    except InvalidAddress:
        return False


# Well-known system objects
SUI_FRAMEWORK_ADDRESS = Address("0x2")
CLOCK_OBJECT_ID = Address("0x6")
SUI_COIN_TYPE = CoinType("0x2::sui::SUI")
