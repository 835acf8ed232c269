"""Core value types shared across the arbitrage modules: keys, DEX kinds, pools and amounts."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import ClassVar

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {char: index for index, char in enumerate(_BASE58_ALPHABET)}
_PUBKEY_LEN = 32
_unique_counter = itertools.count(1)


def _b58encode(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_BASE58_ALPHABET[remainder])
    leading_zeros = len(data) - len(data.lstrip(b"\0"))
    return "1" * leading_zeros + "".join(reversed(digits))


def _b58decode(text: str) -> bytes:
    number = 0
    for char in text:
        try:
            number = number * 58 + _BASE58_INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}") from None
    leading_ones = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\0" * leading_ones + body


@dataclass(frozen=True)
class Pubkey:
    """A 32-byte public key, shown in base58."""

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != _PUBKEY_LEN:
            raise ValueError(f"public key must be {_PUBKEY_LEN} bytes, got {len(self.raw)}")

    @classmethod
    def new_unique(cls) -> "Pubkey":
        """Return a key that no earlier call in this process has returned."""
        return cls(next(_unique_counter).to_bytes(_PUBKEY_LEN, "big"))

    @classmethod
    def from_bytes(cls, data) -> "Pubkey":
        return cls(bytes(data))

    @classmethod
    def from_string(cls, text: str) -> "Pubkey":
        return cls(_b58decode(text))

    def __str__(self) -> str:
        return _b58encode(self.raw)


@dataclass(frozen=True)
class DexType:
    """The exchange a pool belongs to; names outside the known set are kept as unknown."""

    name: str

    RAYDIUM: ClassVar["DexType"]
    ORCA: ClassVar["DexType"]
    WHIRLPOOL: ClassVar["DexType"]
    LIFINITY: ClassVar["DexType"]
    PHOENIX: ClassVar["DexType"]
    METEORA: ClassVar["DexType"]

    @property
    def is_unknown(self) -> bool:
        return self.name not in _KNOWN_DEXES

    def __str__(self) -> str:
        if self.is_unknown:
            return f'Unknown("{self.name}")'
        return self.name


_KNOWN_DEXES = frozenset({"Raydium", "Orca", "Whirlpool", "Lifinity", "Phoenix", "Meteora"})
DexType.RAYDIUM = DexType("Raydium")
DexType.ORCA = DexType("Orca")
DexType.WHIRLPOOL = DexType("Whirlpool")
DexType.LIFINITY = DexType("Lifinity")
DexType.PHOENIX = DexType("Phoenix")
DexType.METEORA = DexType("Meteora")


@dataclass
class PoolToken:
    """One side of a liquidity pool."""

    mint: Pubkey
    symbol: str
    decimals: int
    reserve: int


@dataclass
class PoolInfo:
    """A two-token liquidity pool and its fee."""

    address: Pubkey
    name: str
    token_a: PoolToken
    token_b: PoolToken
    fee_numerator: int
    fee_denominator: int
    last_update_timestamp: int
    dex_type: DexType


@dataclass(frozen=True)
class TokenAmount:
    """An integer amount in a token's smallest unit, with its decimals."""

    amount: int
    decimals: int

    def to_float(self) -> float:
        return self.amount / 10 ** self.decimals


@dataclass
class OpportunityCalculationResult:
    """Result of simulating a round trip across two pools."""

    input_amount: float
    output_amount: float
    profit: float
    profit_percentage: float
    price_impact: float