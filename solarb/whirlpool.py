"""Decoding of Orca Whirlpool pool accounts into pool descriptions."""

from __future__ import annotations

import logging
import struct
import time
from dataclasses import dataclass

from .models import DexType, PoolInfo, PoolToken, Pubkey

log = logging.getLogger(__name__)

ORCA_WHIRLPOOL_PROGRAM_ID = "whirLbmvGdJ8kT34DbDZpeMZQRAu8da5nq7WaRDRtyQ"

_DISCRIMINATOR_SIZE = 8
_NUM_REWARDS = 3
_FEE_RATE_DENOMINATOR = 1_000_000

_REWARD_FORMAT = struct.Struct("<32s32s32s16s16s")
_STATE_HEADER_FORMAT = struct.Struct("<32sBH5xHH16s16siQQ32s32s16s32s32s16sQ")
_STATE_SIZE = _STATE_HEADER_FORMAT.size + _NUM_REWARDS * _REWARD_FORMAT.size

_SOL_MINT = "So11111111111111111111111111111111111111112"
_USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
_DEFAULT_DECIMALS = 6


class WhirlpoolParseError(ValueError):
    """Raised when account data cannot be decoded as a Whirlpool."""


def _u128(raw: bytes) -> int:
    return int.from_bytes(raw, "little")


@dataclass(frozen=True)
class RewardInfo:
    """Emission settings for one reward token of a Whirlpool."""

    mint: Pubkey
    vault: Pubkey
    authority: Pubkey
    emissions_per_second_x64: int
    growth_global_x64: int

    SIZE = _REWARD_FORMAT.size

    @classmethod
    def parse(cls, buf: bytes) -> "RewardInfo":
        """Decode a reward entry from the first 128 bytes of the buffer."""
        if len(buf) < _REWARD_FORMAT.size:
            raise WhirlpoolParseError(
                f"RewardInfo buffer too short: expected {_REWARD_FORMAT.size}, got {len(buf)}"
            )
        mint, vault, authority, emissions, growth = _REWARD_FORMAT.unpack_from(buf)
        return cls(
            mint=Pubkey.from_bytes(mint),
            vault=Pubkey.from_bytes(vault),
            authority=Pubkey.from_bytes(authority),
            emissions_per_second_x64=_u128(emissions),
            growth_global_x64=_u128(growth),
        )


@dataclass(frozen=True)
class WhirlpoolState:
    """The on-chain state of a Whirlpool account."""

    whirlpools_config: Pubkey
    whirlpool_bump: int
    tick_spacing: int
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    protocol_fee_owed_a: int
    protocol_fee_owed_b: int
    token_mint_a: Pubkey
    token_vault_a: Pubkey
    fee_growth_global_a: int
    token_mint_b: Pubkey
    token_vault_b: Pubkey
    fee_growth_global_b: int
    reward_last_updated_timestamp: int
    reward_infos: tuple[RewardInfo, ...]

    SIZE = _STATE_SIZE

    @classmethod
    def parse(cls, data: bytes) -> "WhirlpoolState":
        """Decode account data that starts with an 8-byte discriminator."""
        data = bytes(data)
        if len(data) < _DISCRIMINATOR_SIZE + _STATE_SIZE:
            raise WhirlpoolParseError(
                f"WhirlpoolState buffer too short: expected at least {_STATE_SIZE} bytes "
                f"after discriminator, got total {len(data)} bytes"
            )
        offset = _DISCRIMINATOR_SIZE
        (
            config,
            bump,
            tick_spacing,
            fee_rate,
            protocol_fee_rate,
            liquidity,
            sqrt_price,
            tick_current_index,
            owed_a,
            owed_b,
            mint_a,
            vault_a,
            growth_a,
            mint_b,
            vault_b,
            growth_b,
            reward_ts,
        ) = _STATE_HEADER_FORMAT.unpack_from(data, offset)
        offset += _STATE_HEADER_FORMAT.size

        rewards = tuple(
            RewardInfo.parse(data[start : start + _REWARD_FORMAT.size])
            for start in range(offset, offset + _NUM_REWARDS * _REWARD_FORMAT.size, _REWARD_FORMAT.size)
        )

        return cls(
            whirlpools_config=Pubkey.from_bytes(config),
            whirlpool_bump=bump,
            tick_spacing=tick_spacing,
            fee_rate=fee_rate,
            protocol_fee_rate=protocol_fee_rate,
            liquidity=_u128(liquidity),
            sqrt_price=_u128(sqrt_price),
            tick_current_index=tick_current_index,
            protocol_fee_owed_a=owed_a,
            protocol_fee_owed_b=owed_b,
            token_mint_a=Pubkey.from_bytes(mint_a),
            token_vault_a=Pubkey.from_bytes(vault_a),
            fee_growth_global_a=_u128(growth_a),
            token_mint_b=Pubkey.from_bytes(mint_b),
            token_vault_b=Pubkey.from_bytes(vault_b),
            fee_growth_global_b=_u128(growth_b),
            reward_last_updated_timestamp=reward_ts,
            reward_infos=rewards,
        )


def _token_metadata(mint: Pubkey) -> tuple[str, int]:
    """Symbol and decimals for a mint; unknown mints get a short name and a guessed 6 decimals."""
    text = str(mint)
    log.warning("Using placeholder metadata for mint %s.", text)
    if text == _SOL_MINT:
        return "SOL", 9
    if text == _USDC_MINT:
        return "USDC", 6
    return f"{text[:4]}..", _DEFAULT_DECIMALS


def parse_pool_data(address: Pubkey, data: bytes) -> PoolInfo:
    """Build a pool description from a Whirlpool account.

    Reserves live in the token vaults, not in this account, so they are reported as zero.
    """
    log.info("Parsing Whirlpool pool data for address: %s", address)
    try:
        state = WhirlpoolState.parse(data)
    except WhirlpoolParseError as exc:
        log.error("Failed to parse Whirlpool state for address %s: %s", address, exc)
        raise

    log.warning(
        "Whirlpool (%s) reserves are not directly in WhirlpoolState. Actual reserves must be "
        "fetched from token vaults: Vault A (%s), Vault B (%s). Setting reserves to 0.",
        address,
        state.token_vault_a,
        state.token_vault_b,
    )
    symbol_a, decimals_a = _token_metadata(state.token_mint_a)
    symbol_b, decimals_b = _token_metadata(state.token_mint_b)

    return PoolInfo(
        address=address,
        name=f"WP/{symbol_a}-{symbol_b}",
        token_a=PoolToken(mint=state.token_mint_a, symbol=symbol_a, decimals=decimals_a, reserve=0),
        token_b=PoolToken(mint=state.token_mint_b, symbol=symbol_b, decimals=decimals_b, reserve=0),
        fee_numerator=state.fee_rate,
        fee_denominator=_FEE_RATE_DENOMINATOR,
        last_update_timestamp=int(time.time()),
        dex_type=DexType.WHIRLPOOL,
    )


def get_program_id() -> Pubkey:
    return Pubkey.from_string(ORCA_WHIRLPOOL_PROGRAM_ID)


def get_dex_type() -> DexType:
    return DexType.WHIRLPOOL