"""Pydantic models for the exchange HTTP API.

Amounts are uint256 decimal strings; hashes and secrets are 0x hex.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from exchange.amm.base import LiquidityResult, PoolSnapshot, SwapResult
from exchange.htlc.escrow import SwapRecord, SwapState
from exchange.models.types import Address, Bytes, Bytes32, Uint256, bytes_to_hex


class ErrorResponse(BaseModel):
    """Body returned for rejected operations."""

    error: str = Field(description="Stable error code, e.g. 'ratio_mismatch'.")
    detail: str


# --- Pool ---


class PoolState(BaseModel):
    """Current pool accounting."""

    address: Address
    token_a: Address
    token_b: Address
    reserve_a: Uint256
    reserve_b: Uint256
    total_liquidity: Uint256
    fee_bps: int

    @classmethod
    def from_snapshot(cls, snapshot: PoolSnapshot) -> PoolState:
        return cls(
            address=snapshot.address,
            token_a=snapshot.token_a,
            token_b=snapshot.token_b,
            reserve_a=snapshot.reserve_a,
            reserve_b=snapshot.reserve_b,
            total_liquidity=snapshot.total_shares,
            fee_bps=snapshot.fee_bps,
        )


class QuoteResponse(BaseModel):
    amount_in: Uint256
    amount_out: Uint256
    a_to_b: bool


class AddLiquidityRequest(BaseModel):
    provider: Address
    amount_a: Uint256
    amount_b: Uint256


class RemoveLiquidityRequest(BaseModel):
    provider: Address
    shares: Uint256


class LiquidityResponse(BaseModel):
    provider: Address
    amount_a: Uint256
    amount_b: Uint256
    shares: Uint256
    total_shares: Uint256

    @classmethod
    def from_result(cls, result: LiquidityResult) -> LiquidityResponse:
        return cls(
            provider=result.provider,
            amount_a=result.amount_a,
            amount_b=result.amount_b,
            shares=result.shares,
            total_shares=result.total_shares,
        )


class ProviderLiquidity(BaseModel):
    provider: Address
    shares: Uint256


class SwapRequest(BaseModel):
    """Exact-input swap. a_to_b selects the direction."""

    trader: Address
    amount_in: Uint256
    a_to_b: bool = True
    min_amount_out: Uint256 = Field(default="0", description="Slippage limit on the output.")


class SwapResponse(BaseModel):
    trader: Address
    token_in: Address
    token_out: Address
    amount_in: Uint256
    amount_out: Uint256
    reserve_a: Uint256
    reserve_b: Uint256

    @classmethod
    def from_result(cls, result: SwapResult) -> SwapResponse:
        return cls(
            trader=result.trader,
            token_in=result.token_in,
            token_out=result.token_out,
            amount_in=result.amount_in,
            amount_out=result.amount_out,
            reserve_a=result.reserve_a,
            reserve_b=result.reserve_b,
        )


# --- Tokens ---


class ApproveRequest(BaseModel):
    owner: Address
    spender: Address
    amount: Uint256


class MintRequest(BaseModel):
    to: Address
    amount: Uint256


class BalanceResponse(BaseModel):
    token: Address
    owner: Address
    balance: Uint256


# --- Escrow ---


class CreateSwapRequest(BaseModel):
    """Lock tokens for a counterparty behind a hashlock.

    asset is a deployed token's address or symbol.
    """

    initiator: Address
    counterparty: Address
    asset: str
    amount: Uint256
    secret_hash: Bytes32
    expiry: int = Field(ge=0, description="Unix timestamp in seconds.")


class ClaimRequest(BaseModel):
    claimant: Address
    secret: Bytes


class RefundRequest(BaseModel):
    caller: Address


class SwapRecordResponse(BaseModel):
    id: Bytes32
    state: SwapState
    initiator: Address
    counterparty: Address
    asset: Address
    amount: Uint256
    secret_hash: Bytes32
    expiry: int
    secret: Bytes | None = None

    @classmethod
    def from_record(cls, record: SwapRecord) -> SwapRecordResponse:
        return cls(
            id=record.id,
            state=record.state,
            initiator=record.initiator,
            counterparty=record.counterparty,
            asset=record.asset.address,
            amount=record.amount,
            secret_hash=bytes_to_hex(record.secret_hash),
            expiry=record.expiry,
            secret=bytes_to_hex(record.secret) if record.secret is not None else None,
        )
