"""API endpoints for the exchange service."""

from functools import lru_cache

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from exchange.deploy import Deployment, deploy
from exchange.models.api import (
    AddLiquidityRequest,
    ApproveRequest,
    BalanceResponse,
    ClaimRequest,
    CreateSwapRequest,
    LiquidityResponse,
    MintRequest,
    PoolState,
    ProviderLiquidity,
    QuoteResponse,
    RefundRequest,
    RemoveLiquidityRequest,
    SwapRecordResponse,
    SwapRequest,
    SwapResponse,
)
from exchange.models.types import hex_to_bytes, is_valid_address, normalize_address

logger = structlog.get_logger()

router = APIRouter()


@lru_cache(maxsize=1)
def get_default_deployment() -> Deployment:
    """Deployment shared by all requests, created on first use."""
    return deploy()


def get_deployment() -> Deployment:
    """Dependency provider for the deployment.

    Override this in tests to inject a fresh deployment:
        app.dependency_overrides[get_deployment] = lambda: deployment
    """
    return get_default_deployment()


def _path_address(value: str) -> str:
    if not is_valid_address(value):
        raise HTTPException(status_code=422, detail=f"Invalid address: {value}")
    return normalize_address(value)


# --- Pool ---


@router.get("/pool")
def pool_state(deployment: Deployment = Depends(get_deployment)) -> PoolState:
    return PoolState.from_snapshot(deployment.pool.snapshot())


@router.get("/pool/quote")
def pool_quote(
    amount_in: int = Query(ge=0),
    a_to_b: bool = True,
    deployment: Deployment = Depends(get_deployment),
) -> QuoteResponse:
    """Output amount for an exact-input swap, without executing it."""
    amount_out = deployment.pool.get_amount_out(amount_in, a_to_b)
    return QuoteResponse(amount_in=amount_in, amount_out=amount_out, a_to_b=a_to_b)


@router.get("/pool/liquidity/{provider}")
def provider_liquidity(
    provider: str, deployment: Deployment = Depends(get_deployment)
) -> ProviderLiquidity:
    provider = _path_address(provider)
    return ProviderLiquidity(provider=provider, shares=deployment.pool.liquidity_of(provider))


@router.post("/pool/liquidity")
def add_liquidity(
    request: AddLiquidityRequest, deployment: Deployment = Depends(get_deployment)
) -> LiquidityResponse:
    result = deployment.pool.add_liquidity(
        int(request.amount_a), int(request.amount_b), request.provider
    )
    return LiquidityResponse.from_result(result)


@router.post("/pool/liquidity/remove")
def remove_liquidity(
    request: RemoveLiquidityRequest, deployment: Deployment = Depends(get_deployment)
) -> LiquidityResponse:
    result = deployment.pool.remove_liquidity(int(request.shares), request.provider)
    return LiquidityResponse.from_result(result)


@router.post("/pool/swap")
def swap(request: SwapRequest, deployment: Deployment = Depends(get_deployment)) -> SwapResponse:
    result = deployment.pool.swap(
        int(request.amount_in),
        request.trader,
        a_to_b=request.a_to_b,
        min_amount_out=int(request.min_amount_out),
    )
    return SwapResponse.from_result(result)


# --- Tokens ---


@router.post("/tokens/{token}/approve", status_code=204)
def approve(
    token: str, request: ApproveRequest, deployment: Deployment = Depends(get_deployment)
) -> None:
    deployment.token(token).approve(request.owner, request.spender, int(request.amount))


@router.post("/tokens/{token}/mint", status_code=204)
def mint(
    token: str, request: MintRequest, deployment: Deployment = Depends(get_deployment)
) -> None:
    """Test faucet: mint tokens to an address."""
    deployment.token(token).mint(request.to, int(request.amount))
    logger.info("tokens_minted", token=token, to=request.to, amount=request.amount)


@router.get("/tokens/{token}/balance/{owner}")
def balance(
    token: str, owner: str, deployment: Deployment = Depends(get_deployment)
) -> BalanceResponse:
    ledger = deployment.token(token)
    owner = _path_address(owner)
    return BalanceResponse(token=ledger.address, owner=owner, balance=ledger.balance_of(owner))


# --- Escrow ---


@router.post("/escrow", status_code=201)
def create_swap(
    request: CreateSwapRequest, deployment: Deployment = Depends(get_deployment)
) -> SwapRecordResponse:
    record = deployment.escrow.create(
        counterparty=request.counterparty,
        asset=deployment.token(request.asset),
        amount=int(request.amount),
        secret_hash=hex_to_bytes(request.secret_hash),
        expiry=request.expiry,
        initiator=request.initiator,
    )
    return SwapRecordResponse.from_record(record)


@router.get("/escrow/{swap_id}")
def get_swap(
    swap_id: str, deployment: Deployment = Depends(get_deployment)
) -> SwapRecordResponse:
    return SwapRecordResponse.from_record(deployment.escrow.get(swap_id))


@router.post("/escrow/{swap_id}/claim")
def claim_swap(
    swap_id: str, request: ClaimRequest, deployment: Deployment = Depends(get_deployment)
) -> SwapRecordResponse:
    record = deployment.escrow.claim(swap_id, hex_to_bytes(request.secret), request.claimant)
    return SwapRecordResponse.from_record(record)


@router.post("/escrow/{swap_id}/refund")
def refund_swap(
    swap_id: str, request: RefundRequest, deployment: Deployment = Depends(get_deployment)
) -> SwapRecordResponse:
    record = deployment.escrow.refund(swap_id, request.caller)
    return SwapRecordResponse.from_record(record)
