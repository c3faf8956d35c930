"""
MYERC20 deployment.

Builds a contract-creation transaction (``to`` omitted) from compiled
bytecode plus the ABI-encoded constructor ``(recipient, initialOwner)``;
the deployer becomes the initial owner.  The gas limit comes from a
size-based heuristic rather than ``eth_estimateGas``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import httpx
from eth_abi.exceptions import DecodingError

from ..errors import RpcError, TransactionFailedError
from ..utils import strip_0x
from ..wallet.eth import get_account
from . import rpc
from .abi import encode_constructor_args, load_abi, load_artifact
from .fees import suggest_eip1559_fees
from .tx import send_with_fees
from .waiter import TransactionStatus, wait_deploy

logger = logging.getLogger(__name__)

BASE_CREATION_GAS = 32_000
CODE_DEPOSIT_GAS_PER_BYTE = 200
SAFETY_BUFFER_PERCENT = 30
MIN_DEPLOY_GAS = 1_000_000
MAX_DEPLOY_GAS = 10_000_000
FALLBACK_DEPLOY_GAS = 5_000_000

# Constructor work of MYERC20: base init, initial mint, Pausable,
# Ownable and the EIP-712 domain separator.
INITIALIZATION_GAS = {
    "base": 100_000,
    "mint": 50_000,
    "pausable": 20_000,
    "ownable": 20_000,
    "eip712": 30_000,
}


@dataclass
class GasEstimate:
    bytecode_length: int
    base_creation: int
    code_storage: int
    initialization: int
    total: int
    buffer: int
    gas_limit: int


@dataclass
class DeploymentResult:
    contract_address: str
    tx_hash: str
    status: Optional[TransactionStatus]
    token: dict[str, Any] = field(default_factory=dict)


def estimate_deployment_gas(bytecode: str) -> GasEstimate:
    """
    Size-based creation gas: 32000 + 200/byte + initialization, plus a
    30% buffer, clamped to [1,000,000, 10,000,000].
    """
    raw = strip_0x(bytecode)
    if not raw:
        raise ValueError("empty contract bytecode")
    length = len(raw) // 2

    code_storage = length * CODE_DEPOSIT_GAS_PER_BYTE
    initialization = sum(INITIALIZATION_GAS.values())
    total = BASE_CREATION_GAS + code_storage + initialization
    buffer = total * SAFETY_BUFFER_PERCENT // 100
    gas_limit = min(max(total + buffer, MIN_DEPLOY_GAS), MAX_DEPLOY_GAS)

    estimate = GasEstimate(
        bytecode_length=length,
        base_creation=BASE_CREATION_GAS,
        code_storage=code_storage,
        initialization=initialization,
        total=total,
        buffer=buffer,
        gas_limit=gas_limit,
    )
    logger.info(
        "Deployment gas: %d bytes bytecode, estimated %d + %d buffer -> limit %d",
        length, total, buffer, gas_limit,
    )
    return estimate


def read_token_summary(contract_address: str, recipient: str, abi: list, rpc_url: Optional[str] = None) -> dict[str, Any]:
    """Best-effort name/symbol/decimals/balanceOf(recipient) after deployment."""
    summary: dict[str, Any] = {}
    reads = [
        ("name", []),
        ("symbol", []),
        ("decimals", []),
        ("balanceOf", [recipient]),
    ]
    for function_name, args in reads:
        try:
            summary[function_name] = rpc.read_contract(
                contract_address, function_name, args, abi=abi, rpc_url=rpc_url
            )
        except (RpcError, httpx.HTTPError, DecodingError, ValueError) as exc:
            logger.warning("Could not read %s() from new contract: %s", function_name, exc)
    return summary


def deploy_contract(
    private_key: str,
    recipient: str,
    artifact: Path,
    rpc_url: Optional[str] = None,
    wait: bool = True,
) -> DeploymentResult:
    """
    Deploy MYERC20 and wait for two confirmations.

    Args:
        private_key: Deployer key (becomes initialOwner)
        recipient: Receives the initial supply
        artifact: Compiled artifact holding the creation bytecode

    Raises:
        TransactionFailedError: If the creation transaction reverts or the
            receipt has no contract address
    """
    abi_from_artifact, bytecode = load_artifact(artifact)
    abi = abi_from_artifact or load_abi()

    account = get_account(private_key)
    logger.info("Deployer: %s, initial recipient: %s", account.address, recipient)

    nonce = rpc.get_pending_nonce(account.address, rpc_url=rpc_url)
    chain = rpc.chain_id(rpc_url=rpc_url)

    fees = suggest_eip1559_fees(rpc_url=rpc_url)
    if fees is None:
        raise RpcError("eth_getBlockByNumber", None, "chain does not support EIP-1559 fees")

    try:
        gas = estimate_deployment_gas(bytecode).gas_limit
    except ValueError as exc:
        logger.warning("Gas estimation failed (%s), using default %d", exc, FALLBACK_DEPLOY_GAS)
        gas = FALLBACK_DEPLOY_GAS

    constructor_args = encode_constructor_args(abi, [recipient, account.address])
    data = bytecode + constructor_args.hex()

    sent = send_with_fees(
        account, None, 0, gas, fees, data,
        nonce=nonce, chain_id=chain, rpc_url=rpc_url,
    )
    logger.info("Deployment transaction sent: %s", sent.tx_hash)

    if not wait:
        return DeploymentResult(contract_address="", tx_hash=sent.tx_hash, status=None)

    status = wait_deploy(sent.tx_hash, rpc_url=rpc_url)
    contract_address = status.receipt.get("contractAddress")
    if not contract_address:
        raise TransactionFailedError(
            f"Receipt for {sent.tx_hash} has no contract address", status=status
        )

    result = DeploymentResult(
        contract_address=contract_address,
        tx_hash=sent.tx_hash,
        status=status,
    )
    result.token = read_token_summary(contract_address, recipient, abi, rpc_url=rpc_url)
    return result
