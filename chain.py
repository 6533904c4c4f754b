#chain.py
from typing import Any, Dict, Sequence

import requests
from eth_account import Account
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception

from config import SESSION, ChainConfig
from exceptions import RemoteCallFailure
from logger import get_logger
from models import OperationDescriptor, RoleIdentity, TxOutcome
from services.catalog import contract_abi

log = get_logger("chain")

# Errors raised by web3 / the transport / ABI encoding for a failed call
CALL_ERRORS = (Web3Exception, requests.RequestException, ValueError, TypeError)

# Re-poll window when no confirmation timeout is configured
_WAIT_CHUNK_SECONDS = 120


def get_web3(cfg: ChainConfig) -> Web3:
    if not cfg.rpc_url:
        raise RemoteCallFailure("Blockchain client not initialized.")
    provider = Web3.HTTPProvider(
        cfg.rpc_url,
        request_kwargs={"timeout": 60},
        session=SESSION,
    )
    return Web3(provider)


def get_contract(w3: Web3, cfg: ChainConfig):
    address = Web3.to_checksum_address(cfg.contract_address)
    return w3.eth.contract(address=address, abi=contract_abi())


def has_code(w3: Web3, address: str) -> bool:
    try:
        code = w3.eth.get_code(Web3.to_checksum_address(address))
    except CALL_ERRORS as e:
        raise RemoteCallFailure(str(e)) from e
    return len(code) > 0


def call_view(contract, descriptor: OperationDescriptor, args: Sequence[Any]) -> Any:
    log.debug(f"call {descriptor.name}({list(args)})")
    try:
        raw = getattr(contract.functions, descriptor.name)(*args).call()
    except CALL_ERRORS as e:
        raise RemoteCallFailure(str(e)) from e

    # web3 unwraps single outputs; keep results positional
    if len(descriptor.outputs) == 1:
        raw = (raw,)
    log.debug(f"{descriptor.name} -> {raw}")
    return raw


def wait_for_receipt(w3: Web3, tx_hash, timeout: int, poll: float) -> Dict[str, Any]:
    hex_hash = Web3.to_hex(tx_hash)
    if timeout > 0:
        try:
            return w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout, poll_latency=poll)
        except TimeExhausted as e:
            raise RemoteCallFailure(str(e), tx_hash=hex_hash) from e

    while True:
        try:
            return w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=_WAIT_CHUNK_SECONDS, poll_latency=poll
            )
        except TimeExhausted:
            log.info(f"Still waiting for confirmation of {hex_hash}")


def broadcast(w3: Web3, signed):
    """Send a signed transaction and return its hash."""
    try:
        return w3.eth.send_raw_transaction(signed.raw_transaction)
    except (Web3Exception, ValueError) as e:
        # the session retries POSTs; a replay after an accepted send gets "already known"
        if "already known" not in str(e).lower():
            raise
        log.warning(f"Node already has {Web3.to_hex(signed.hash)}, waiting on it")
        return signed.hash


def send_transaction(
    w3: Web3,
    contract,
    cfg: ChainConfig,
    descriptor: OperationDescriptor,
    args: Sequence[Any],
    identity: RoleIdentity,
    echo=None,
) -> TxOutcome:
    """
    Build, sign and broadcast one transaction for `identity`, then block
    until the receipt is available. A reverted receipt raises RemoteCallFailure.
    """
    echo = echo or (lambda _msg: None)

    try:
        acct = Account.from_key(identity.private_key)
    except (ValueError, TypeError) as e:
        raise RemoteCallFailure(f"Invalid private key for role {identity.alias}: {e}") from e

    echo(f"✍️  Calling as role: {identity.alias}")
    echo(f"   From address: {acct.address}")
    echo(f"   To contract: {contract.address}")
    log.info(f"{descriptor.name} as {identity.alias} ({acct.address}) args={list(args)}")

    hex_hash = None
    try:
        tx = getattr(contract.functions, descriptor.name)(*args).build_transaction({
            "from": acct.address,
            "nonce": w3.eth.get_transaction_count(acct.address, "pending"),
            "chainId": cfg.chain_id,
        })
        signed = acct.sign_transaction(tx)
        tx_hash = broadcast(w3, signed)
        hex_hash = Web3.to_hex(tx_hash)

        echo("✔ Transaction sent!")
        echo(f"Transaction hash: {hex_hash}")
        echo("⏳ Waiting for confirmation...")
        log.info(f"{descriptor.name} sent: {hex_hash}")

        receipt = wait_for_receipt(w3, tx_hash, cfg.receipt_timeout, cfg.receipt_poll)
    except CALL_ERRORS as e:
        raise RemoteCallFailure(str(e), tx_hash=hex_hash) from e

    outcome = TxOutcome(
        role=identity.alias,
        sender=acct.address,
        tx_hash=hex_hash,
        block_number=receipt.get("blockNumber"),
        gas_used=receipt.get("gasUsed"),
        status=receipt.get("status"),
    )

    if outcome.status == 0:
        log.error(f"{descriptor.name} reverted: {hex_hash} (block {outcome.block_number})")
        raise RemoteCallFailure(f"Transaction reverted: {hex_hash}", tx_hash=hex_hash)

    echo(f"✅ Transaction confirmed in block: {outcome.block_number}")
    echo(f"   Gas used: {outcome.gas_used}")
    log.info(f"{descriptor.name} confirmed: {hex_hash} block={outcome.block_number} gas={outcome.gas_used}")
    return outcome
