# services/dispatcher.py
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

from web3 import Web3

from chain import call_view, get_contract, get_web3, has_code, send_transaction
from config import CONTRACT_ALIAS, ChainConfig
from exceptions import (
    FetchFailure,
    MissingCredential,
    NoContractDeployed,
    RemoteCallFailure,
    UnknownOperation,
    UnknownRole,
)
from logger import get_logger
from models import AbiParam, CallOutcome, OperationDescriptor, RoleIdentity
from services.arguments import normalize_arg
from services.catalog import get_descriptor
from services.decoder import decode_result

log = get_logger("dispatcher")

_INT_TEXT_RE = re.compile(r"-?[0-9]+")


def resolve_identity(cfg: ChainConfig, alias: Optional[str]) -> RoleIdentity:
    if not cfg.is_known_alias(alias):
        raise UnknownRole(alias, cfg.aliases)
    return RoleIdentity(alias, cfg.address_for(alias), cfg.private_key_for(alias))


def coerce_arg(param: AbiParam, value: Any) -> Any:
    """Fit a normalized CLI value to the ABI type web3 will encode it as."""
    t = param.type
    is_scalar_int = t.startswith(("uint", "int")) and not t.endswith("]")

    if is_scalar_int and isinstance(value, str) and _INT_TEXT_RE.fullmatch(value):
        return int(value)

    if t == "address" and isinstance(value, str):
        try:
            return Web3.to_checksum_address(value)
        except ValueError as e:
            raise RemoteCallFailure(f"Invalid address for {param.name or t}: {value} ({e})") from e

    return value


def coerce_args(descriptor: OperationDescriptor, args: Sequence[Any]) -> List[Any]:
    if len(args) != len(descriptor.inputs):
        raise RemoteCallFailure(
            f"{descriptor.name} expects {len(descriptor.inputs)} argument(s), got {len(args)}"
        )
    return [coerce_arg(p, v) for p, v in zip(descriptor.inputs, args)]


def dispatch(
    cfg: ChainConfig,
    op_name: str,
    args: Sequence[Any],
    role_alias: str,
    w3: Optional[Web3] = None,
    echo: Optional[Callable[[str], None]] = None,
) -> CallOutcome:
    """
    Run one catalog operation against cfg.contract_address.

    View operations go through an unsigned call; everything else is signed
    with the role's key, broadcast, and waited on. Lookups that need no
    network (operation, role, credential) fail before any RPC is made.
    """
    echo = echo or (lambda _msg: None)

    descriptor = get_descriptor(op_name)
    if descriptor is None:
        raise UnknownOperation(op_name)

    identity = resolve_identity(cfg, role_alias)
    if not descriptor.is_view and not identity.private_key:
        raise MissingCredential(role_alias)

    call_args = coerce_args(descriptor, args)

    if w3 is None:
        w3 = get_web3(cfg)

    if not has_code(w3, cfg.contract_address):
        raise NoContractDeployed(cfg.contract_address)

    contract = get_contract(w3, cfg)
    outcome = CallOutcome(descriptor=descriptor, role=identity.alias)

    if descriptor.is_view:
        echo("📖 Calling view function (read-only)...")
        log.info(f"view {descriptor.name} as {identity.alias} args={call_args}")
        outcome.raw = call_view(contract, descriptor, call_args)
        outcome.decoded = decode_result(outcome.raw, descriptor)
        return outcome

    outcome.tx = send_transaction(w3, contract, cfg, descriptor, call_args, identity, echo=echo)
    return outcome


def fetch_product_core(cfg: ChainConfig, product_id: str, w3: Optional[Web3] = None) -> Dict[str, Any]:
    """
    On-chain core fields for the verification page, raw (not display-formatted):
    productId, statusIndex, manufacturer, currentOwner, isAuthentic, factoryId.
    """
    if not product_id:
        raise FetchFailure("Missing product id.")

    outcome = dispatch(cfg, "getProductCore", [normalize_arg(product_id)], CONTRACT_ALIAS, w3=w3)
    fields = dict(zip(outcome.descriptor.return_names, outcome.raw))

    return {
        "productId": fields.get("productId"),
        "statusIndex": fields.get("status"),
        "manufacturer": fields.get("manufacturer"),
        "currentOwner": fields.get("currentOwner"),
        "isAuthentic": fields.get("isAuthentic"),
        "factoryId": fields.get("factoryId"),
    }
