#models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

VIEW = "view"
NONPAYABLE = "nonpayable"

@dataclass(frozen=True)
class AbiParam:
    type: str
    name: str = ""

@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    inputs: Tuple[AbiParam, ...]
    mutability: str = NONPAYABLE
    outputs: Tuple[AbiParam, ...] = ()

    @property
    def is_view(self) -> bool:
        return self.mutability in (VIEW, "pure")

    @property
    def return_names(self) -> List[str]:
        # Unnamed outputs get a positional placeholder
        return [p.name or f"value{i}" for i, p in enumerate(self.outputs)]

@dataclass(frozen=True)
class RoleIdentity:
    alias: str
    address: Optional[str]
    private_key: Optional[str] = field(default=None, repr=False)

@dataclass
class TxOutcome:
    role: str
    sender: str
    tx_hash: str
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    status: Optional[int] = None

@dataclass
class CallOutcome:
    descriptor: OperationDescriptor
    role: str
    raw: Any = None
    decoded: Optional[Any] = None
    tx: Optional[TxOutcome] = None

@dataclass
class ProductMetadata:
    product_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = field(default_factory=list)
    updated_ts: Optional[str] = None

@dataclass
class VerificationView:
    product_id: str
    state: str = "loading"      # loading/result/error
    status_label: Optional[str] = None
    status_class: Optional[str] = None
    auth_label: Optional[str] = None
    manufacturer: Optional[str] = None
    owner: Optional[str] = None
    factory: Optional[str] = None
    metadata: Optional[ProductMetadata] = None
    error_message: Optional[str] = None
    core: Dict[str, Any] = field(default_factory=dict)
