# services/catalog.py
from typing import Any, Dict, List, Optional

from models import AbiParam, OperationDescriptor, VIEW, NONPAYABLE

P = AbiParam

# ---------------- Operation catalog ----------------
_OPERATIONS = [
    # manufacturer
    OperationDescriptor("mintProduct", (
        P("uint256", "productId"), P("uint16", "factoryId"),
        P("string", "ipfsHash"), P("uint32", "manufactureDate"),
    )),
    OperationDescriptor("transferToDistributor", (
        P("uint256", "productId"), P("address", "distributor"), P("uint32", "transferDate"),
    )),

    # QC
    OperationDescriptor("markQualityPassed", (
        P("uint256", "productId"), P("uint32", "checkDate"),
    )),

    # distributor
    OperationDescriptor("acceptDistributorDelivery", (P("uint256", "productId"),)),
    OperationDescriptor("transferToRetailer", (
        P("uint256", "productId"), P("address", "retailer"), P("uint32", "transferDate"),
    )),

    # retailer
    OperationDescriptor("acceptRetailerDelivery", (P("uint256", "productId"),)),
    OperationDescriptor("sellProduct", (
        P("uint256", "productId"), P("address", "customer"), P("uint32", "saleDate"),
    )),

    # product reads
    OperationDescriptor("getProductCore", (P("uint256"),), VIEW, (
        P("uint256", "productId"), P("uint8", "status"), P("address", "manufacturer"),
        P("address", "currentOwner"), P("bool", "isAuthentic"), P("uint16", "factoryId"),
    )),
    OperationDescriptor("getProductExtended", (P("uint256"),), VIEW, (
        P("string", "ipfsHash"), P("uint32", "manufactureTimestamp"),
        P("uint32", "qualityCheckDate"), P("uint32", "saleDate"),
        P("uint32", "scanCount"), P("uint32", "transferCount"),
    )),
    OperationDescriptor("getProductChain", (P("uint256"),), VIEW, (
        P("address", "distributor"), P("address", "retailer"), P("bytes32", "receiptIdHash"),
    )),
    OperationDescriptor("getManufacturerProducts", (P("address"),), VIEW, (P("uint256[]"),)),
    OperationDescriptor("getDistributorProducts", (P("address"),), VIEW, (P("uint256[]"),)),
    OperationDescriptor("getRetailerProducts", (P("address"),), VIEW, (P("uint256[]"),)),
]

CATALOG: Dict[str, OperationDescriptor] = {op.name: op for op in _OPERATIONS}


def get_descriptor(name: Optional[str]) -> Optional[OperationDescriptor]:
    if not name:
        return None
    return CATALOG.get(name)


def contract_abi() -> List[Dict[str, Any]]:
    """JSON ABI for web3, generated from the catalog."""
    abi = []
    for op in _OPERATIONS:
        abi.append({
            "type": "function",
            "name": op.name,
            "stateMutability": op.mutability,
            "inputs": [{"name": p.name, "type": p.type} for p in op.inputs],
            "outputs": [{"name": p.name, "type": p.type} for p in op.outputs],
        })
    return abi


# ---------------- Product status ----------------
# code -> (CLI label, page label, severity)
PRODUCT_STATUS = {
    0: ("MANUFACTURED", "Manufactured", "pending"),
    1: ("QUALITY_CHECKED", "Quality Checked", "pending"),
    2: ("IN_TRANSIT_TO_DISTRIBUTOR", "In Transit to Distributor", "pending"),
    3: ("WITH_DISTRIBUTOR", "With Distributor", "ok"),
    4: ("IN_TRANSIT_TO_RETAILER", "In Transit to Retailer", "pending"),
    5: ("WITH_RETAILER", "With Retailer", "ok"),
    6: ("SOLD", "Sold", "ok"),
    7: ("RETURNED", "Returned", "error"),
}


def status_code_label(code: int) -> str:
    entry = PRODUCT_STATUS.get(code)
    return entry[0] if entry else f"UNKNOWN({code})"


def status_display_label(code: int) -> str:
    entry = PRODUCT_STATUS.get(code)
    return entry[1] if entry else f"Unknown ({code})"


def status_css_class(code: int, is_authentic: Optional[bool] = True) -> str:
    if is_authentic is False:
        return "status-error"
    entry = PRODUCT_STATUS.get(code)
    return f"status-{entry[2]}" if entry else "status-pending"
