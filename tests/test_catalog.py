from services.catalog import (
    CATALOG,
    contract_abi,
    get_descriptor,
    status_code_label,
    status_css_class,
    status_display_label,
)

WRITES = [
    "mintProduct", "transferToDistributor", "markQualityPassed",
    "acceptDistributorDelivery", "transferToRetailer",
    "acceptRetailerDelivery", "sellProduct",
]


def test_write_operations_have_no_return_fields():
    for name in WRITES:
        op = CATALOG[name]
        assert not op.is_view
        assert op.return_names == []


def test_read_operation_return_names():
    assert get_descriptor("getProductCore").return_names == [
        "productId", "status", "manufacturer", "currentOwner", "isAuthentic", "factoryId",
    ]
    assert get_descriptor("getProductExtended").return_names == [
        "ipfsHash", "manufactureTimestamp", "qualityCheckDate", "saleDate", "scanCount", "transferCount",
    ]
    assert get_descriptor("getProductChain").return_names == ["distributor", "retailer", "receiptIdHash"]
    for name in ("getManufacturerProducts", "getDistributorProducts", "getRetailerProducts"):
        op = get_descriptor(name)
        assert op.is_view
        assert op.return_names == ["value0"]


def test_unknown_descriptor():
    assert get_descriptor("productCore") is None
    assert get_descriptor("") is None


def test_contract_abi_matches_catalog():
    abi = {entry["name"]: entry for entry in contract_abi()}
    assert set(abi) == set(CATALOG)
    assert abi["getProductCore"]["stateMutability"] == "view"
    assert abi["mintProduct"]["stateMutability"] == "nonpayable"
    assert [i["type"] for i in abi["mintProduct"]["inputs"]] == ["uint256", "uint16", "string", "uint32"]
    assert abi["getRetailerProducts"]["outputs"] == [{"name": "", "type": "uint256[]"}]


def test_status_labels():
    assert status_code_label(6) == "SOLD"
    assert status_display_label(6) == "Sold"
    assert status_code_label(99) == "UNKNOWN(99)"
    assert status_display_label(99) == "Unknown (99)"


def test_status_css_class():
    assert status_css_class(3) == "status-ok"
    assert status_css_class(0) == "status-pending"
    assert status_css_class(7) == "status-error"
    assert status_css_class(42) == "status-pending"
    assert status_css_class(3, False) == "status-error"
    assert status_css_class(6, None) == "status-ok"
