"""
Test configuration.

Points logs and the metadata store at a throwaway directory before any
project module is imported, and provides an in-memory stand-in for web3.
"""
import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="product_trace_tests_")
os.environ["LOG_DIR"] = os.path.join(_TMP, "logs")
os.environ["METADATA_DB_PATH"] = os.path.join(_TMP, "metadata.db")
os.environ["PUBLIC_BASE_URL"] = ""

import pytest
from web3.exceptions import TimeExhausted

from config import load_chain_config

TEST_KEY = "0x" + "11" * 32
CONTRACT = "0x77196eac8e14c73d403de8f1872ac4f9abec79c8"
TX_HASH = b"\xab" * 32


class FakeCall:
    def __init__(self, eth, name, args, to=None):
        self.eth = eth
        self.to = to
        self.name = name
        self.args = args

    def call(self):
        self.eth.calls.append(("call", self.name, self.args))
        result = self.eth.results[self.name]
        if isinstance(result, Exception):
            raise result
        return result

    def build_transaction(self, params):
        self.eth.calls.append(("build_transaction", self.name, self.args))
        return {
            "to": self.to,
            "data": "0x",
            "value": 0,
            "gas": 100_000,
            "gasPrice": 1_000_000_000,
            "nonce": params["nonce"],
            "chainId": params["chainId"],
        }


class FakeFunctions:
    def __init__(self, eth, address):
        self._eth = eth
        self._address = address

    def __getattr__(self, name):
        return lambda *args: FakeCall(self._eth, name, args, to=self._address)


class FakeContract:
    def __init__(self, eth, address, abi):
        self.address = address
        self.abi = abi
        self.functions = FakeFunctions(eth, address)


class FakeEth:
    def __init__(self, code=b"\x60\x80\x60\x40", results=None, receipt=None, wait_timeouts=0, send_error=None):
        self.code = code
        self.results = results or {}
        self.receipt = receipt or {"blockNumber": 123, "gasUsed": 45678, "status": 1}
        # receipt waits that time out before the receipt shows up
        self.wait_timeouts = wait_timeouts
        self.send_error = send_error
        self.calls = []

    def get_code(self, address):
        self.calls.append(("get_code", address))
        return self.code

    def contract(self, address, abi):
        return FakeContract(self, address, abi)

    def get_transaction_count(self, address, block_identifier="latest"):
        self.calls.append(("get_transaction_count", address))
        return 7

    def send_raw_transaction(self, raw):
        self.calls.append(("send_raw_transaction", raw))
        if self.send_error is not None:
            raise self.send_error
        return TX_HASH

    def wait_for_transaction_receipt(self, tx_hash, timeout=120, poll_latency=0.1):
        self.calls.append(("wait_for_transaction_receipt", tx_hash, timeout))
        if self.wait_timeouts > 0:
            self.wait_timeouts -= 1
            raise TimeExhausted(f"Transaction {tx_hash!r} is not in the chain after {timeout} seconds")
        return self.receipt


class FakeWeb3:
    def __init__(self, **kwargs):
        self.eth = FakeEth(**kwargs)


@pytest.fixture
def cfg():
    return load_chain_config({
        "RPC_URL": "http://127.0.0.1:8545",
        "CHAIN_ID": "80002",
        "CONTRACT_ADDRESS": CONTRACT,
        "PRIVATE_KEY_MANU": TEST_KEY,
        "RECEIPT_TIMEOUT_SECONDS": "5",
    })


@pytest.fixture
def fake_w3():
    return FakeWeb3(results={
        "getProductCore": [
            1001, 6,
            "0x43E5bd17BdD2A599050dcBf9dFBd65B04caEeb12",
            "0xB30Ee27129b52aA17492b4bC728080D8c328EB25",
            True, 3,
        ],
        "getManufacturerProducts": [1001, 1002],
    })
