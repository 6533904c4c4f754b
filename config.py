import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

import requests
from dotenv import load_dotenv
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

load_dotenv()

ENV = os.getenv("ENV", "TEST").upper()

DEFAULTS = {
    "TEST": {
        "RPC_URL": "https://rpc-amoy.polygon.technology/",
        "CHAIN_ID": "80002",
        "CONTRACT_ADDRESS": "0x77196Eac8E14C73d403dE8f1872aC4f9aBEC79c8",
    },
    "LIVE": {
        "RPC_URL": "https://rpc-amoy.polygon.technology/",
        "CHAIN_ID": "80002",
        "CONTRACT_ADDRESS": "0x77196Eac8E14C73d403dE8f1872aC4f9aBEC79c8",
    }
}

cfg = DEFAULTS["LIVE"] if ENV == "LIVE" else DEFAULTS["TEST"]

RPC_URL          = os.getenv("RPC_URL", cfg["RPC_URL"])
CHAIN_ID         = int(os.getenv("CHAIN_ID", cfg["CHAIN_ID"]))
CONTRACT_ADDRESS = os.getenv("CONTRACT_ADDRESS", cfg["CONTRACT_ADDRESS"])

# Display addresses per role alias. The alias only picks the signer,
# every call goes to CONTRACT_ADDRESS.
ROLE_ADDRESSES = {
    "adm": "0xced719c26c4406b4f2966a9868cc28e325c433f6",
    "dst": "0x5bdbc77ba6fd354a22c3e8dfb122722d321f3b91",
    "qc": "0x08c0739effb8fd1072c4c3b715fc8a09449fd225",
    "rl": "0xeade29a6daf40cc19671aec021d692cddf407fec",
    "cust": "0xb30ee27129b52aa17492b4bc728080d8c328eb25",
    "manu": "0x43e5bd17bdd2a599050dcbf9dfbd65b04caeeb12",
}

# Pseudo-alias for the target contract itself (read calls only)
CONTRACT_ALIAS = "contract"

# Confirmation wait: 0 = wait until the node reports the receipt
RECEIPT_TIMEOUT_SECONDS = int(os.getenv("RECEIPT_TIMEOUT_SECONDS", "0"))
RECEIPT_POLL_SECONDS = float(os.getenv("RECEIPT_POLL_SECONDS", "2"))

# Web front-end
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")
WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
WEB_PORT = int(os.getenv("WEB_PORT", "5050"))
SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")
DISPLAY_TZ = os.getenv("DISPLAY_TZ", "UTC")

# ---------------- Paths (stable, absolute) ----------------
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Logging
LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
LOG_FILE = os.getenv("LOG_FILE", "product_trace.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()

# Product metadata (name, images) - SQLite, keyed by product id
METADATA_DB_PATH = os.getenv("METADATA_DB_PATH", os.path.join(BASE_DIR, "metadata.db"))


def private_key_var(alias: str) -> str:
    return f"PRIVATE_KEY_{alias.upper()}"


@dataclass(frozen=True)
class ChainConfig:
    rpc_url: str
    chain_id: int
    contract_address: str
    role_addresses: Mapping[str, str]
    private_keys: Mapping[str, str]
    receipt_timeout: int = 0
    receipt_poll: float = 2.0
    env: str = "TEST"

    @property
    def aliases(self) -> list:
        return list(self.role_addresses) + [CONTRACT_ALIAS]

    def is_known_alias(self, alias: Optional[str]) -> bool:
        return bool(alias) and alias in self.aliases

    def address_for(self, alias: str) -> Optional[str]:
        if alias == CONTRACT_ALIAS:
            return self.contract_address
        return self.role_addresses.get(alias)

    def private_key_for(self, alias: str) -> Optional[str]:
        return self.private_keys.get(alias)


def load_chain_config(environ: Optional[Mapping[str, str]] = None) -> ChainConfig:
    """
    Build the process-wide chain configuration once at startup.
    Missing PRIVATE_KEY_<ALIAS> entries are fine for read-only use.
    """
    env = os.environ if environ is None else environ

    keys = {}
    for alias in ROLE_ADDRESSES:
        value = (env.get(private_key_var(alias)) or "").strip()
        if value:
            keys[alias] = value

    return ChainConfig(
        rpc_url=env.get("RPC_URL", RPC_URL),
        chain_id=int(env.get("CHAIN_ID", CHAIN_ID)),
        contract_address=env.get("CONTRACT_ADDRESS", CONTRACT_ADDRESS),
        role_addresses=MappingProxyType(dict(ROLE_ADDRESSES)),
        private_keys=MappingProxyType(keys),
        receipt_timeout=int(env.get("RECEIPT_TIMEOUT_SECONDS", RECEIPT_TIMEOUT_SECONDS)),
        receipt_poll=float(env.get("RECEIPT_POLL_SECONDS", RECEIPT_POLL_SECONDS)),
        env=ENV,
    )


# -------------- HTTP Session --------------
# web3 JSON-RPC rides on this session, so a retried POST can re-send
# eth_sendRawTransaction; chain.broadcast treats the "already known" reply
# as the first copy having landed.
SESSION = requests.Session()
retries = Retry(
    total=3,
    backoff_factor=2.0,
    status_forcelist=[502, 503, 504],
    allowed_methods=["POST"],
)
SESSION.mount("http://", HTTPAdapter(max_retries=retries))
SESSION.mount("https://", HTTPAdapter(max_retries=retries))
