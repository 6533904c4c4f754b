# product_trace/exceptions.py

class InvokeError(Exception):
    """Base for every failure reported to the operator as a single line."""


class NoContractDeployed(InvokeError):
    def __init__(self, address: str):
        super().__init__(f"No contract deployed at: {address}")
        self.address = address


class UnknownOperation(InvokeError):
    def __init__(self, name: str):
        super().__init__(f"This function does NOT exist in ABI: {name}")
        self.name = name


class UnknownRole(InvokeError):
    def __init__(self, alias: str | None, known: list[str] | None = None):
        super().__init__(f"Unknown role alias: {alias}")
        self.alias = alias
        self.known = known or []


class MissingCredential(InvokeError):
    def __init__(self, alias: str):
        super().__init__(
            f"No private key found for role: {alias} "
            f"(add PRIVATE_KEY_{alias.upper()} to your .env file)"
        )
        self.alias = alias


class RemoteCallFailure(InvokeError):
    """
    The node rejected the call, the transaction reverted, or the arguments
    could not be encoded. Keeps the tx hash when one was already broadcast.
    """
    def __init__(self, message: str, *, tx_hash: str | None = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class FetchFailure(InvokeError):
    """Data for the verification page could not be retrieved."""
