from typing import Optional


class DeploymentError(Exception):
    """Base class for every failure of a proxy deployment run."""


class ConfigurationError(DeploymentError, ValueError):
    """
    Raised when a plan, profile or binding request is malformed.
    Always detected before any chain submission and never retried.
    """


class ArgumentArityError(ConfigurationError):
    """Raised when an initializer argument tuple does not match the expected signature."""

    def __init__(self, contract_name: str, expected, got: int):
        self.contract_name = contract_name
        self.expected = expected
        self.got = got
        super().__init__(
            f"{contract_name}.initialize expects {expected} argument(s), got {got}."
        )


class ChainSubmissionError(DeploymentError):
    """Raised when the network rejects or reverts a transaction, or cannot be reached."""

    def __init__(self, reason: str, txn_hash: Optional[str] = None):
        self.reason = reason
        self.txn_hash = txn_hash
        message = reason if txn_hash is None else f"{reason} (txn {txn_hash})"
        super().__init__(message)


class ConfirmationTimeout(ChainSubmissionError):
    """Raised when no receipt shows up before the confirmation timeout elapses."""

    def __init__(self, txn_hash: str, timeout: float):
        self.timeout = timeout
        super().__init__(f"Not confirmed after {timeout} seconds", txn_hash=txn_hash)


class AlreadyInitializedError(DeploymentError):
    """
    Raised when a proxy's initializer has already been consumed.
    Signals stale configuration reused against an initialized proxy; always fatal.
    """

    def __init__(self, proxy_address: str):
        self.proxy_address = proxy_address
        super().__init__(f"Contract at {proxy_address} is already initialized.")
