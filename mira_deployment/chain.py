import typing
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Optional, Set

from ape import accounts, chain
from ape.api import AccountAPI, ReceiptAPI
from ape.contracts import ContractInstance
from ape.exceptions import ApeException, ContractLogicError
from eth_typing import ChecksumAddress
from web3.exceptions import TransactionNotFound, Web3Exception

from mira_deployment.constants import (
    ALREADY_INITIALIZED_REVERTS,
    DEFAULT_POLL_INTERVAL,
    INITIALIZED_SLOT,
    INITIALIZER_METHOD,
)
from mira_deployment.exceptions import (
    AlreadyInitializedError,
    ChainSubmissionError,
    ConfigurationError,
)
from mira_deployment.networks import NetworkProfile
from mira_deployment.receipts import Receipt, await_receipt
from mira_deployment.utils import get_contract_container


def is_already_initialized_revert(message: Optional[str]) -> bool:
    """Returns True if a revert message comes from a consumed initializer."""
    if not message:
        return False
    return any(revert in message for revert in ALREADY_INITIALIZED_REVERTS)


# provider, RPC and transport failures (requests errors are OSErrors)
CHAIN_ERRORS = (ApeException, Web3Exception, OSError)


def _txn_hash(error: Exception) -> Optional[str]:
    txn = getattr(error, "txn", None)
    if isinstance(txn, ReceiptAPI):
        return txn.txn_hash
    return None


def _submission_error(error: Exception, txn_hash: Optional[str] = None) -> ChainSubmissionError:
    reason = str(error) or type(error).__name__
    return ChainSubmissionError(reason=reason, txn_hash=_txn_hash(error) or txn_hash)


@contextmanager
def chain_errors(txn_hash: Optional[str] = None):
    """Re-raises provider and transport failures as ChainSubmissionError."""
    try:
        yield
    except CHAIN_ERRORS as e:
        raise _submission_error(e, txn_hash=txn_hash) from e


class ChainClient(ABC):
    """
    Everything a deployment run needs from the chain: contract deployment,
    transaction submission and receipt lookup. Chain failures surface as
    ChainSubmissionError.
    """

    poll_interval: float = DEFAULT_POLL_INTERVAL

    @property
    @abstractmethod
    def chain_id(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def deploy_contract(self, contract_name: str, *args) -> ChecksumAddress:
        """Submits a contract deployment and returns the new contract's address."""
        raise NotImplementedError

    @abstractmethod
    def call_method(self, address: str, contract_name: str, method: str, *args) -> Receipt:
        """Submits a state-changing call of `contract_name`'s ABI at `address`."""
        raise NotImplementedError

    @abstractmethod
    def get_receipt(self, txn_hash: str) -> Optional[Receipt]:
        """Read-only receipt lookup; returns None until the transaction is mined."""
        raise NotImplementedError

    @abstractmethod
    def deployment_txn_hash(self, address: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def initializer_arities(self, contract_name: str) -> Set[int]:
        raise NotImplementedError

    @abstractmethod
    def is_initialized(self, address: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def has_code(self, address: str) -> bool:
        raise NotImplementedError

    def wait_for_transaction(self, txn_hash: str, timeout: float) -> Receipt:
        with chain_errors(txn_hash=txn_hash):
            return await_receipt(
                txn_hash=txn_hash,
                lookup=self.get_receipt,
                timeout=timeout,
                poll_interval=self.poll_interval,
            )

    def wait_for_deployment(self, address: str, timeout: float) -> Receipt:
        return self.wait_for_transaction(self.deployment_txn_hash(address), timeout)

    def describe(self) -> typing.List[str]:
        return [f"Chain ID: {self.chain_id}"]


class ApeChainClient(ChainClient):
    """Chain client backed by the connected ape provider and a single signer account."""

    def __init__(
        self,
        account: AccountAPI,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self._account = account
        self.poll_interval = poll_interval
        self._instances: Dict[str, ContractInstance] = dict()

    @classmethod
    def from_profile(cls, profile: NetworkProfile, autosign: bool = False, **kwargs):
        """Loads the signer referenced by the network profile."""
        if profile.account:
            account = accounts.load(profile.account)
            account.set_autosign(autosign)
        elif profile.is_local:
            account = accounts.test_accounts[0]
        else:
            raise ConfigurationError(f"No signer account configured for network '{profile.name}'")
        return cls(account=account, **kwargs)

    @property
    def account(self) -> AccountAPI:
        return self._account

    @property
    def chain_id(self) -> int:
        return chain.provider.chain_id

    def deploy_contract(self, contract_name: str, *args) -> ChecksumAddress:
        container = get_contract_container(contract_name)
        with chain_errors():
            instance = self._account.deploy(container, *args)
        self._instances[instance.address] = instance
        return instance.address

    def call_method(self, address: str, contract_name: str, method: str, *args) -> Receipt:
        container = get_contract_container(contract_name)
        try:
            handler = getattr(container.at(address), method)
            receipt = handler(*args, sender=self._account)
        except ContractLogicError as e:
            if method == INITIALIZER_METHOD and is_already_initialized_revert(str(e)):
                raise AlreadyInitializedError(address)
            raise _submission_error(e)
        except CHAIN_ERRORS as e:
            raise _submission_error(e)
        return Receipt(
            txn_hash=receipt.txn_hash,
            status=int(receipt.status),
            block_number=receipt.block_number,
        )

    def get_receipt(self, txn_hash: str) -> Optional[Receipt]:
        try:
            data = chain.provider.web3.eth.get_transaction_receipt(txn_hash)
        except TransactionNotFound:
            return None
        except CHAIN_ERRORS as e:
            raise _submission_error(e, txn_hash=txn_hash)
        return Receipt(
            txn_hash=txn_hash,
            status=data["status"],
            block_number=data["blockNumber"],
            contract_address=data.get("contractAddress"),
        )

    def deployment_txn_hash(self, address: str) -> str:
        instance = self._instances.get(address)
        if instance is None or not instance.txn_hash:
            raise ConfigurationError(f"No deployment of {address} was submitted in this run.")
        txn_hash: Any = instance.txn_hash
        return txn_hash if isinstance(txn_hash, str) else txn_hash.hex()

    def initializer_arities(self, contract_name: str) -> Set[int]:
        container = get_contract_container(contract_name)
        abis = [abi for abi in container.contract_type.methods if abi.name == INITIALIZER_METHOD]
        if not abis:
            raise ConfigurationError(f"{contract_name} has no '{INITIALIZER_METHOD}' method.")
        return {len(abi.inputs) for abi in abis}

    def is_initialized(self, address: str) -> bool:
        """
        Reads OpenZeppelin 4.x `Initializable._initialized` from the lowest-order
        byte of storage slot 0. This holds only while `Initializable` is the first
        base in the implementation's storage layout (true for MarketPlace and Swap);
        for any other layout an unrelated nonzero slot 0 reads as initialized.
        """
        with chain_errors():
            value = chain.provider.get_storage_at(address, INITIALIZED_SLOT)
        return bytes(value)[-1:] not in (b"", b"\x00")

    def has_code(self, address: str) -> bool:
        with chain_errors():
            return len(chain.provider.get_code(address)) > 0

    def describe(self) -> typing.List[str]:
        return [
            f"Account: {self._account.address}",
            f"Chain ID: {self.chain_id}",
            f"Gas Price: {chain.provider.gas_price}",
        ]
