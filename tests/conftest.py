from typing import Optional

import pytest
from eth_utils import to_checksum_address

from mira_deployment.chain import ChainClient
from mira_deployment.constants import (
    CROSSBELL,
    INITIALIZER_METHOD,
    LOCAL,
    MARKETPLACE,
    ROPSTEN,
    SWAP,
)
from mira_deployment.exceptions import ChainSubmissionError
from mira_deployment.networks import PROFILES
from mira_deployment.plans import resolve_plan
from mira_deployment.receipts import Receipt

# Common constants
DEPLOYER = "0xda2423ceA4f1047556e7a142F81a7ED50e93e160"
WCSB = "0xff823B6138089Bea84E8d67fcb68f786e7Feb118"
MIRA = "0xAfB95CC0BD320648B3E8Df6223d9CDD05EbeDC64"
PROXY_OWNER = "0xc72cE0090718502f08506c4592F18f13094d4CE3"
ADMIN = "0x4BCe096F44b90B812420637068dC215C1C3C8B54"

ONE_TOKEN = 10**18

ALREADY_INITIALIZED = "Initializable: contract is already initialized"


class FakeChainClient(ChainClient):
    """
    In-memory chain: every submission is recorded in `calls`,
    contracts named in `rejected` fail on submission, contracts named in
    `reverted` are mined with a failed status and contracts named in
    `unmined` never get a receipt.
    """

    poll_interval = 0

    def __init__(self, chain_id: int = 3, arities=None):
        self._chain_id = chain_id
        self.arities = arities or {MARKETPLACE: {1, 2, 3}, SWAP: {4}}
        self.calls = list()
        self.receipts = dict()
        self.deployments = dict()
        self.initialized = set()
        self.code = set()
        self.rejected = set()
        self.reverted = set()
        self.unmined = set()
        self.lookups = 0
        self._counter = 0

    def _next(self):
        self._counter += 1
        address = to_checksum_address(f"0x{0x1000 + self._counter:040x}")
        txn_hash = f"0x{self._counter:064x}"
        return address, txn_hash

    def _mine(self, name: str, txn_hash: str, status: int, **kwargs) -> Receipt:
        receipt = Receipt(txn_hash=txn_hash, status=status, block_number=self._counter, **kwargs)
        if name not in self.unmined:
            self.receipts[txn_hash] = receipt
        return receipt

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def submissions(self):
        return [call[0] for call in self.calls]

    def deploy_contract(self, contract_name: str, *args):
        self.calls.append(("deploy", contract_name, *args))
        address, txn_hash = self._next()
        if contract_name in self.rejected:
            raise ChainSubmissionError(reason="insufficient funds for gas * price + value")
        status = 0 if contract_name in self.reverted else 1
        self._mine(contract_name, txn_hash, status, contract_address=address)
        self.deployments[address] = txn_hash
        if status:
            self.code.add(address)
        return address

    def call_method(self, address: str, contract_name: str, method: str, *args) -> Receipt:
        self.calls.append(("call", address, contract_name, method, *args))
        _, txn_hash = self._next()
        if method == INITIALIZER_METHOD and address in self.initialized:
            return self._mine(method, txn_hash, 0, revert_message=ALREADY_INITIALIZED)
        if method in self.reverted:
            return self._mine(method, txn_hash, 0, revert_message="execution reverted")
        if method == INITIALIZER_METHOD:
            self.initialized.add(address)
        return self._mine(method, txn_hash, 1)

    def get_receipt(self, txn_hash: str) -> Optional[Receipt]:
        self.lookups += 1
        return self.receipts.get(txn_hash)

    def deployment_txn_hash(self, address: str) -> str:
        return self.deployments[address]

    def initializer_arities(self, contract_name: str):
        return self.arities[contract_name]

    def is_initialized(self, address: str) -> bool:
        return address in self.initialized

    def has_code(self, address: str) -> bool:
        return address in self.code


# Fixtures
@pytest.fixture
def chain_client():
    return FakeChainClient(chain_id=3)


@pytest.fixture
def ropsten():
    return PROFILES[ROPSTEN]


@pytest.fixture
def crossbell():
    return PROFILES[CROSSBELL]


@pytest.fixture
def local():
    return PROFILES[LOCAL]


@pytest.fixture
def swap_overrides():
    return {
        "proxy_admin": DEPLOYER,
        "wcsb": WCSB,
        "mira": MIRA,
        "min_csb": "10",
        "min_mira": "100",
    }


@pytest.fixture
def swap_plan(swap_overrides):
    return resolve_plan(SWAP, "v1", swap_overrides)


@pytest.fixture
def marketplace_plan():
    return resolve_plan(
        MARKETPLACE, "v3", {"proxy_admin": PROXY_OWNER, "wcsb": WCSB, "mira": MIRA, "admin": ADMIN}
    )
