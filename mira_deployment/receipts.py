import time
from typing import Callable, NamedTuple, Optional

from mira_deployment.exceptions import ConfirmationTimeout


class Receipt(NamedTuple):
    """The outcome of a mined transaction."""

    txn_hash: str
    status: int
    block_number: Optional[int] = None
    contract_address: Optional[str] = None
    revert_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


def await_receipt(
    txn_hash: str,
    lookup: Callable[[str], Optional[Receipt]],
    timeout: float,
    poll_interval: float,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Receipt:
    """
    Polls a read-only receipt lookup until the transaction is mined.
    Only the lookup is repeated; nothing is ever resubmitted.
    """
    deadline = clock() + timeout
    while True:
        receipt = lookup(txn_hash)
        if receipt is not None:
            return receipt
        if clock() >= deadline:
            raise ConfirmationTimeout(txn_hash=txn_hash, timeout=timeout)
        sleep(poll_interval)
