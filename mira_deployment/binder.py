from typing import Any, Dict, Sequence, Set

from eth_typing import ChecksumAddress

from mira_deployment.chain import ChainClient
from mira_deployment.constants import INITIALIZER_METHOD, PROXY_CONTRACT_NAME
from mira_deployment.exceptions import (
    AlreadyInitializedError,
    ArgumentArityError,
    ConfigurationError,
)
from mira_deployment.plans import to_address
from mira_deployment.receipts import Receipt


class ProxyBinder:
    """
    Deploys transparent proxies in front of freshly deployed implementations
    and hands out their one-time initializer exactly once.
    """

    def __init__(self, chain_client: ChainClient, proxy_contract_name: str = PROXY_CONTRACT_NAME):
        self.chain_client = chain_client
        self.proxy_contract_name = proxy_contract_name
        self._bound: Dict[ChecksumAddress, ChecksumAddress] = dict()  # proxy -> implementation
        self._initialized: Set[ChecksumAddress] = set()

    def bind(self, implementation: str, admin: str, data: bytes = b"") -> ChecksumAddress:
        """Submits the proxy deployment and returns the proxy address."""
        implementation = to_address("implementation", implementation)
        admin = to_address("admin", admin)
        if admin == implementation:
            raise ConfigurationError(
                f"Proxy admin cannot be the implementation contract ({implementation})"
            )

        print(f"\nDeploying {self.proxy_contract_name} bound to {implementation} (admin {admin}).")
        proxy = self.chain_client.deploy_contract(
            self.proxy_contract_name, implementation, admin, data
        )
        self._bound[proxy] = implementation
        return proxy

    def implementation_of(self, proxy: str) -> ChecksumAddress:
        return self._bound[proxy]

    def initialize(self, proxy: str, contract_name: str, args: Sequence[Any]) -> Receipt:
        """
        Calls `initialize` on the proxy through the implementation's ABI.
        Nothing is submitted unless the proxy was bound by this binder,
        the arguments fit the initializer and the initializer is unconsumed.
        """
        args = tuple(args)
        if proxy in self._initialized:
            raise AlreadyInitializedError(proxy)

        arities = self.chain_client.initializer_arities(contract_name)
        if len(args) not in arities:
            expected = next(iter(arities)) if len(arities) == 1 else tuple(sorted(arities))
            raise ArgumentArityError(contract_name, expected, len(args))

        if proxy not in self._bound:
            raise ConfigurationError(f"Proxy {proxy} was not bound in this run.")
        if self.chain_client.is_initialized(proxy):
            raise AlreadyInitializedError(proxy)

        print(
            f"\nWrapping {contract_name} into {self.proxy_contract_name} at {proxy} "
            f"and calling {INITIALIZER_METHOD}."
        )
        receipt = self.chain_client.call_method(proxy, contract_name, INITIALIZER_METHOD, *args)
        self._initialized.add(proxy)
        return receipt
