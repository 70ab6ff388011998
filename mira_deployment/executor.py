from enum import Enum
from typing import List, Optional

from eth_typing import ChecksumAddress

from mira_deployment.binder import ProxyBinder
from mira_deployment.chain import ChainClient, is_already_initialized_revert
from mira_deployment.confirm import _confirm_plan
from mira_deployment.constants import DEFAULT_CONFIRMATION_TIMEOUT
from mira_deployment.exceptions import (
    AlreadyInitializedError,
    ArgumentArityError,
    ChainSubmissionError,
    ConfigurationError,
    DeploymentError,
)
from mira_deployment.networks import NetworkProfile, check_chain_id
from mira_deployment.plans import DeploymentPlan, validate_plan
from mira_deployment.receipts import Receipt


class DeploymentStatus(Enum):
    UNSTARTED = "unstarted"
    IMPLEMENTATION_DEPLOYED = "implementation deployed"
    PROXY_DEPLOYED = "proxy deployed"
    INITIALIZED = "initialized"
    FAILED = "failed"


_NEXT_STATUS = {
    DeploymentStatus.UNSTARTED: DeploymentStatus.IMPLEMENTATION_DEPLOYED,
    DeploymentStatus.IMPLEMENTATION_DEPLOYED: DeploymentStatus.PROXY_DEPLOYED,
    DeploymentStatus.PROXY_DEPLOYED: DeploymentStatus.INITIALIZED,
}


class DeployedModule:
    """
    The (implementation, proxy) pair produced by one plan.
    Addresses are only recorded once their deployment is confirmed.
    """

    def __init__(self, contract_name: str):
        self.contract_name = contract_name
        self.implementation: Optional[ChecksumAddress] = None
        self.proxy: Optional[ChecksumAddress] = None
        self.status = DeploymentStatus.UNSTARTED
        self.error: Optional[DeploymentError] = None
        self.failed_step: Optional[str] = None
        self.unconfirmed: Optional[str] = None  # submitted but never confirmed

    @property
    def initialized(self) -> bool:
        return self.status == DeploymentStatus.INITIALIZED

    @property
    def failed(self) -> bool:
        return self.status == DeploymentStatus.FAILED

    @property
    def initialization(self) -> str:
        return "confirmed" if self.initialized else "pending"

    def advance(self, status: DeploymentStatus) -> None:
        expected = _NEXT_STATUS.get(self.status)
        if status != expected:
            raise ValueError(f"Cannot move {self.contract_name} from {self.status} to {status}")
        self.status = status
        self.unconfirmed = None

    def fail(self, step: str, error: DeploymentError) -> None:
        if self.status not in _NEXT_STATUS:
            raise ValueError(f"{self.contract_name} is already {self.status.value}")
        self.failed_step = step
        self.error = error
        self.status = DeploymentStatus.FAILED

    def summary(self) -> List[str]:
        lines = [
            f"{self.contract_name} implementation: {self.implementation or '-'}",
            f"{self.contract_name} proxy: {self.proxy or '-'}",
            f"Initialization: {self.initialization}",
            f"Status: {self.status.value}",
        ]
        if self.failed:
            lines.append(f"Failed step: {self.failed_step}")
            lines.append(f"Error: {type(self.error).__name__}: {self.error}")
        if self.unconfirmed:
            lines.append(f"Unconfirmed submission: {self.unconfirmed}")
        return lines

    def __repr__(self):
        return (
            f"DeployedModule({self.contract_name}, implementation={self.implementation}, "
            f"proxy={self.proxy}, status={self.status.value})"
        )


def _check_receipt(receipt: Receipt, proxy: Optional[str] = None) -> Receipt:
    if receipt.succeeded:
        return receipt
    if proxy and is_already_initialized_revert(receipt.revert_message):
        raise AlreadyInitializedError(proxy)
    raise ChainSubmissionError(
        reason=receipt.revert_message or "Transaction reverted", txn_hash=receipt.txn_hash
    )


class DeploymentExecutor:
    """
    Drives a single deployment plan: implementation, proxy, then initializer.
    Every step waits for its confirmation and no step is ever retried.
    """

    DEPLOY_IMPLEMENTATION = "deploy implementation"
    DEPLOY_PROXY = "deploy proxy"
    INITIALIZE = "initialize"

    def __init__(
        self,
        chain_client: ChainClient,
        profile: NetworkProfile,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        autosign: bool = False,
    ):
        self.chain_client = chain_client
        self.profile = profile
        self.confirmation_timeout = confirmation_timeout
        self.autosign = autosign
        self.binder = ProxyBinder(chain_client)

    def _preflight(self, plan: DeploymentPlan) -> None:
        validate_plan(plan)
        if plan.network and plan.network != self.profile.name:
            raise ConfigurationError(
                f"Plan targets network '{plan.network}' but '{self.profile.name}' is selected."
            )
        chain_id = self.chain_client.chain_id
        check_chain_id(self.profile, chain_id)
        if plan.chain_id is not None and not self.profile.is_local and plan.chain_id != chain_id:
            raise ConfigurationError(
                f"Plan targets chain id {plan.chain_id} but the connected chain id is {chain_id}."
            )

        # the compiled initializer is known before anything is deployed
        arities = self.chain_client.initializer_arities(plan.contract_name)
        if len(plan.args) not in arities:
            expected = next(iter(arities)) if len(arities) == 1 else tuple(sorted(arities))
            raise ArgumentArityError(plan.contract_name, expected, len(plan.args))

    def execute(self, plan: DeploymentPlan) -> DeployedModule:
        """
        Raises ConfigurationError for plans rejected before any submission;
        every later failure is reported on the returned (partial) module.
        """
        self._preflight(plan)
        if not self.autosign:
            _confirm_plan(plan)

        module = DeployedModule(plan.contract_name)
        step = self.DEPLOY_IMPLEMENTATION
        try:
            module.implementation = self._deploy_implementation(plan, module)
            module.advance(DeploymentStatus.IMPLEMENTATION_DEPLOYED)

            step = self.DEPLOY_PROXY
            module.proxy = self._deploy_proxy(plan, module)
            module.advance(DeploymentStatus.PROXY_DEPLOYED)

            step = self.INITIALIZE
            self._initialize(plan, module)
            module.advance(DeploymentStatus.INITIALIZED)
        except DeploymentError as e:
            print(f"\n(!) {plan.contract_name} deployment failed at '{step}': {e}")
            module.fail(step, e)
            return module

        print(f"\n(i) {plan.contract_name} implementation deployed to: {module.implementation}")
        print(f"(i) {plan.contract_name} proxy deployed to: {module.proxy}")
        return module

    def _deploy_implementation(self, plan: DeploymentPlan, module: DeployedModule) -> str:
        if plan.implementation:
            if not self.chain_client.has_code(plan.implementation):
                raise ConfigurationError(f"No contract code at {plan.implementation}")
            print(f"\nReusing {plan.contract_name} implementation at {plan.implementation}.")
            return plan.implementation

        print(f"\nDeploying {plan.contract_name} implementation.")
        implementation = self.chain_client.deploy_contract(plan.contract_name)
        module.unconfirmed = implementation
        _check_receipt(
            self.chain_client.wait_for_deployment(implementation, self.confirmation_timeout)
        )
        return implementation

    def _deploy_proxy(self, plan: DeploymentPlan, module: DeployedModule) -> str:
        proxy = self.binder.bind(module.implementation, plan.proxy_admin)
        module.unconfirmed = proxy
        _check_receipt(self.chain_client.wait_for_deployment(proxy, self.confirmation_timeout))
        return proxy

    def _initialize(self, plan: DeploymentPlan, module: DeployedModule) -> None:
        receipt = self.binder.initialize(module.proxy, plan.contract_name, plan.args)
        module.unconfirmed = receipt.txn_hash
        confirmed = self.chain_client.wait_for_transaction(
            receipt.txn_hash, self.confirmation_timeout
        )
        _check_receipt(confirmed, proxy=module.proxy)


def execute(
    plan: DeploymentPlan, chain_client: ChainClient, profile: NetworkProfile, **kwargs
) -> DeployedModule:
    return DeploymentExecutor(chain_client, profile, **kwargs).execute(plan)
