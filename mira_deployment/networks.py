from typing import Dict, NamedTuple, Optional

from ape import networks

from mira_deployment.constants import (
    CROSSBELL,
    LOCAL,
    LOCAL_NETWORKS,
    MAINNET_FORK,
    MAINNET_FORK_BLOCK,
    ROPSTEN,
)
from mira_deployment.exceptions import ConfigurationError


class NetworkProfile(NamedTuple):
    """
    Represents the network a single deployment run targets.
    Selected once, before the run starts, and never mutated afterwards.
    """

    name: str
    network_choice: str  # ape network choice, i.e. <ecosystem>:<network>:<provider>
    rpc_url: Optional[str] = None
    chain_id: Optional[int] = None
    fork_block: Optional[int] = None
    account: Optional[str] = None  # ape account alias used for signing

    @property
    def is_local(self) -> bool:
        return self.name in LOCAL_NETWORKS

    def provider_settings(self) -> Dict:
        settings = dict()
        if self.fork_block is not None:
            ecosystem, network = self.network_choice.split(":")[:2]
            upstream_network = network.replace("-fork", "")
            settings["fork"] = {ecosystem: {upstream_network: {"block_number": self.fork_block}}}
        if self.rpc_url and not self.is_local:
            settings["uri"] = self.rpc_url
        return settings

    def connect(self):
        """Returns the ape provider context manager for this profile."""
        return networks.parse_network_choice(
            self.network_choice, provider_settings=self.provider_settings()
        )

    def describe(self) -> str:
        fork = f"block {self.fork_block}" if self.fork_block is not None else "latest"
        return "\n".join(
            [
                f"Network: {self.name}",
                f"Network Choice: {self.network_choice}",
                f"RPC: {self.rpc_url or 'default'}",
                f"Chain ID: {self.chain_id if self.chain_id is not None else 'any'}",
                f"State: {fork}",
            ]
        )


PROFILES = {
    LOCAL: NetworkProfile(
        name=LOCAL,
        network_choice="ethereum:local:test",
    ),
    MAINNET_FORK: NetworkProfile(
        name=MAINNET_FORK,
        network_choice="ethereum:mainnet-fork:foundry",
        chain_id=1,
        fork_block=MAINNET_FORK_BLOCK,
    ),
    ROPSTEN: NetworkProfile(
        name=ROPSTEN,
        network_choice="ethereum:ropsten:node",
        chain_id=3,
        account="deployer",
    ),
    CROSSBELL: NetworkProfile(
        name=CROSSBELL,
        network_choice="crossbell:mainnet:node",
        rpc_url="https://rpc.crossbell.io",
        chain_id=3737,
        account="deployer",
    ),
}


def get_profile(name: str, account: Optional[str] = None) -> NetworkProfile:
    """Selects one of the supported network profiles, optionally with another signer alias."""
    try:
        profile = PROFILES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown network '{name}'; expected one of {', '.join(PROFILES)}"
        )
    if account:
        profile = profile._replace(account=account)
    return profile


def check_chain_id(profile: NetworkProfile, chain_id: int) -> None:
    """Checks that the connected chain is the one the profile describes."""
    if profile.chain_id is None or profile.is_local:
        return
    if int(chain_id) != profile.chain_id:
        raise ConfigurationError(
            f"chain_id of network profile '{profile.name}' ({profile.chain_id}) does not match "
            f"chain_id of connected network ({chain_id})."
        )
