from pathlib import Path

import mira_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(mira_deployment.__file__).parent
PLANS_DIR = DEPLOYMENT_DIR / "deployment_plans"

#
# Networks
#

LOCAL = "local"
MAINNET_FORK = "mainnet-fork"
ROPSTEN = "ropsten"
CROSSBELL = "crossbell"

SUPPORTED_NETWORKS = [LOCAL, MAINNET_FORK, ROPSTEN, CROSSBELL]
LOCAL_NETWORKS = [LOCAL, MAINNET_FORK]

# historical state replayed by the forked test network
MAINNET_FORK_BLOCK = 14390000

#
# Contracts
#

MARKETPLACE = "MarketPlace"
SWAP = "Swap"

CONTRACT_FAMILIES = [MARKETPLACE, SWAP]

PROXY_CONTRACT_NAME = "TransparentUpgradeableProxy"
INITIALIZER_METHOD = "initialize"

# OpenZeppelin 4.x Initializable keeps `_initialized` (uint8) in the lowest byte of slot 0
INITIALIZED_SLOT = 0

ALREADY_INITIALIZED_REVERTS = (
    "Initializable: contract is already initialized",  # OpenZeppelin 4.x
    "InvalidInitialization",  # OpenZeppelin 5.x custom error
)

#
# Units
#

TOKEN_DECIMALS = 18

#
# Confirmations
#

DEFAULT_CONFIRMATION_TIMEOUT = 300  # seconds
DEFAULT_POLL_INTERVAL = 2  # seconds
