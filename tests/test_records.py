import json

import pytest

from mira_deployment.constants import PROXY_CONTRACT_NAME
from mira_deployment.exceptions import ChainSubmissionError
from mira_deployment.executor import DeployedModule, DeploymentStatus, execute
from mira_deployment.records import read_record, write_record
from tests.conftest import DEPLOYER, FakeChainClient


def test_write_record(swap_plan, chain_client, ropsten, tmp_path):
    module = execute(swap_plan, chain_client, ropsten, autosign=True)
    filepath = write_record(module, swap_plan, ropsten, tmp_path / "records" / "ropsten.json")

    assert filepath == tmp_path / "records" / "ropsten.json"
    data = json.loads(filepath.read_text())
    entry = data["3"]["Swap"]
    assert entry["implementation"] == module.implementation
    assert entry["proxy"] == module.proxy
    assert entry["proxy_admin"] == DEPLOYER
    assert entry["status"] == "initialized"
    assert entry["version"] == "v1"
    assert entry["initializer_args"]["min_mira"] == str(100 * 10**18)


def test_partial_record(swap_plan, ropsten, tmp_path):
    module = DeployedModule("Swap")
    module.implementation = "0x" + "12" * 20
    module.advance(DeploymentStatus.IMPLEMENTATION_DEPLOYED)
    module.fail("deploy proxy", ChainSubmissionError("execution reverted"))

    filepath = write_record(module, swap_plan, ropsten, tmp_path / "ropsten.json")
    (entry,) = read_record(filepath)
    assert entry.chain_id == 3
    assert entry.name == "Swap"
    assert entry.proxy is None
    assert entry.status == "failed"
    assert entry.failed_step == "deploy proxy"
    assert entry.error == "execution reverted"
    assert entry.unconfirmed is None


def test_records_are_never_overwritten(swap_plan, marketplace_plan, ropsten, tmp_path):
    filepath = tmp_path / "ropsten.json"
    first = execute(swap_plan, FakeChainClient(chain_id=3), ropsten, autosign=True)
    second = execute(swap_plan, FakeChainClient(chain_id=3), ropsten, autosign=True)
    marketplace = execute(marketplace_plan, FakeChainClient(chain_id=3), ropsten, autosign=True)

    assert write_record(first, swap_plan, ropsten, filepath) == filepath
    assert write_record(marketplace, marketplace_plan, ropsten, filepath) == filepath
    unmerged = write_record(second, swap_plan, ropsten, filepath)
    assert unmerged == tmp_path / "ropsten.unmerged.json"

    entries = {entry.name: entry for entry in read_record(filepath)}
    assert set(entries) == {"Swap", "MarketPlace"}
    assert entries["Swap"].proxy == first.proxy


def test_record_requires_chain_id(swap_plan, local, tmp_path):
    module = DeployedModule("Swap")
    with pytest.raises(ValueError, match="no chain_id"):
        write_record(module, swap_plan, local, tmp_path / "local.json")

    filepath = write_record(module, swap_plan, local, tmp_path / "local.json", chain_id=1337)
    assert "1337" in json.loads(filepath.read_text())


def test_record_keeps_unconfirmed_submission(swap_plan, chain_client, ropsten, tmp_path):
    chain_client.unmined.add(PROXY_CONTRACT_NAME)
    module = execute(swap_plan, chain_client, ropsten, autosign=True, confirmation_timeout=0.01)
    assert module.unconfirmed is not None

    filepath = write_record(module, swap_plan, ropsten, tmp_path / "ropsten.json")
    (entry,) = read_record(filepath)
    assert entry.proxy is None
    assert entry.unconfirmed == module.unconfirmed
    assert json.loads(filepath.read_text())["3"]["Swap"]["unconfirmed"] == module.unconfirmed
