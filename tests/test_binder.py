import pytest

from mira_deployment.binder import ProxyBinder
from mira_deployment.constants import MARKETPLACE, PROXY_CONTRACT_NAME, SWAP
from mira_deployment.exceptions import (
    AlreadyInitializedError,
    ArgumentArityError,
    ConfigurationError,
)
from tests.conftest import DEPLOYER, MIRA, WCSB


@pytest.fixture
def binder(chain_client):
    return ProxyBinder(chain_client)


@pytest.fixture
def implementation(chain_client):
    return chain_client.deploy_contract(MARKETPLACE)


def test_bind(binder, chain_client, implementation):
    proxy = binder.bind(implementation, DEPLOYER)
    assert proxy != implementation
    assert binder.implementation_of(proxy) == implementation
    assert chain_client.calls[-1] == ("deploy", PROXY_CONTRACT_NAME, implementation, DEPLOYER, b"")


def test_bind_accepts_lowercase_addresses(binder, chain_client, implementation):
    binder.bind(implementation.lower(), DEPLOYER.lower())
    assert chain_client.calls[-1] == ("deploy", PROXY_CONTRACT_NAME, implementation, DEPLOYER, b"")


def test_bind_admin_is_implementation(binder, chain_client, implementation):
    calls_before = len(chain_client.calls)
    with pytest.raises(ConfigurationError, match="cannot be the implementation"):
        binder.bind(implementation, implementation.lower())
    assert len(chain_client.calls) == calls_before  # nothing submitted


def test_bind_invalid_admin(binder, chain_client, implementation):
    calls_before = len(chain_client.calls)
    with pytest.raises(ConfigurationError, match="'admin' is not a valid address"):
        binder.bind(implementation, "0xdeadbeef")
    assert len(chain_client.calls) == calls_before


def test_initialize(binder, chain_client, implementation):
    proxy = binder.bind(implementation, DEPLOYER)
    receipt = binder.initialize(proxy, MARKETPLACE, (WCSB,))
    assert receipt.succeeded
    assert chain_client.calls[-1] == ("call", proxy, MARKETPLACE, "initialize", WCSB)
    assert chain_client.is_initialized(proxy)


def test_second_initialize_fails(binder, chain_client, implementation):
    proxy = binder.bind(implementation, DEPLOYER)
    binder.initialize(proxy, MARKETPLACE, (WCSB,))
    calls_before = len(chain_client.calls)

    with pytest.raises(AlreadyInitializedError):
        binder.initialize(proxy, MARKETPLACE, (WCSB,))
    # different arguments are not re-applied either
    with pytest.raises(AlreadyInitializedError):
        binder.initialize(proxy, MARKETPLACE, (MIRA,))
    assert len(chain_client.calls) == calls_before


def test_initialize_already_initialized_on_chain(binder, chain_client, implementation):
    proxy = binder.bind(implementation, DEPLOYER)
    # someone else consumed the initializer between bind and initialize
    chain_client.initialized.add(proxy)

    calls_before = len(chain_client.calls)
    with pytest.raises(AlreadyInitializedError) as e:
        binder.initialize(proxy, MARKETPLACE, (WCSB,))
    assert e.value.proxy_address == proxy
    assert len(chain_client.calls) == calls_before


def test_initialize_wrong_arity(binder, chain_client):
    implementation = chain_client.deploy_contract(SWAP)
    proxy = binder.bind(implementation, DEPLOYER)
    calls_before = len(chain_client.calls)

    with pytest.raises(ArgumentArityError) as e:
        binder.initialize(proxy, SWAP, (WCSB, MIRA))
    assert e.value.expected == 4
    assert e.value.got == 2
    assert len(chain_client.calls) == calls_before
    assert not chain_client.is_initialized(proxy)


def test_initialize_unbound_proxy(binder, chain_client, implementation):
    calls_before = len(chain_client.calls)
    with pytest.raises(ConfigurationError, match="was not bound"):
        binder.initialize(implementation, MARKETPLACE, (WCSB,))
    assert len(chain_client.calls) == calls_before


def test_initialize_unbound_proxy_skips_chain_reads(chain_client, implementation, monkeypatch):
    first_binder = ProxyBinder(chain_client)
    proxy = first_binder.bind(implementation, DEPLOYER)

    def is_initialized(address):
        pytest.fail(f"read initializer state of unbound proxy {address}")

    monkeypatch.setattr(chain_client, "is_initialized", is_initialized)
    second_binder = ProxyBinder(chain_client)
    with pytest.raises(ConfigurationError, match="was not bound"):
        second_binder.initialize(proxy, MARKETPLACE, (WCSB,))
