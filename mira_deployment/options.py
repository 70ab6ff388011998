from pathlib import Path

import click

from mira_deployment.constants import (
    CONTRACT_FAMILIES,
    DEFAULT_CONFIRMATION_TIMEOUT,
    SUPPORTED_NETWORKS,
)
from mira_deployment.types import ChecksumAddress, Threshold

network_option = click.option(
    "--network",
    "-n",
    "network_name",
    help="Network profile to deploy to",
    type=click.Choice(SUPPORTED_NETWORKS),
    required=True,
)

plan_option = click.option(
    "--plan",
    "-p",
    "plan_filepath",
    help="YAML deployment plan",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

family_option = click.option(
    "--family",
    "-f",
    help="Contract family to deploy",
    type=click.Choice(CONTRACT_FAMILIES),
    required=False,
)

version_option = click.option(
    "--version",
    "-v",
    "version_tag",
    help="Release whose initializer signature is used (e.g. v1)",
    type=str,
    required=False,
)

account_option = click.option(
    "--account",
    "-a",
    help="ape account alias to sign with, instead of the network profile's",
    type=str,
    required=False,
)

auto_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)

timeout_option = click.option(
    "--timeout",
    "-t",
    help="Seconds to wait for each confirmation",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_CONFIRMATION_TIMEOUT,
    show_default=True,
)

record_option = click.option(
    "--record",
    "-r",
    "record_filepath",
    help="JSON file to record the deployment outcome in",
    type=click.Path(dir_okay=False, path_type=Path),
    required=False,
)


def _address_option(name: str, help: str):
    return click.option(f"--{name.replace('_', '-')}", name, help=help, type=ChecksumAddress())


def _threshold_option(name: str, help: str):
    return click.option(f"--{name.replace('_', '-')}", name, help=help, type=Threshold())


proxy_admin_option = _address_option("proxy_admin", "Administrative address of the proxy")
implementation_option = _address_option(
    "implementation", "Already deployed implementation to reuse"
)
wcsb_option = _address_option("wcsb", "Wrapped CSB token address")
mira_option = _address_option("mira", "MIRA token address")
admin_option = _address_option("admin", "Business logic admin address")
min_csb_option = _threshold_option("min_csb", "Minimum CSB threshold, in whole tokens")
min_mira_option = _threshold_option("min_mira", "Minimum MIRA threshold, in whole tokens")

PLAN_PARAMETER_OPTIONS = [
    proxy_admin_option,
    implementation_option,
    wcsb_option,
    mira_option,
    admin_option,
    min_csb_option,
    min_mira_option,
]


def plan_parameter_options(func):
    for option in reversed(PLAN_PARAMETER_OPTIONS):
        func = option(func)
    return func
