import typing
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional, Tuple

from ape.utils import ZERO_ADDRESS
from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from mira_deployment.constants import MARKETPLACE, SWAP
from mira_deployment.exceptions import ArgumentArityError, ConfigurationError
from mira_deployment.units import to_base_units
from mira_deployment.utils import _load_yaml

ADDRESS = "address"
THRESHOLD = "threshold"

PROXY_ADMIN_KEY = "proxy_admin"
IMPLEMENTATION_KEY = "implementation"
CONSTANT_PREFIX = "$"


class Slot(NamedTuple):
    """A single positional argument of an initializer."""

    name: str
    kind: str
    description: str


WCSB = Slot("wcsb", ADDRESS, "wrapped CSB token address")
MIRA = Slot("mira", ADDRESS, "MIRA governance token address")
ADMIN = Slot("admin", ADDRESS, "business logic administrative address")
MIN_CSB = Slot("min_csb", THRESHOLD, "minimum CSB swap threshold, in wei")
MIN_MIRA = Slot("min_mira", THRESHOLD, "minimum MIRA swap threshold, in wei")


class PlanVersion(NamedTuple):
    """The initializer signature of one release of a contract family."""

    family: str
    tag: str
    slots: Tuple[Slot, ...]

    @property
    def arity(self) -> int:
        return len(self.slots)

    @property
    def slot_names(self) -> Tuple[str, ...]:
        return tuple(slot.name for slot in self.slots)

    @property
    def signature(self) -> str:
        return f"{self.family}.initialize({', '.join(self.slot_names)})"


def _versions(*versions: PlanVersion) -> Dict[Tuple[str, str], PlanVersion]:
    return OrderedDict(((v.family, v.tag), v) for v in versions)


# Swap v1 and v2 have the same arity but a different argument order,
# so versions are only ever looked up by their explicit tag.
PLAN_VERSIONS = _versions(
    PlanVersion(MARKETPLACE, "v1", (WCSB,)),
    PlanVersion(MARKETPLACE, "v2", (WCSB, MIRA)),
    PlanVersion(MARKETPLACE, "v3", (WCSB, MIRA, ADMIN)),
    PlanVersion(SWAP, "v1", (WCSB, MIRA, MIN_CSB, MIN_MIRA)),
    PlanVersion(SWAP, "v2", (MIRA, MIN_CSB, MIN_MIRA, ADMIN)),
)


def get_version(family: str, version_tag: str) -> PlanVersion:
    try:
        return PLAN_VERSIONS[(family, version_tag)]
    except KeyError:
        known = ", ".join(tag for f, tag in PLAN_VERSIONS if f == family)
        if not known:
            raise ConfigurationError(f"Unknown contract family '{family}'")
        raise ConfigurationError(
            f"Unknown version '{version_tag}' for {family}; expected one of {known}"
        )


class DeploymentPlan(NamedTuple):
    """
    Represents a single proxied deployment: which implementation to deploy,
    which admin the proxy is bound to and which arguments initialize it.
    """

    contract_name: str
    version: str
    proxy_admin: ChecksumAddress
    args: Tuple[Any, ...]
    arg_names: Tuple[str, ...]
    implementation: Optional[ChecksumAddress] = None
    network: Optional[str] = None
    chain_id: Optional[int] = None

    @property
    def named_args(self) -> OrderedDict:
        return OrderedDict(zip(self.arg_names, self.args))

    @property
    def plan_version(self) -> PlanVersion:
        return get_version(self.contract_name, self.version)


def validate_plan(plan: DeploymentPlan) -> None:
    """Checks a plan against the initializer signature of its version."""
    plan_version = plan.plan_version
    if len(plan.args) != plan_version.arity:
        raise ArgumentArityError(plan.contract_name, plan_version.arity, len(plan.args))
    if tuple(plan.arg_names) != plan_version.slot_names:
        raise ConfigurationError(
            f"Arguments ({', '.join(plan.arg_names)}) do not match {plan_version.signature} "
            f"for version {plan.version}"
        )
    if plan.implementation and plan.implementation == plan.proxy_admin:
        raise ConfigurationError("Proxy admin cannot be the implementation contract")


def _resolve_constant(value: Any, constants: typing.Dict[str, Any]) -> Any:
    if not (isinstance(value, str) and value.startswith(CONSTANT_PREFIX)):
        return value
    constant_name = value[len(CONSTANT_PREFIX) :]
    try:
        return constants[constant_name]
    except KeyError:
        raise ConfigurationError(f"Constant '{constant_name}' not found in plan file.")


def to_address(name: str, value: Any) -> ChecksumAddress:
    if not isinstance(value, str) or not is_address(value):
        raise ConfigurationError(f"'{name}' is not a valid address: {value!r}")
    return to_checksum_address(value)


def _resolve_slot(slot: Slot, value: Any) -> Any:
    if slot.kind == ADDRESS:
        return to_address(slot.name, value)
    try:
        return to_base_units(value)
    except ConfigurationError as e:
        raise ConfigurationError(f"'{slot.name}': {e}")


def resolve_plan(
    family: str,
    version_tag: str,
    overrides: typing.Dict[str, Any],
    constants: Optional[typing.Dict[str, Any]] = None,
    network: Optional[str] = None,
    chain_id: Optional[int] = None,
) -> DeploymentPlan:
    """
    Builds the deployment plan of a contract family release from literal
    configuration values. Purely a data construction step: nothing is submitted.
    """
    plan_version = get_version(family, version_tag)
    constants = constants or dict()
    overrides = {
        key: _resolve_constant(value, constants)
        for key, value in (overrides or dict()).items()
        if value is not None
    }

    allowed = {PROXY_ADMIN_KEY, IMPLEMENTATION_KEY, *plan_version.slot_names}
    unexpected = sorted(set(overrides) - allowed)
    if unexpected:
        raise ConfigurationError(
            f"Unexpected parameter(s) {', '.join(unexpected)} for {plan_version.signature}"
        )
    missing = [name for name in (PROXY_ADMIN_KEY, *plan_version.slot_names) if name not in overrides]
    if missing:
        raise ConfigurationError(
            f"Missing parameter(s) {', '.join(missing)} for {plan_version.signature}"
        )

    proxy_admin = to_address(PROXY_ADMIN_KEY, overrides[PROXY_ADMIN_KEY])
    if proxy_admin == ZERO_ADDRESS:
        raise ConfigurationError("Proxy admin cannot be the zero address")

    implementation = None
    if IMPLEMENTATION_KEY in overrides:
        implementation = to_address(IMPLEMENTATION_KEY, overrides[IMPLEMENTATION_KEY])

    args = tuple(_resolve_slot(slot, overrides[slot.name]) for slot in plan_version.slots)
    plan = DeploymentPlan(
        contract_name=family,
        version=version_tag,
        proxy_admin=proxy_admin,
        args=args,
        arg_names=plan_version.slot_names,
        implementation=implementation,
        network=network,
        chain_id=chain_id,
    )
    validate_plan(plan)
    return plan


def load_plan(filepath: Path) -> DeploymentPlan:
    """Loads a deployment plan from a YAML plan file."""
    print(f"Processing deployment plan {filepath}...")
    config = _load_yaml(filepath)
    if not isinstance(config, dict):
        raise ConfigurationError(f"Malformed plan file {filepath}.")

    deployment = config.get("deployment") or dict()
    plan_config = config.get("plan")
    if not isinstance(plan_config, dict):
        raise ConfigurationError(f"'plan' is not set in plan file {filepath}.")

    try:
        family = plan_config["family"]
        version_tag = str(plan_config["version"])
    except KeyError as e:
        raise ConfigurationError(f"{e.args[0]} is not set in plan file {filepath}.")

    chain_id = deployment.get("chain_id")
    if chain_id is not None:
        try:
            chain_id = int(chain_id)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid chain_id {chain_id!r} in plan file {filepath}.")

    return resolve_plan(
        family=family,
        version_tag=version_tag,
        overrides=plan_config.get("overrides") or dict(),
        constants=config.get("constants"),
        network=deployment.get("network"),
        chain_id=chain_id,
    )
