import json
from pathlib import Path

import yaml
from ape import project
from ape.contracts import ContractContainer

from mira_deployment.exceptions import ConfigurationError


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ConfigurationError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            return getattr(dependency_api, contract)
        except AttributeError:
            continue
    raise ConfigurationError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    """Finds a contract type in the project first, then in its dependencies."""
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies (i.e. openzeppelin proxies)
        contract_container = _get_dependency_contract_container(contract)

    return contract_container
