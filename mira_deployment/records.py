import json
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from mira_deployment.executor import DeployedModule
from mira_deployment.networks import NetworkProfile
from mira_deployment.plans import DeploymentPlan
from mira_deployment.utils import _load_json

STANDARD_RECORD_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RecordEntry(NamedTuple):
    """Represents the outcome of one deployment run, as kept by the operator."""

    chain_id: int
    name: str
    version: str
    implementation: Optional[str]
    proxy: Optional[str]
    proxy_admin: str
    status: str
    initializer_args: Dict[str, str]
    failed_step: Optional[str] = None
    error: Optional[str] = None
    unconfirmed: Optional[str] = None


def entry_from_module(
    module: DeployedModule, plan: DeploymentPlan, chain_id: int
) -> RecordEntry:
    return RecordEntry(
        chain_id=chain_id,
        name=module.contract_name,
        version=plan.version,
        implementation=module.implementation,
        proxy=module.proxy,
        proxy_admin=plan.proxy_admin,
        status=module.status.value,
        # thresholds are uint256; keep them exact as strings
        initializer_args={name: str(value) for name, value in plan.named_args.items()},
        failed_step=module.failed_step,
        error=str(module.error) if module.error else None,
        unconfirmed=module.unconfirmed,
    )


def read_record(filepath: Path) -> List[RecordEntry]:
    data = _load_json(filepath)
    entries = list()
    for chain_id, contracts in data.items():
        for name, fields in contracts.items():
            entries.append(RecordEntry(chain_id=int(chain_id), name=name, **fields))
    return entries


def write_record(
    module: DeployedModule,
    plan: DeploymentPlan,
    profile: NetworkProfile,
    filepath: Path,
    chain_id: Optional[int] = None,
) -> Path:
    """
    Writes the (possibly partial) outcome of a run so the next plan can be
    patched by hand. Existing entries are never overwritten.
    """
    chain_id = chain_id if chain_id is not None else profile.chain_id
    if chain_id is None:
        raise ValueError(f"Network profile '{profile.name}' has no chain_id; pass one explicitly.")
    entry = entry_from_module(module, plan, chain_id=chain_id)
    fields = entry._asdict()
    del fields["chain_id"], fields["name"]
    data = {str(entry.chain_id): {entry.name: fields}}

    filepath.parent.mkdir(parents=True, exist_ok=True)
    if filepath.exists():
        existing_data = _load_json(filepath)
        existing_chain = existing_data.get(str(entry.chain_id), {})
        if entry.name in existing_chain:
            filepath = filepath.with_suffix(".unmerged.json")
            print(
                f"A {entry.name} record already exists for chain id {entry.chain_id}.\n"
                f"Writing to {filepath} to avoid overwriting existing data."
            )
        else:
            existing_chain.update(data[str(entry.chain_id)])
            existing_data[str(entry.chain_id)] = existing_chain
            data = existing_data

    with open(filepath, "w") as file:
        json.dump(data, file, **STANDARD_RECORD_JSON_FORMAT)

    print(f"(i) Deployment record written to {filepath}!")
    return filepath
