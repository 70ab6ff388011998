import click

from mira_deployment.chain import ApeChainClient
from mira_deployment.exceptions import ConfigurationError
from mira_deployment.executor import execute
from mira_deployment.networks import get_profile
from mira_deployment.options import (
    account_option,
    auto_option,
    family_option,
    network_option,
    plan_option,
    plan_parameter_options,
    record_option,
    timeout_option,
    version_option,
)
from mira_deployment.plans import load_plan, resolve_plan
from mira_deployment.records import write_record


def _resolve(plan_filepath, family, version_tag, parameters):
    given = {name: value for name, value in parameters.items() if value is not None}
    if plan_filepath:
        if family or version_tag or given:
            raise click.BadOptionUsage(
                option_name="--plan",
                message="Provide either '--plan' or '--family/--version' with parameters, not both",
            )
        return load_plan(plan_filepath)

    if not (family and version_tag):
        raise click.BadOptionUsage(
            option_name="--family",
            message=f"Provide '--plan' or both '--family' and '--version'; got {family}, {version_tag}",
        )
    return resolve_plan(family=family, version_tag=version_tag, overrides=given)


@click.command(name="mira-deploy")
@network_option
@plan_option
@family_option
@version_option
@plan_parameter_options
@account_option
@auto_option
@timeout_option
@record_option
@click.pass_context
def cli(
    ctx,
    network_name,
    plan_filepath,
    family,
    version_tag,
    account,
    auto,
    timeout,
    record_filepath,
    **parameters,
):
    """Deploy a MarketPlace or Swap implementation behind a proxy and initialize it."""
    try:
        profile = get_profile(network_name, account=account)
        plan = _resolve(plan_filepath, family, version_tag, parameters)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    click.echo(profile.describe())
    with profile.connect():
        try:
            chain_client = ApeChainClient.from_profile(profile, autosign=auto)
            click.echo("\n".join(chain_client.describe()))
            module = execute(
                plan, chain_client, profile, confirmation_timeout=timeout, autosign=auto
            )
        except ConfigurationError as e:
            raise click.ClickException(str(e))

        if record_filepath:
            write_record(module, plan, profile, record_filepath, chain_id=chain_client.chain_id)

    click.echo("")
    for line in module.summary():
        click.echo(line)
    if module.failed:
        ctx.exit(1)


if __name__ == "__main__":
    cli()
