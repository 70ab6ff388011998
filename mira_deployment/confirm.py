import sys

from ape.utils import ZERO_ADDRESS

from mira_deployment.plans import DeploymentPlan


def _abort() -> None:
    print("Aborting deployment!")
    sys.exit(-1)


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for initializer parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_plan(plan: DeploymentPlan) -> None:
    """Asks the user to confirm the resolved initializer arguments of a plan."""
    print(f"\nInitializer parameters for {plan.contract_name} {plan.version}")
    for name, value in plan.named_args.items():
        print(f"\t{name}={value}")
    print(f"Proxy admin: {plan.proxy_admin}")
    if plan.implementation:
        print(f"Reusing implementation: {plan.implementation}")

    _continue()
    if ZERO_ADDRESS in plan.args:
        _confirm_zero_address()
