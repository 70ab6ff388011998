import click
from eth_utils import to_checksum_address

from mira_deployment.exceptions import ConfigurationError
from mira_deployment.units import to_base_units


class ChecksumAddress(click.ParamType):
    name = "checksum_address"

    def convert(self, value, param, ctx):
        try:
            return to_checksum_address(value=value)
        except ValueError:
            self.fail(f"{value} is not a valid ethereum address", param, ctx)


class Threshold(click.ParamType):
    """A human readable token amount; kept as a string so it scales exactly."""

    name = "threshold"

    def convert(self, value, param, ctx):
        try:
            to_base_units(value)
        except ConfigurationError as e:
            self.fail(str(e), param, ctx)
        return str(value)
