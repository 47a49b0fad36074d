import ipaddress
from typing import Any

from attrs import define, field
from attrs.validators import ge, instance_of, le, min_len
from constructs import Node

import common.constants as constants

CONTEXT_KEYS = (
    "service_name",
    "env",
    "vpc_cidr",
    "container_image",
    "container_memory",
    "desired_count",
)


def _to_int(value: Any) -> int:
    """Convert CLI context strings to int without truncating fractional values."""
    if isinstance(value, bool):
        raise TypeError(f"expected an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected a whole number, got {value!r}")
    return int(value)


def _validate_cidr(instance: Any, attribute: Any, value: str) -> None:
    try:
        ipaddress.ip_network(value)
    except ValueError as e:
        raise ValueError(f"{attribute.name} is not a valid CIDR block: {value!r}") from e


@define(slots=True, kw_only=True, frozen=True)
class ServiceConfig:
    """Desired-state parameters for the Mongo topology.

    Values default to ``common.constants`` and can be overridden through CDK
    context, e.g. ``cdk synth -c desired_count=3``.
    """

    service_name: str = field(
        default=constants.SERVICE_NAME,
        validator=[instance_of(str), min_len(1)],
        metadata={"description": "Prefix for resource names and the container name"},
    )
    env: str = field(
        default=constants.DEFAULT_ENV,
        validator=[instance_of(str), min_len(1)],
        metadata={"description": "Deployment environment (dev, staging, prod)"},
    )
    vpc_cidr: str = field(
        default=constants.VPC_CIDR, validator=[instance_of(str), _validate_cidr]
    )
    container_image: str = field(
        default=constants.CONTAINER_IMAGE, validator=[instance_of(str), min_len(1)]
    )
    container_memory: int = field(
        default=constants.CONTAINER_MEMORY_MIB,
        converter=_to_int,
        validator=[ge(6), le(constants.TASK_MEMORY_MIB)],
    )
    desired_count: int = field(
        default=constants.DESIRED_COUNT, converter=_to_int, validator=ge(1)
    )
    mongo_port: int = field(
        default=constants.MONGO_PORT, converter=_to_int, validator=[ge(1), le(65535)]
    )
    nfs_port: int = field(
        default=constants.NFS_PORT, converter=_to_int, validator=[ge(1), le(65535)]
    )

    @classmethod
    def from_context(cls, node: Node) -> "ServiceConfig":
        """Build a config from the CDK context keys that are set."""
        overrides = {}
        for key in CONTEXT_KEYS:
            value = node.try_get_context(key)
            if value is not None:
                overrides[key] = value
        return cls(**overrides)

    @property
    def volume_name(self) -> str:
        return f"{self.service_name}-volume"

    @property
    def file_system_tag(self) -> str:
        return f"{self.service_name}-data"
