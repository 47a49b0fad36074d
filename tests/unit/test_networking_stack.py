from typing import Any, Mapping

import pytest
from aws_cdk import App, aws_ec2 as ec2
from aws_cdk.assertions import Match, Template
from stack_test_helpers import (
    IngressRuleTestCase,
    networking_json,
    networking_template,
    templates,
)
from governance_checks import assert_security_group_posture

from common import constants
from networking.networking_stack import NetworkingStack

# ----------------------------- Resource count smoke test ------------------------

RESOURCES = [
    ("AWS::EC2::VPC", 1),
    ("AWS::EC2::Subnet", 4),
    ("AWS::EC2::InternetGateway", 1),
    ("AWS::EC2::NatGateway", 2),
    ("AWS::EC2::SecurityGroup", 1),
]


@pytest.mark.parametrize("resource_type,expected", RESOURCES)
def test_resource_count(networking_template: Template, resource_type: str, expected: int):
    networking_template.resource_count_is(resource_type, expected)


# ------------------- VPC tests -------------------


def test_vpc_cidr_block(networking_template: Template):
    networking_template.has_resource_properties(
        "AWS::EC2::VPC", {"CidrBlock": constants.VPC_CIDR}
    )


@pytest.mark.parametrize("subnet_type,expected", [("Public", 2), ("Private", 2)])
def test_subnets_split_public_and_private(
    networking_template: Template, subnet_type: str, expected: int
):
    subnets = networking_template.find_resources(
        "AWS::EC2::Subnet",
        {
            "Properties": {
                "CidrBlock": Match.string_like_regexp(r"^10\.0\.\d+\.0/24$"),
                "Tags": Match.array_with(
                    [{"Key": "aws-cdk:subnet-type", "Value": subnet_type}]
                ),
            }
        },
    )
    assert len(subnets) == expected


# ------------------- Security group tests -------------------

INGRESS_RULES = (
    IngressRuleTestCase(
        id="nfs_access",
        port=constants.NFS_PORT,
        description="allow NFS access for EFS from anywhere",
    ),
    IngressRuleTestCase(
        id="mongo_access",
        port=constants.MONGO_PORT,
        description="allow Mongo access from anywhere",
    ),
)


@pytest.mark.parametrize("case", INGRESS_RULES, ids=lambda test: test.id)
def test_security_group_ingress_rule(
    networking_template: Template, case: IngressRuleTestCase
):
    networking_template.has_resource_properties(
        "AWS::EC2::SecurityGroup",
        {
            "SecurityGroupIngress": Match.array_with(
                [
                    {
                        "CidrIp": constants.ANY_IPV4_CIDR,
                        "Description": case.description,
                        "FromPort": case.port,
                        "IpProtocol": "tcp",
                        "ToPort": case.port,
                    }
                ]
            ),
        },
    )


def test_security_group_has_exactly_three_rules(networking_template: Template):
    groups = networking_template.find_resources("AWS::EC2::SecurityGroup")
    (props,) = [group["Properties"] for group in groups.values()]
    assert len(props["SecurityGroupIngress"]) == 2
    assert len(props["SecurityGroupEgress"]) == 1


def test_security_group_posture(networking_template: Template):
    assert_security_group_posture(
        networking_template, open_ports=[constants.NFS_PORT, constants.MONGO_PORT]
    )


# ------------------- Output tests -------------------


@pytest.mark.parametrize(
    "output_id",
    ["VpcId", "VpcPrivateSubnetIds", "VpcPublicSubnetIds", "PublicSubnet1", "PublicSubnet2"],
)
def test_outputs_are_declared(networking_template: Template, output_id: str):
    networking_template.has_output(output_id, {"Value": Match.any_value()})


def test_public_subnet_outputs_are_distinct_members_of_public_list(
    networking_json: Mapping[str, Any],
):
    outputs = networking_json["Outputs"]
    first = outputs["PublicSubnet1"]["Value"]
    second = outputs["PublicSubnet2"]["Value"]
    _, public_ids = outputs["VpcPublicSubnetIds"]["Value"]["Fn::Join"]

    assert first != second
    assert first in public_ids
    assert second in public_ids


def test_private_subnet_output_lists_private_subnets(
    networking_json: Mapping[str, Any],
):
    _, private_ids = networking_json["Outputs"]["VpcPrivateSubnetIds"]["Value"]["Fn::Join"]
    _, public_ids = networking_json["Outputs"]["VpcPublicSubnetIds"]["Value"]["Fn::Join"]
    assert len(private_ids) == 2
    assert not set(map(str, private_ids)) & set(map(str, public_ids))


# ------------------- Error handling tests -------------------


class SingleAzNetworkingStack(NetworkingStack):
    def create_vpc(self) -> ec2.Vpc:
        return ec2.Vpc(self, "SingleAzVpc", max_azs=1)


def test_single_public_subnet_is_rejected():
    with pytest.raises(ValueError, match="at least 2 public subnets"):
        SingleAzNetworkingStack(App(), "TestSingleAzNetworkingStack")
