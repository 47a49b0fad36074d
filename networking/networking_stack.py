import os

from aws_cdk import (
    CfnOutput,
    Fn,
    Stack,
    aws_ec2 as ec2,
)
from aws_lambda_powertools import Logger
from constructs import Construct

from common import constants
from common.service_config import ServiceConfig
from common.stack_context import StackContext

logger = Logger(
    service=constants.LOGGER_SERVICE, level=os.getenv("LOG_LEVEL", "INFO").upper()
)


class NetworkingStack(Stack):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: ServiceConfig | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.config = config or ServiceConfig()
        self.context = StackContext(
            scope=self, env=self.config.env, service=self.config.service_name
        )
        logger.info("Declaring networking stack", vpc_cidr=self.config.vpc_cidr)

        self.vpc = self.create_vpc()
        self.security_group = self.create_security_group(self.vpc)
        self.public_subnet_1, self.public_subnet_2 = self.select_public_subnets()

        # Export a few resulting fields to make them easy to use
        CfnOutput(self, "VpcId", value=self.vpc.vpc_id)
        CfnOutput(
            self,
            "VpcPrivateSubnetIds",
            value=Fn.join(",", [subnet.subnet_id for subnet in self.vpc.private_subnets]),
        )
        CfnOutput(
            self,
            "VpcPublicSubnetIds",
            value=Fn.join(",", [subnet.subnet_id for subnet in self.vpc.public_subnets]),
        )
        CfnOutput(self, "PublicSubnet1", value=self.public_subnet_1)
        CfnOutput(self, "PublicSubnet2", value=self.public_subnet_2)

    def create_vpc(self) -> ec2.Vpc:
        return ec2.Vpc(
            self,
            self.context.build_resource_id("Vpc"),
            max_azs=constants.MAX_AZS,
            ip_addresses=ec2.IpAddresses.cidr(self.config.vpc_cidr),
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name=constants.PUBLIC_SUBNET_NAME,
                    subnet_type=ec2.SubnetType.PUBLIC,
                    cidr_mask=constants.CIDR_MASK,
                ),
                ec2.SubnetConfiguration(
                    name=constants.PRIVATE_SUBNET_NAME,
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                    cidr_mask=constants.CIDR_MASK,
                ),
            ],
        )

    def select_public_subnets(self) -> tuple[str, str]:
        """Pick the first two public subnet ids for the EFS mount targets."""
        subnet_ids = self.vpc.select_subnets(
            subnet_type=ec2.SubnetType.PUBLIC
        ).subnet_ids
        if len(subnet_ids) < 2:
            raise ValueError(
                f"Expected at least 2 public subnets, VPC produced {len(subnet_ids)}"
            )
        return subnet_ids[0], subnet_ids[1]

    def create_security_group(self, vpc: ec2.IVpc) -> ec2.SecurityGroup:
        security_group = ec2.SecurityGroup(
            self,
            id=self.context.build_resource_id("SecurityGroup"),
            vpc=vpc,
            allow_all_outbound=False,
            description=f"Security group for the {self.config.service_name} service and its EFS mount targets",
        )
        # inbound NFS traffic from anywhere
        security_group.add_ingress_rule(
            peer=ec2.Peer.ipv4(constants.ANY_IPV4_CIDR),
            connection=ec2.Port.tcp(self.config.nfs_port),
            description="allow NFS access for EFS from anywhere",
        )
        # inbound Mongo traffic from anywhere
        security_group.add_ingress_rule(
            peer=ec2.Peer.ipv4(constants.ANY_IPV4_CIDR),
            connection=ec2.Port.tcp(self.config.mongo_port),
            description="allow Mongo access from anywhere",
        )
        security_group.add_egress_rule(
            peer=ec2.Peer.ipv4(constants.ANY_IPV4_CIDR),
            connection=ec2.Port.all_tcp(),
            description="allow outbound access to anywhere",
        )
        return security_group
