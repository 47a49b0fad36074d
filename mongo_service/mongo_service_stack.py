import os

from aws_cdk import (
    CfnOutput,
    Stack,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_efs as efs,
    aws_elasticloadbalancingv2 as elbv2,
)
from aws_lambda_powertools import Logger
from constructs import Construct

import common.constants as constants
from common.service_config import ServiceConfig
from common.stack_context import StackContext

logger = Logger(
    service=constants.LOGGER_SERVICE, level=os.getenv("LOG_LEVEL", "INFO").upper()
)


class MongoServiceStack(Stack):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        security_group: ec2.ISecurityGroup,
        public_subnet_ids: tuple[str, str],
        config: ServiceConfig | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)
        self.config = config or ServiceConfig()
        self.context = StackContext(
            scope=self, env=self.config.env, service=self.config.service_name
        )
        self.vpc = vpc
        self.security_group = security_group
        self.public_subnet_ids = public_subnet_ids
        logger.info(
            "Declaring service stack",
            service_name=self.config.service_name,
            image=self.config.container_image,
            desired_count=self.config.desired_count,
        )

        # EFS file system and one mount target per public subnet
        self.file_system = self._build_file_system()
        self.mount_targets = self._build_mount_targets(self.file_system)

        # Network load balancer forwarding Mongo traffic
        self.load_balancer = self._build_network_load_balancer()
        self.listener = self._build_listener(self.load_balancer)

        # Fargate cluster and service
        self.cluster = self._build_cluster()
        self.log_group = self.context.build_log_group("container")
        self.task_definition = self._build_task_definition(self.file_system)
        self.service = self._build_service(
            cluster=self.cluster,
            task_definition=self.task_definition,
            mount_targets=self.mount_targets,
        )
        self.target_group = self._register_targets(self.listener, self.service)

        # Export the load balancer's address so that it's easy to access
        CfnOutput(self, "Url", value=self.load_balancer.load_balancer_dns_name)

    # Resource creation

    def _build_file_system(self) -> efs.CfnFileSystem:
        return efs.CfnFileSystem(
            self,
            self.context.build_resource_id("FileSystem"),
            file_system_tags=[
                efs.CfnFileSystem.ElasticFileSystemTagProperty(
                    key="Name", value=self.config.file_system_tag
                )
            ],
        )

    def _build_mount_targets(
        self, file_system: efs.CfnFileSystem
    ) -> list[efs.CfnMountTarget]:
        """Create a mount target for both public subnets."""
        return [
            efs.CfnMountTarget(
                self,
                self.context.build_resource_id("PublicMountTarget", index=index),
                file_system_id=file_system.ref,
                subnet_id=subnet_id,
                security_groups=[self.security_group.security_group_id],
            )
            for index, subnet_id in enumerate(self.public_subnet_ids, start=1)
        ]

    def _build_network_load_balancer(self) -> elbv2.NetworkLoadBalancer:
        return elbv2.NetworkLoadBalancer(
            self,
            self.context.build_resource_id("LoadBalancer"),
            vpc=self.vpc,
            internet_facing=True,
        )

    def _build_listener(
        self, load_balancer: elbv2.NetworkLoadBalancer
    ) -> elbv2.NetworkListener:
        return load_balancer.add_listener(
            self.context.build_resource_id("Listener"),
            port=self.config.mongo_port,
            protocol=elbv2.Protocol.TCP,
        )

    def _build_cluster(self) -> ecs.Cluster:
        return ecs.Cluster(
            self,
            self.context.build_resource_id("Cluster"),
            cluster_name=self.context.build_resource_name("cluster"),
            vpc=self.vpc,
        )

    def _build_task_definition(
        self, file_system: efs.CfnFileSystem
    ) -> ecs.FargateTaskDefinition:
        task_definition = ecs.FargateTaskDefinition(
            self,
            self.context.build_resource_id("TaskDefinition"),
            cpu=constants.TASK_CPU,
            memory_limit_mib=constants.TASK_MEMORY_MIB,
            volumes=[
                ecs.Volume(
                    name=self.config.volume_name,
                    efs_volume_configuration=ecs.EfsVolumeConfiguration(
                        file_system_id=file_system.ref,
                        transit_encryption=constants.EFS_TRANSIT_ENCRYPTION,
                    ),
                )
            ],
        )
        container = task_definition.add_container(
            self.context.build_resource_id("Container"),
            container_name=self.config.service_name,
            image=ecs.ContainerImage.from_registry(self.config.container_image),
            memory_limit_mib=self.config.container_memory,
            port_mappings=[
                ecs.PortMapping(
                    container_port=self.config.mongo_port,
                    host_port=self.config.mongo_port,
                    protocol=ecs.Protocol.TCP,
                )
            ],
            logging=ecs.LogDrivers.aws_logs(
                stream_prefix=self.config.service_name, log_group=self.log_group
            ),
        )
        container.add_mount_points(
            ecs.MountPoint(
                container_path=constants.CONTAINER_DATA_PATH,
                source_volume=self.config.volume_name,
                read_only=False,
            )
        )
        return task_definition

    def _build_service(
        self,
        cluster: ecs.ICluster,
        task_definition: ecs.FargateTaskDefinition,
        mount_targets: list[efs.CfnMountTarget],
    ) -> ecs.FargateService:
        service = ecs.FargateService(
            self,
            self.context.build_resource_id("Service"),
            cluster=cluster,
            task_definition=task_definition,
            desired_count=self.config.desired_count,
            security_groups=[self.security_group],
        )
        # Tasks can only mount the volume once the mount targets exist
        for mount_target in mount_targets:
            service.node.add_dependency(mount_target)
        return service

    def _register_targets(
        self, listener: elbv2.NetworkListener, service: ecs.FargateService
    ) -> elbv2.NetworkTargetGroup:
        return listener.add_targets(
            self.context.build_resource_id("Targets"),
            port=self.config.mongo_port,
            protocol=elbv2.Protocol.TCP,
            targets=[
                service.load_balancer_target(
                    container_name=self.config.service_name,
                    container_port=self.config.mongo_port,
                )
            ],
        )
