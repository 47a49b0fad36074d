from attrs import define, field
from aws_cdk import RemovalPolicy, Stack, aws_logs as logs
from typing import Optional

import common.constants as constants


@define(slots=True, frozen=True)
class StackContext:
    scope: Stack
    env: str = field(
        default=constants.DEFAULT_ENV,
        metadata={"description": "Deployment environment (dev, staging, prod)"},
    )
    service: str = field(default=constants.SERVICE_NAME)

    # ---------- naming ----------
    def build_resource_name(
        self, resource_type: str, index: Optional[int] = None
    ) -> str:
        """Build resource name with optional index.

        Examples:
            - Without index: mongo-cluster-dev
            - With index: mongo-mount-target-1-dev
        """
        if index is not None:
            return f"{self.service}-{resource_type}-{index}-{self.env}".lower()
        return f"{self.service}-{resource_type}-{self.env}".lower()

    def build_resource_id(self, resource_type: str, index: Optional[int] = None) -> str:
        """Build resource ID with optional index.

        Examples:
            - Without index: MongoCluster
            - With index: MongoPublicMountTarget1
        """
        if index is not None:
            return f"{self.service.capitalize()}{resource_type}{index}"
        return f"{self.service.capitalize()}{resource_type}"

    def build_log_group(self, component: str) -> logs.LogGroup:
        return logs.LogGroup(
            self.scope,
            self.build_resource_id("LogGroup"),
            log_group_name=f"/ecs/{self.build_resource_name(component)}",
            removal_policy=RemovalPolicy.DESTROY,
            retention=logs.RetentionDays.ONE_YEAR,
        )
