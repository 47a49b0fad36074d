#!/usr/bin/env python3
"""AWS CDK entrypoint for provisioning the Mongo on Fargate topology.

This module wires up the networking and service stacks, ensuring they share a
single deployment environment sourced from the CDK CLI defaults. Service
parameters can be overridden through CDK context, e.g.
``cdk synth -c desired_count=3``.
"""
import os

import aws_cdk as cdk
from aws_cdk import Environment

from common.service_config import ServiceConfig
from mongo_service.mongo_service_stack import MongoServiceStack
from networking.networking_stack import NetworkingStack

app = cdk.App()

env = Environment(
    account=os.getenv("CDK_DEFAULT_ACCOUNT"),
    region=os.getenv("CDK_DEFAULT_REGION"),
)
config = ServiceConfig.from_context(app.node)

# VPC, subnets and the shared security group
networking = NetworkingStack(app, "MongoNetworkingStack", config=config, env=env)

# EFS, load balancer and the Fargate service consuming the networking outputs
MongoServiceStack(
    app,
    "MongoServiceStack",
    vpc=networking.vpc,
    security_group=networking.security_group,
    public_subnet_ids=(networking.public_subnet_1, networking.public_subnet_2),
    config=config,
    env=env,
)


app.synth()
