#!/usr/bin/env python3
"""
TTGO IoT CDK App
Deploys the device identity, Cognito user identity and Amplify frontend
"""

import logging
import sys

import aws_cdk as cdk
from ttgo_iot.config import ConfigurationError, load_stack_config
from ttgo_iot.iot_stack import IoTStack


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = cdk.App()

# Configuration is loaded and validated before any construct exists
try:
    config = load_stack_config(env_file=app.node.try_get_context("env_file"))
except ConfigurationError as e:
    logger.error(f"Stack configuration error: {e}")
    sys.exit(1)

# Environment configuration
env = cdk.Environment(
    account=config.account or app.node.try_get_context("account"),
    region=config.region or app.node.try_get_context("region")
)

iot_stack = IoTStack(
    app, config.stack_name,
    config=config,
    env=env,
    description="TTGO IoT device, Cognito user identity and Amplify frontend"
)

# Tags for all resources
for key, value in config.tags.items():
    cdk.Tags.of(app).add(key, value)
cdk.Tags.of(app).add("Environment", config.environment)

app.synth()
