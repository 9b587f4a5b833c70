"""
IoT Stack: TTGO device identity, Cognito user identity and Amplify frontend
"""

import logging

from aws_cdk import Stack, CfnOutput
from constructs import Construct

from ttgo_iot.config import StackConfig, ConfigurationError
from ttgo_iot.device_identity import DeviceIdentity
from ttgo_iot.user_identity import UserIdentity
from ttgo_iot.frontend import FrontendDelivery


logger = logging.getLogger(__name__)


class IoTStack(Stack):
    """
    Main IoT Infrastructure Stack
    Declares the device, the user pools and the hosted frontend in one graph
    """

    def __init__(self, scope: Construct, construct_id: str, config: StackConfig, **kwargs) -> None:
        errors = config.validate()
        if errors:
            raise ConfigurationError("Invalid stack configuration: " + "; ".join(errors))

        super().__init__(scope, construct_id, **kwargs)

        # 1️⃣ Device identity
        self.device = DeviceIdentity(self, "DeviceIdentity", config.device)

        # 2️⃣ User identity
        self.users = UserIdentity(self, "UserIdentity")

        # 3️⃣ Frontend delivery
        self.frontend = FrontendDelivery(self, "FrontendDelivery", config.frontend, self.users)

        logger.info(f"Declared stack {construct_id} for thing {config.device.thing_name}")

        # 📤 Stack Outputs
        CfnOutput(
            self, "ThingName",
            value=config.device.thing_name,
            description="IoT Thing Name"
        )

        CfnOutput(
            self, "CertificateArn",
            value=self.device.certificate_arn,
            description="Device certificate ARN"
        )

        CfnOutput(
            self, "CertificateId",
            value=self.device.certificate_id,
            description="Device certificate ID"
        )

        CfnOutput(
            self, "UserPoolId",
            value=self.users.user_pool.user_pool_id,
            description="Cognito User Pool ID"
        )

        CfnOutput(
            self, "UserPoolClientId",
            value=self.users.user_pool_client.user_pool_client_id,
            description="Cognito User Pool Client ID"
        )

        CfnOutput(
            self, "IdentityPoolId",
            value=self.users.identity_pool.ref,
            description="Cognito Identity Pool ID"
        )

        CfnOutput(
            self, "IoTEndpoint",
            value=self.frontend.endpoint_lookup.endpoint_address,
            description="IoT data plane (ATS) endpoint"
        )

        CfnOutput(
            self, "AmplifyAppId",
            value=self.frontend.app.attr_app_id,
            description="Amplify App ID"
        )

        CfnOutput(
            self, "AmplifyDefaultDomain",
            value=self.frontend.app.attr_default_domain,
            description="Amplify default domain"
        )
