"""
Frontend Delivery Construct
Amplify hosted frontend built from GitHub, wired to Cognito and the IoT data endpoint
"""

from typing import Dict, Any

from aws_cdk import (
    Stack,
    aws_amplify as amplify,
    aws_codebuild as codebuild,
    custom_resources as cr,
)
from constructs import Construct

from ttgo_iot.config import FrontendConfig
from ttgo_iot.user_identity import UserIdentity


IOT_ENDPOINT_TYPE = "iot:Data-ATS"


def build_spec_object() -> Dict[str, Any]:
    """Install, build and package dist/ with node_modules cached"""
    return {
        "version": 1,
        "frontend": {
            "phases": {
                "preBuild": {
                    "commands": [
                        "npm ci"
                    ]
                },
                "build": {
                    "commands": [
                        "npm run build"
                    ]
                }
            },
            "artifacts": {
                "baseDirectory": "dist",
                "files": [
                    "**/*"
                ]
            },
            "cache": {
                "paths": [
                    "node_modules/**/*"
                ]
            }
        }
    }


def frontend_environment(identity_pool_id: str, region: str, user_pool_id: str,
                         user_pool_client_id: str, iot_endpoint: str) -> Dict[str, str]:
    """Build time variables handed to the frontend"""
    return {
        "IDENTITY_POOL_ID": identity_pool_id,
        "REGION": region,
        "USER_POOL_ID": user_pool_id,
        "USER_POOL_CLIENT_ID": user_pool_client_id,
        "IOT_ENDPOINT": iot_endpoint
    }


class IoTEndpointLookup(Construct):
    """
    Account IoT data endpoint, looked up by CloudFormation at deploy time.
    endpoint_address stays an unresolved token during synthesis.
    """

    def __init__(self, scope: Construct, construct_id: str) -> None:
        super().__init__(scope, construct_id)

        describe_endpoint = cr.AwsSdkCall(
            service="Iot",
            action="describeEndpoint",
            parameters={
                "endpointType": IOT_ENDPOINT_TYPE
            },
            physical_resource_id=cr.PhysicalResourceId.of("IoTEndpoint")
        )

        self.resource = cr.AwsCustomResource(
            self, "DescribeEndpoint",
            on_create=describe_endpoint,
            on_update=describe_endpoint,
            policy=cr.AwsCustomResourcePolicy.from_sdk_calls(
                resources=cr.AwsCustomResourcePolicy.ANY_RESOURCE
            ),
            install_latest_aws_sdk=False
        )

    @property
    def endpoint_address(self) -> str:
        return self.resource.get_response_field("endpointAddress")


class FrontendDelivery(Construct):
    """
    Amplify app and branch for the web frontend
    """

    def __init__(self, scope: Construct, construct_id: str, config: FrontendConfig,
                 user_identity: UserIdentity) -> None:
        super().__init__(scope, construct_id)

        # 1️⃣ Build recipe
        build_spec = codebuild.BuildSpec.from_object_to_yaml(build_spec_object())

        # 2️⃣ IoT data endpoint lookup
        self.endpoint_lookup = IoTEndpointLookup(self, "IoTEndpointLookup")

        self.environment_variables = frontend_environment(
            identity_pool_id=user_identity.identity_pool.ref,
            region=Stack.of(self).region,
            user_pool_id=user_identity.user_pool.user_pool_id,
            user_pool_client_id=user_identity.user_pool_client.user_pool_client_id,
            iot_endpoint=self.endpoint_lookup.endpoint_address
        )

        # 3️⃣ Amplify app
        self.app = amplify.CfnApp(
            self, "App",
            name=config.app_name,
            repository=config.source.url,
            access_token=config.source.access_token,
            build_spec=build_spec.to_build_spec(),
            environment_variables=[
                amplify.CfnApp.EnvironmentVariableProperty(name=name, value=value)
                for name, value in self.environment_variables.items()
            ]
        )
        self.app.node.add_dependency(self.endpoint_lookup)
        self.app.add_dependency(user_identity.identity_pool)
        self.app.node.add_dependency(user_identity.user_pool_client)

        # 4️⃣ Tracked branch
        self.branch = amplify.CfnBranch(
            self, "Branch",
            app_id=self.app.attr_app_id,
            branch_name=config.source.branch,
            enable_auto_build=True
        )
        self.branch.add_dependency(self.app)
