"""
User Identity Construct
Cognito user pool, identity pool and the federated IoT data access roles
"""

from typing import Dict, Any

from aws_cdk import (
    Stack, RemovalPolicy,
    aws_cognito as cognito,
    aws_iam as iam,
)
from constructs import Construct

from ttgo_iot.config import ConfigurationError


COGNITO_IDENTITY = "cognito-identity.amazonaws.com"
IOT_DATA_ACCESS_POLICY = "AWSIoTDataAccess"
AMR_VALUES = ("authenticated", "unauthenticated")


def federated_role_conditions(identity_pool_ref: str, amr: str) -> Dict[str, Any]:
    """Trust conditions scoping a role to one identity pool and AMR value"""
    if amr not in AMR_VALUES:
        raise ConfigurationError(f"amr must be one of {AMR_VALUES}, got '{amr}'")

    return {
        "StringEquals": {
            f"{COGNITO_IDENTITY}:aud": identity_pool_ref
        },
        "ForAnyValue:StringLike": {
            f"{COGNITO_IDENTITY}:amr": amr
        }
    }


class UserIdentity(Construct):
    """
    User authentication for the frontend
    Anonymous and signed-in users both get IoT data plane access
    """

    def __init__(self, scope: Construct, construct_id: str) -> None:
        super().__init__(scope, construct_id)

        # 1️⃣ Cognito User Pool
        self.user_pool = cognito.UserPool(
            self, "UserPool",
            self_sign_up_enabled=True,
            sign_in_aliases=cognito.SignInAliases(email=True),
            auto_verify=cognito.AutoVerifiedAttrs(email=True),
            password_policy=cognito.PasswordPolicy(
                min_length=6,
                require_lowercase=True,
                require_digits=True,
                require_uppercase=False,
                require_symbols=False
            ),
            account_recovery=cognito.AccountRecovery.EMAIL_ONLY,
            removal_policy=RemovalPolicy.DESTROY
        )

        # User Pool Client
        self.user_pool_client = cognito.UserPoolClient(
            self, "UserPoolClient",
            user_pool=self.user_pool,
            auth_flows=cognito.AuthFlow(
                admin_user_password=True,
                custom=True,
                user_srp=True
            ),
            supported_identity_providers=[
                cognito.UserPoolClientIdentityProvider.COGNITO
            ]
        )

        # 2️⃣ Identity Pool
        self.identity_pool = cognito.CfnIdentityPool(
            self, "IdentityPool",
            allow_unauthenticated_identities=True,
            cognito_identity_providers=[
                cognito.CfnIdentityPool.CognitoIdentityProviderProperty(
                    client_id=self.user_pool_client.user_pool_client_id,
                    provider_name=self.user_pool.user_pool_provider_name
                )
            ]
        )

        # 3️⃣ IAM roles for anonymous and signed-in users
        self.unauthenticated_role = self._federated_role("AnonymousRole", "unauthenticated")
        self.authenticated_role = self._federated_role("AuthenticatedRole", "authenticated")

        # 4️⃣ Identity Pool Role Mapping
        self.role_attachment = cognito.CfnIdentityPoolRoleAttachment(
            self, "IdentityPoolRoleAttachment",
            identity_pool_id=self.identity_pool.ref,
            roles={
                "authenticated": self.authenticated_role.role_arn,
                "unauthenticated": self.unauthenticated_role.role_arn
            },
            role_mappings={
                "userpool": cognito.CfnIdentityPoolRoleAttachment.RoleMappingProperty(
                    type="Token",
                    ambiguous_role_resolution="AuthenticatedRole",
                    identity_provider=self.provider_key
                )
            }
        )
        self.role_attachment.add_dependency(self.identity_pool)
        self.role_attachment.node.add_dependency(self.authenticated_role)
        self.role_attachment.node.add_dependency(self.unauthenticated_role)

    def _federated_role(self, construct_id: str, amr: str) -> iam.Role:
        return iam.Role(
            self, construct_id,
            assumed_by=iam.FederatedPrincipal(
                federated=COGNITO_IDENTITY,
                conditions=federated_role_conditions(self.identity_pool.ref, amr),
                assume_role_action="sts:AssumeRoleWithWebIdentity"
            ),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(IOT_DATA_ACCESS_POLICY)
            ]
        )

    @property
    def provider_key(self) -> str:
        """Token issuer of the user pool client, as identity pools name it"""
        region = Stack.of(self).region
        return (
            f"cognito-idp.{region}.amazonaws.com/"
            f"{self.user_pool.user_pool_id}:{self.user_pool_client.user_pool_client_id}"
        )
