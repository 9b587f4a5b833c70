"""
Device Identity Construct
IoT thing, X.509 certificate from a CSR, IoT policy and their attachments
"""

from typing import Dict, Any, List

from aws_cdk import aws_iot as iot
from constructs import Construct

from ttgo_iot.config import DeviceConfig


def build_policy_document(actions: List[str], resources: List[str]) -> Dict[str, Any]:
    """Single Allow statement IoT policy document"""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": list(actions),
                "Resource": list(resources)
            }
        ]
    }


class DeviceIdentity(Construct):
    """
    Registers one device: thing, certificate, policy and the two
    principal attachments binding them to the certificate
    """

    def __init__(self, scope: Construct, construct_id: str, config: DeviceConfig) -> None:
        super().__init__(scope, construct_id)

        # 1️⃣ IoT thing
        self.thing = iot.CfnThing(
            self, "Thing",
            thing_name=config.thing_name
        )

        # 2️⃣ Certificate signed from the supplied CSR
        self.certificate = iot.CfnCertificate(
            self, "Certificate",
            status="ACTIVE",
            certificate_mode="DEFAULT",
            certificate_signing_request=config.csr_pem
        )
        self.certificate.add_dependency(self.thing)

        # 3️⃣ IoT policy
        self.policy = iot.CfnPolicy(
            self, "Policy",
            policy_name=config.policy_name,
            policy_document=build_policy_document(config.policy_actions, config.policy_resources)
        )
        self.policy.add_dependency(self.thing)

        # 4️⃣ Policy → certificate
        self.policy_attachment = iot.CfnPolicyPrincipalAttachment(
            self, "PolicyPrincipalAttachment",
            policy_name=config.policy_name,
            principal=self.certificate.attr_arn
        )
        self.policy_attachment.add_dependency(self.policy)
        self.policy_attachment.add_dependency(self.certificate)

        # 5️⃣ Thing → certificate
        self.thing_attachment = iot.CfnThingPrincipalAttachment(
            self, "ThingPrincipalAttachment",
            thing_name=config.thing_name,
            principal=self.certificate.attr_arn
        )
        self.thing_attachment.add_dependency(self.thing)
        self.thing_attachment.add_dependency(self.certificate)

    @property
    def certificate_arn(self) -> str:
        return self.certificate.attr_arn

    @property
    def certificate_id(self) -> str:
        return self.certificate.attr_id
