"""
Stack Configuration Management
Environment and file based configuration for the TTGO IoT stack
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from environs import Env, EnvError


logger = logging.getLogger(__name__)

DEFAULT_CSR_PATH = "cert.pem"
REQUIRED_SOURCE_VARS = ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPOSITORY")


class ConfigurationError(Exception):
    """Raised when stack configuration is missing or malformed"""
    pass


@dataclass
class DeviceConfig:
    """IoT thing, certificate and policy configuration"""
    csr_pem: str
    thing_name: str = "cdk-ttgo"
    policy_name: str = "cdk-ttgo-policy"
    policy_actions: List[str] = field(default_factory=lambda: ["iot:*"])
    policy_resources: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class SourceRepositoryConfig:
    """GitHub repository the frontend is built from"""
    access_token: str
    owner: str
    repository: str
    branch: str = "master"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repository}"


@dataclass
class FrontendConfig:
    """Amplify hosted frontend configuration"""
    source: SourceRepositoryConfig
    app_name: str = "cdk-ttgo-frontend"


@dataclass
class StackConfig:
    """Complete stack configuration"""
    device: DeviceConfig
    frontend: FrontendConfig

    stack_name: str = "IoTStack"
    environment: str = "development"
    account: Optional[str] = None
    region: Optional[str] = None

    tags: Dict[str, str] = field(default_factory=lambda: {
        "Project": "TTGO-IoT",
        "Owner": "IoT-Team",
        "ManagedBy": "AWS-CDK"
    })

    def validate(self) -> List[str]:
        """
        Validate configuration before any resource is declared

        Returns:
            List of validation errors
        """
        errors = []

        if not self.stack_name:
            errors.append("Stack name is required")

        # Device identity
        if not self.device.csr_pem.strip():
            errors.append("Certificate signing request is empty")

        if not self.device.thing_name:
            errors.append("IoT thing name is required")

        if not self.device.policy_name:
            errors.append("IoT policy name is required")

        if self.device.thing_name and self.device.thing_name == self.device.policy_name:
            errors.append(f"Resource name '{self.device.thing_name}' is used for both the thing and the policy")

        if not self.device.policy_actions:
            errors.append("IoT policy must grant at least one action")

        for action in self.device.policy_actions:
            if not action.strip():
                errors.append("IoT policy action must not be blank")
            elif action != action.strip():
                errors.append(f"IoT policy action '{action}' has surrounding whitespace")
            elif not action.startswith("iot:"):
                errors.append(f"IoT policy action '{action}' is outside the iot: namespace")

        if not self.device.policy_resources:
            errors.append("IoT policy must name at least one resource")

        for resource in self.device.policy_resources:
            if not resource.strip():
                errors.append("IoT policy resource must not be blank")
            elif resource != resource.strip():
                errors.append(f"IoT policy resource '{resource}' has surrounding whitespace")

        # Frontend
        if not self.frontend.app_name:
            errors.append("Frontend app name is required")

        if not self.frontend.source.branch:
            errors.append("Frontend source branch is required")

        return errors

    def summary(self) -> Dict[str, Any]:
        """Loggable view of the configuration, secrets masked"""
        return {
            "stack_name": self.stack_name,
            "environment": self.environment,
            "account": self.account,
            "region": self.region,
            "thing_name": self.device.thing_name,
            "policy_name": self.device.policy_name,
            "policy_actions": self.device.policy_actions,
            "policy_resources": self.device.policy_resources,
            "frontend_app_name": self.frontend.app_name,
            "source_repository": self.frontend.source.url,
            "source_branch": self.frontend.source.branch,
            "source_token": "****" if self.frontend.source.access_token else ""
        }


def read_csr(path: str) -> str:
    """
    Read a PEM encoded certificate signing request

    Args:
        path: Path to the CSR file

    Returns:
        CSR text

    Raises:
        ConfigurationError: file missing, unreadable or not PEM
    """
    try:
        with open(path, 'r', encoding='ascii') as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read certificate signing request '{path}': {e}")

    pem = content.strip()
    if not pem:
        raise ConfigurationError(f"Certificate signing request '{path}' is empty")

    lines = pem.splitlines()
    header, footer = lines[0].strip(), lines[-1].strip()
    if len(lines) < 3 or not (header.startswith("-----BEGIN ") and header.endswith("-----")):
        raise ConfigurationError(f"Certificate signing request '{path}' is not PEM encoded")

    label = header[len("-----BEGIN "):-len("-----")]
    if footer != f"-----END {label}-----":
        raise ConfigurationError(f"Certificate signing request '{path}' has no matching END line for '{label}'")

    return content


def _required(env: Env, name: str) -> str:
    try:
        value = env.str(name)
    except EnvError:
        raise ConfigurationError(f"Environment variable {name} is required")

    if not value.strip():
        raise ConfigurationError(f"Environment variable {name} must not be empty")
    return value


def load_stack_config(env_file: Optional[str] = None, csr_path: Optional[str] = None) -> StackConfig:
    """
    Load and validate stack configuration

    Reads the CSR file and the environment once. Nothing is read lazily
    afterwards, so construct code only ever sees the returned object.

    Args:
        env_file: Optional path to .env file
        csr_path: Optional CSR path, overrides CSR_PATH

    Returns:
        Validated stack configuration

    Raises:
        ConfigurationError: missing or malformed input
    """
    env = Env()
    if env_file and os.path.exists(env_file):
        env.read_env(env_file)

    csr_pem = read_csr(csr_path or env.str("CSR_PATH", DEFAULT_CSR_PATH))

    token, owner, repository = (_required(env, name) for name in REQUIRED_SOURCE_VARS)

    try:
        device = DeviceConfig(
            csr_pem=csr_pem,
            thing_name=env.str("IOT_THING_NAME", "cdk-ttgo"),
            policy_name=env.str("IOT_POLICY_NAME", "cdk-ttgo-policy"),
            policy_actions=[a.strip() for a in env.list("IOT_POLICY_ACTIONS", ["iot:*"], subcast=str)],
            policy_resources=[r.strip() for r in env.list("IOT_POLICY_RESOURCES", ["*"], subcast=str)]
        )

        frontend = FrontendConfig(
            source=SourceRepositoryConfig(
                access_token=token,
                owner=owner,
                repository=repository,
                branch=env.str("GITHUB_BRANCH", "master")
            ),
            app_name=env.str("FRONTEND_APP_NAME", "cdk-ttgo-frontend")
        )

        config = StackConfig(
            device=device,
            frontend=frontend,
            stack_name=env.str("STACK_NAME", "IoTStack"),
            environment=env.str("ENVIRONMENT", "development"),
            account=env.str("CDK_DEFAULT_ACCOUNT", None),
            region=env.str("CDK_DEFAULT_REGION", None)
        )
    except EnvError as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}")

    errors = config.validate()
    if errors:
        raise ConfigurationError("Invalid stack configuration: " + "; ".join(errors))

    logger.info(f"Loaded stack configuration: {config.summary()}")
    return config
