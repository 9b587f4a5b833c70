"""
Pytest configuration and shared fixtures for the TTGO IoT stack
"""

import os

import pytest
import aws_cdk as cdk

from ttgo_iot.config import load_stack_config


SAMPLE_CSR = """-----BEGIN CERTIFICATE REQUEST-----
MIICijCCAXICAQAwRTELMAkGA1UEBhMCQVUxEzARBgNVBAgMClNvbWUtU3RhdGUx
ITAfBgNVBAoMGEludGVybmV0IFdpZGdpdHMgUHR5IEx0ZDCCASIwDQYJKoZIhvcN
AQEBBQADggEPADCCAQoCggEBAMLPJ5pRcF5fqfTCSPwSk1g0IUJ7Rg1TQxHjY5wK
-----END CERTIFICATE REQUEST-----
"""


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS Credentials for moto."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def sample_csr():
    """PEM encoded certificate signing request."""
    return SAMPLE_CSR


@pytest.fixture
def csr_file(tmp_path, sample_csr):
    """CSR written to a temporary cert.pem."""
    path = tmp_path / "cert.pem"
    path.write_text(sample_csr)
    return str(path)


@pytest.fixture
def source_env(monkeypatch, csr_file):
    """Environment for a loadable stack configuration."""
    for var in ("IOT_THING_NAME", "IOT_POLICY_NAME", "IOT_POLICY_ACTIONS",
                "IOT_POLICY_RESOURCES", "GITHUB_BRANCH", "STACK_NAME",
                "CDK_DEFAULT_ACCOUNT", "CDK_DEFAULT_REGION"):
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setenv("CSR_PATH", csr_file)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_testtoken")
    monkeypatch.setenv("GITHUB_OWNER", "ttgo-owner")
    monkeypatch.setenv("GITHUB_REPOSITORY", "ttgo-frontend")
    return os.environ


@pytest.fixture
def stack_config(source_env):
    """Validated stack configuration."""
    return load_stack_config()


@pytest.fixture
def cdk_app():
    """Create CDK app for testing."""
    return cdk.App()
