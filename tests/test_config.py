"""
Configuration loading tests
Tests CSR reading, required environment variables and validation
"""

import pytest

from ttgo_iot.config import (
    ConfigurationError, StackConfig, DeviceConfig, FrontendConfig,
    SourceRepositoryConfig, load_stack_config, read_csr,
)


def make_config(csr_pem, **device_overrides):
    device = DeviceConfig(csr_pem=csr_pem, **device_overrides)
    frontend = FrontendConfig(
        source=SourceRepositoryConfig(access_token="token", owner="owner", repository="repo")
    )
    return StackConfig(device=device, frontend=frontend)


class TestReadCsr:
    """Test certificate signing request reading"""

    def test_reads_pem(self, csr_file, sample_csr):
        assert read_csr(csr_file) == sample_csr

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            read_csr(str(tmp_path / "cert.pem"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "cert.pem"
        path.write_text("  \n")
        with pytest.raises(ConfigurationError, match="empty"):
            read_csr(str(path))

    def test_not_pem(self, tmp_path):
        path = tmp_path / "cert.pem"
        path.write_text("just some text\nover\nthree lines\n")
        with pytest.raises(ConfigurationError, match="not PEM"):
            read_csr(str(path))

    def test_non_ascii_content(self, tmp_path):
        path = tmp_path / "cert.pem"
        path.write_bytes(b"-----BEGIN CERTIFICATE REQUEST-----\n\xff\xfe\x80\n-----END CERTIFICATE REQUEST-----\n")
        with pytest.raises(ConfigurationError, match="Cannot read"):
            read_csr(str(path))

    def test_mismatched_footer(self, tmp_path):
        path = tmp_path / "cert.pem"
        path.write_text("-----BEGIN CERTIFICATE REQUEST-----\nabc\n-----END CERTIFICATE-----\n")
        with pytest.raises(ConfigurationError, match="no matching END"):
            read_csr(str(path))


class TestLoadStackConfig:
    """Test configuration loading from the environment"""

    def test_defaults(self, stack_config, sample_csr):
        assert stack_config.stack_name == "IoTStack"
        assert stack_config.device.thing_name == "cdk-ttgo"
        assert stack_config.device.policy_name == "cdk-ttgo-policy"
        assert stack_config.device.policy_actions == ["iot:*"]
        assert stack_config.device.policy_resources == ["*"]
        assert stack_config.device.csr_pem == sample_csr
        assert stack_config.frontend.source.branch == "master"
        assert stack_config.frontend.source.url == "https://github.com/ttgo-owner/ttgo-frontend"

    def test_csr_path_argument_overrides_env(self, source_env, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_stack_config(csr_path=str(tmp_path / "missing.pem"))

    def test_missing_csr_fails(self, source_env, monkeypatch, tmp_path):
        monkeypatch.setenv("CSR_PATH", str(tmp_path / "absent.pem"))
        with pytest.raises(ConfigurationError, match="certificate signing request"):
            load_stack_config()

    @pytest.mark.parametrize("var", ["GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPOSITORY"])
    def test_missing_source_variable_fails(self, source_env, monkeypatch, var):
        monkeypatch.delenv(var)
        with pytest.raises(ConfigurationError, match=var):
            load_stack_config()

    def test_empty_source_variable_fails(self, source_env, monkeypatch):
        monkeypatch.setenv("GITHUB_OWNER", "  ")
        with pytest.raises(ConfigurationError, match="GITHUB_OWNER must not be empty"):
            load_stack_config()

    def test_policy_scope_from_environment(self, source_env, monkeypatch):
        monkeypatch.setenv("IOT_POLICY_ACTIONS", "iot:Connect,iot:Publish")
        monkeypatch.setenv("IOT_POLICY_RESOURCES", "arn:aws:iot:eu-west-1:123456789012:client/cdk-ttgo")
        config = load_stack_config()
        assert config.device.policy_actions == ["iot:Connect", "iot:Publish"]
        assert config.device.policy_resources == ["arn:aws:iot:eu-west-1:123456789012:client/cdk-ttgo"]

    def test_policy_lists_with_spaces_after_commas(self, source_env, monkeypatch):
        monkeypatch.setenv("IOT_POLICY_ACTIONS", "iot:Connect, iot:Publish")
        monkeypatch.setenv("IOT_POLICY_RESOURCES", "arn:aws:iot:eu-west-1:123456789012:client/cdk-ttgo, *")
        config = load_stack_config()
        assert config.device.policy_actions == ["iot:Connect", "iot:Publish"]
        assert config.device.policy_resources == ["arn:aws:iot:eu-west-1:123456789012:client/cdk-ttgo", "*"]

    def test_blank_policy_item_fails(self, source_env, monkeypatch):
        monkeypatch.setenv("IOT_POLICY_ACTIONS", "iot:Connect, ,iot:Publish")
        with pytest.raises(ConfigurationError, match="must not be blank"):
            load_stack_config()

    def test_invalid_policy_action_fails(self, source_env, monkeypatch):
        monkeypatch.setenv("IOT_POLICY_ACTIONS", "s3:*")
        with pytest.raises(ConfigurationError, match="outside the iot: namespace"):
            load_stack_config()

    def test_env_file(self, monkeypatch, csr_file, tmp_path):
        for var in ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPOSITORY", "CSR_PATH"):
            monkeypatch.setenv(var, "placeholder")
            monkeypatch.delenv(var)
        env_file = tmp_path / ".env"
        env_file.write_text(
            "GITHUB_TOKEN=file-token\nGITHUB_OWNER=file-owner\nGITHUB_REPOSITORY=file-repo\n"
        )
        config = load_stack_config(env_file=str(env_file), csr_path=csr_file)
        assert config.frontend.source.owner == "file-owner"
        assert config.frontend.source.repository == "file-repo"


class TestValidate:
    """Test configuration validation"""

    def test_valid(self, sample_csr):
        assert make_config(sample_csr).validate() == []

    def test_duplicate_names(self, sample_csr):
        errors = make_config(sample_csr, thing_name="cdk-ttgo", policy_name="cdk-ttgo").validate()
        assert any("used for both" in e for e in errors)

    def test_empty_policy_lists(self, sample_csr):
        errors = make_config(sample_csr, policy_actions=[], policy_resources=[]).validate()
        assert "IoT policy must grant at least one action" in errors
        assert "IoT policy must name at least one resource" in errors

    def test_whitespace_policy_items(self, sample_csr):
        errors = make_config(
            sample_csr, policy_actions=[" iot:Publish"], policy_resources=[" *", "  "]
        ).validate()
        assert "IoT policy action ' iot:Publish' has surrounding whitespace" in errors
        assert "IoT policy resource ' *' has surrounding whitespace" in errors
        assert "IoT policy resource must not be blank" in errors
        assert not any("outside the iot: namespace" in e for e in errors)

    def test_summary_masks_token(self, sample_csr):
        summary = make_config(sample_csr).summary()
        assert summary["source_token"] == "****"
        assert "token" not in summary.values()
