"""
Unit Tests: Configuration

Tests:
    - S3Config validation and environment loading
    - botocore client keyword arguments
    - StoreConfig backend selection
"""

import pytest

from s3state.core.errors import ConfigurationError, ErrorCode
from s3state.storage.config import BackendType, S3Config, StoreConfig


class TestS3Config:
    """Tests for S3Config."""

    def test_defaults(self):
        config = S3Config(bucket_name="bot-state")
        assert config.region == "us-east-1"
        assert config.endpoint_url is None
        assert config.max_retries == 3

    @pytest.mark.parametrize("bucket", ["", "ab", "x" * 64])
    def test_bucket_length(self, bucket):
        with pytest.raises(ConfigurationError) as excinfo:
            S3Config(bucket_name=bucket)
        assert excinfo.value.code == ErrorCode.CONFIGURATION_ERROR

    @pytest.mark.parametrize("field, value", [
        ("max_pool_connections", 0),
        ("connect_timeout_seconds", 0),
        ("read_timeout_seconds", -1),
        ("max_retries", -1),
        ("addressing_style", "sideways"),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ConfigurationError):
            S3Config(bucket_name="bot-state", **{field: value})

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            S3Config(bucket_name="")

    def test_repr_hides_secrets(self):
        config = S3Config(
            bucket_name="bot-state",
            access_key_id="AKIAEXAMPLE",
            secret_access_key="very-secret",
        )
        text = repr(config)
        assert "bot-state" in text
        assert "AKIAEXAMPLE" not in text
        assert "very-secret" not in text

    def test_session_kwargs(self):
        assert S3Config(bucket_name="bot-state").get_session_kwargs() == {}

        config = S3Config(
            bucket_name="bot-state",
            access_key_id="id",
            secret_access_key="secret",
            session_token="token",
        )
        assert config.get_session_kwargs() == {
            "aws_access_key_id": "id",
            "aws_secret_access_key": "secret",
            "aws_session_token": "token",
        }

    def test_client_kwargs(self):
        config = S3Config(
            bucket_name="bot-state",
            region="eu-west-1",
            endpoint_url="http://localhost:9000",
            max_pool_connections=4,
            max_retries=5,
            addressing_style="path",
            verify_ssl=False,
        )
        kwargs = config.get_client_kwargs()

        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert kwargs["verify"] is False
        assert kwargs["config"].max_pool_connections == 4
        assert kwargs["config"].retries == {"max_attempts": 5}
        assert kwargs["config"].s3 == {"addressing_style": "path"}

    def test_client_kwargs_omit_endpoint_for_aws(self):
        kwargs = S3Config(bucket_name="bot-state").get_client_kwargs()
        assert "endpoint_url" not in kwargs
        assert "verify" not in kwargs


class TestS3ConfigFromEnv:
    """Tests for S3Config.from_env()."""

    def test_bucket_required(self, clean_env):
        with pytest.raises(ConfigurationError, match="S3STATE_S3_BUCKET"):
            S3Config.from_env()

    def test_reads_prefixed_variables(self, clean_env):
        clean_env.setenv("S3STATE_S3_BUCKET", "bot-state")
        clean_env.setenv("S3STATE_S3_REGION", "ap-northeast-1")
        clean_env.setenv("S3STATE_S3_ENDPOINT_URL", "http://minio:9000")
        clean_env.setenv("S3STATE_S3_MAX_RETRIES", "7")
        clean_env.setenv("S3STATE_S3_USE_SSL", "false")
        clean_env.setenv("S3STATE_S3_ADDRESSING_STYLE", "PATH")

        config = S3Config.from_env()

        assert config.bucket_name == "bot-state"
        assert config.region == "ap-northeast-1"
        assert config.endpoint_url == "http://minio:9000"
        assert config.max_retries == 7
        assert config.use_ssl is False
        assert config.addressing_style == "path"

    def test_aws_fallbacks(self, clean_env):
        clean_env.setenv("S3STATE_S3_BUCKET", "bot-state")
        clean_env.setenv("AWS_DEFAULT_REGION", "us-west-2")
        clean_env.setenv("AWS_ACCESS_KEY_ID", "id")
        clean_env.setenv("AWS_SECRET_ACCESS_KEY", "secret")

        config = S3Config.from_env()

        assert config.region == "us-west-2"
        assert config.access_key_id == "id"
        assert config.secret_access_key == "secret"

    def test_non_integer_rejected(self, clean_env):
        clean_env.setenv("S3STATE_S3_BUCKET", "bot-state")
        clean_env.setenv("S3STATE_S3_READ_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="S3STATE_S3_READ_TIMEOUT"):
            S3Config.from_env()

    def test_custom_prefix(self, clean_env):
        clean_env.setenv("BOT_BUCKET", "other-bucket")
        assert S3Config.from_env("BOT").bucket_name == "other-bucket"


class TestStoreConfig:
    """Tests for StoreConfig."""

    def test_development(self):
        config = StoreConfig.for_development()
        assert config.backend == BackendType.IN_MEMORY
        assert config.bucket_name == "memory"
        assert config.version_field == "version"
        assert config.conditional_writes is False

    def test_for_s3(self):
        config = StoreConfig.for_s3("bot-state", region="eu-central-1")
        assert config.backend == BackendType.S3
        assert config.bucket_name == "bot-state"
        assert config.s3.region == "eu-central-1"

    def test_s3_backend_requires_s3_config(self):
        with pytest.raises(ConfigurationError):
            StoreConfig(backend=BackendType.S3)

    def test_empty_version_field_rejected(self):
        with pytest.raises(ConfigurationError):
            StoreConfig(version_field="")

    def test_from_env_defaults_to_memory(self, clean_env):
        assert StoreConfig.from_env().backend == BackendType.IN_MEMORY

    def test_from_env_infers_s3_from_bucket(self, clean_env):
        clean_env.setenv("S3STATE_S3_BUCKET", "bot-state")
        config = StoreConfig.from_env()
        assert config.backend == BackendType.S3
        assert config.bucket_name == "bot-state"

    @pytest.mark.parametrize("name", ["s3", "MINIO"])
    def test_from_env_explicit_s3(self, clean_env, name):
        clean_env.setenv("S3STATE_BACKEND", name)
        clean_env.setenv("S3STATE_S3_BUCKET", "bot-state")
        assert StoreConfig.from_env().backend == BackendType.S3

    def test_from_env_s3_without_bucket(self, clean_env):
        clean_env.setenv("S3STATE_BACKEND", "s3")
        with pytest.raises(ConfigurationError):
            StoreConfig.from_env()

    def test_from_env_unknown_backend(self, clean_env):
        clean_env.setenv("S3STATE_BACKEND", "floppy")
        with pytest.raises(ConfigurationError, match="floppy"):
            StoreConfig.from_env()

    def test_from_env_record_settings(self, clean_env):
        clean_env.setenv("S3STATE_VERSION_FIELD", "eTag")
        clean_env.setenv("S3STATE_CONDITIONAL_WRITES", "yes")
        config = StoreConfig.from_env()
        assert config.version_field == "eTag"
        assert config.conditional_writes is True
