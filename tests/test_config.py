"""Unit tests for the config module."""

import os
from unittest.mock import patch

from pydantic import ValidationError
import pytest

from gistdb_server.config import Settings


pytestmark = pytest.mark.unit


class TestConfig:
    """Test configuration loading and validation."""

    def test_values_come_from_environment(self):
        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.github_api_url == "https://api.github.test"
        assert settings.http_timeout == 5
        assert settings.search_cache_max_entries == 128
        assert settings.environment == "test"
        assert settings.log_json is False

    def test_defaults_without_environment(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.github_api_url == "https://api.github.com"
        assert settings.github_user_agent == "GistDB-API"
        assert settings.default_description == "GistDB Database"
        assert settings.index_granularity == 10
        assert settings.bloom_filter_bits == 100000
        assert settings.bloom_filter_hash_count == 1
        assert settings.sparse_index_skip_on_absent is False
        assert settings.search_cache_base_url == "https://gistdb.com"
        assert settings.port == 8787

    @patch.dict(os.environ, {"INDEX_GRANULARITY": "0"}, clear=False)
    def test_granularity_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    @patch.dict(os.environ, {"PORT": "70000"}, clear=False)
    def test_port_range(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_cache_ttl(self):
        assert Settings(_env_file=None, search_cache_ttl_seconds=0).cache_ttl() is None
        assert Settings(_env_file=None, search_cache_ttl_seconds=2.5).cache_ttl() == 2.5

    def test_is_debug(self):
        assert Settings(_env_file=None, log_level="DEBUG").is_debug() is True
        assert Settings(_env_file=None).is_debug() is False

    def test_env_file_is_read(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SPARSE_INDEX_SKIP_ON_ABSENT=true\n")

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=env_file)  # type: ignore[call-arg]

        assert settings.sparse_index_skip_on_absent is True
