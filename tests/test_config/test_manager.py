"""Tests for configuration loading."""

import pytest
from unittest.mock import AsyncMock, patch

from cirrus.config import ConfigManager
from cirrus.errors import CirrusError


@pytest.fixture
def config_dir(tmp_path):
    """Create a temporary config directory structure."""
    (tmp_path / "servers").mkdir()

    (tmp_path / "config.yaml").write_text("""
api:
  token: file-token
wait:
  timeout: 600
  poll_interval: 5
  min_poll_interval: 1
log_level: debug
""")
    return tmp_path


@pytest.mark.asyncio
class TestConfigManager:
    """Test ConfigManager async operations."""

    async def test_load_main_config(self, config_dir):
        """Test loading config.yaml."""
        manager = ConfigManager(config_dir)

        await manager.load()

        assert manager.config.api.token == "file-token"
        assert manager.config.wait.timeout == 600
        assert manager.config.log_level == "DEBUG"

    async def test_missing_main_config(self, tmp_path):
        """Test that a missing config.yaml is an error."""
        manager = ConfigManager(tmp_path)

        with pytest.raises(FileNotFoundError):
            await manager.load()

    async def test_token_from_environment(self, config_dir, monkeypatch):
        """Test the CLOUDSCALE_TOKEN fallback."""
        (config_dir / "config.yaml").write_text("log_level: INFO\n")
        monkeypatch.setenv("CLOUDSCALE_TOKEN", "env-token")
        manager = ConfigManager(config_dir)

        await manager.load()

        assert manager.config.api.token == "env-token"

    async def test_load_servers(self, config_dir):
        """Test loading server definitions keyed by name."""
        (config_dir / "servers" / "web.yaml").write_text("""
web-1:
  flavor: flex-2
  image: debian-9
  volume_size_gb: 10
  ssh_keys:
    - ssh-ed25519 AAAA key-a
  use_ipv6: true
  state: running
""")
        manager = ConfigManager(config_dir)

        await manager.load()

        spec = manager.get_server_spec("web-1")
        assert spec is not None
        assert spec.name == "web-1"
        assert spec.use_ipv6 is True
        assert spec.use_public_network is None
        assert manager.errors == {}

    async def test_invalid_server_is_skipped(self, config_dir):
        """Test that a bad server definition does not block the others."""
        (config_dir / "servers" / "mixed.yaml").write_text("""
good:
  flavor: flex-2
  image: debian-9
  volume_size_gb: 10
  ssh_keys: [key-a]
bad:
  flavor: flex-2
  image: debian-9
  volume_size_gb: 10
  ssh_keys: []
""")
        manager = ConfigManager(config_dir)

        await manager.load()

        assert manager.get_server_spec("good") is not None
        assert manager.get_server_spec("bad") is None
        assert "bad" in manager.errors

    async def test_non_mapping_file_is_skipped(self, config_dir):
        """Test that a servers file holding a list does not block other files."""
        servers_dir = config_dir / "servers"
        (servers_dir / "a.yaml").write_text("- web-1\n")
        (servers_dir / "b.yaml").write_text("""
web-2:
  flavor: flex-2
  image: debian-9
  volume_size_gb: 10
  ssh_keys: [key-a]
""")
        manager = ConfigManager(config_dir)

        await manager.load()

        assert manager.get_server_spec("web-2") is not None
        assert str(servers_dir / "a.yaml") in manager.errors

    async def test_invalid_main_config(self, config_dir):
        """Test that an invalid config.yaml raises a CirrusError."""
        (config_dir / "config.yaml").write_text("log_level: LOUD\n")
        manager = ConfigManager(config_dir)

        with pytest.raises(CirrusError) as exc_info:
            await manager.load()

        assert "config.yaml" in str(exc_info.value)

    async def test_read_yaml_threading(self, config_dir):
        """Test that YAML reading is offloaded to a thread."""
        manager = ConfigManager(config_dir)
        test_file = config_dir / "test.yaml"
        test_file.write_text("key: value")

        with patch("asyncio.to_thread", new_callable=AsyncMock) as mock_to_thread:
            mock_to_thread.return_value = {"key": "value"}

            result = await manager._read_yaml(test_file)

            assert result == {"key": "value"}
            mock_to_thread.assert_called_once()
