"""Configuration loading."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional

from ruamel.yaml import YAML
from pydantic import ValidationError

from cirrus.errors import CirrusError
from cirrus.models.config import CirrusConfig
from cirrus.models.server import ServerSpec


logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "CLOUDSCALE_TOKEN"


class ConfigManager:
    """Loads the main configuration and server definitions."""

    def __init__(self, config_dir: Path):
        """Initialize configuration manager."""
        self.config_dir = Path(config_dir)
        self.yaml = YAML(typ="safe")
        self.config: Optional[CirrusConfig] = None
        self.servers: Dict[str, ServerSpec] = {}
        self.errors: Dict[str, str] = {}

    async def load(self):
        """Load all configuration files."""
        logger.info(f"Loading configuration from {self.config_dir}")

        await self._load_main_config()
        await self._load_servers()

        logger.info("Configuration loaded successfully")

    async def _load_main_config(self):
        """Load main configuration file."""
        config_file = self.config_dir / "config.yaml"
        if not config_file.exists():
            raise FileNotFoundError(f"Main config not found: {config_file}")

        try:
            data = await self._read_yaml(config_file) or {}
            self.config = CirrusConfig(**data)
            logger.debug(f"Loaded main config: {config_file}")
        except ValidationError as e:
            logger.error(f"Invalid main config: {e}")
            raise CirrusError(f"Invalid main config {config_file}: {e}") from e

        if not self.config.api.token:
            self.config.api.token = os.environ.get(TOKEN_ENV_VAR)

    async def _load_servers(self):
        """Load server definitions."""
        servers_dir = self.config_dir / "servers"
        if not servers_dir.exists():
            logger.warning(f"Servers directory not found: {servers_dir}")
            return

        self.servers.clear()
        self.errors.clear()
        for yaml_file in sorted(servers_dir.glob("*.yaml")):
            try:
                data = await self._read_yaml(yaml_file) or {}
            except Exception as e:
                logger.error(f"Error loading {yaml_file}: {e}")
                self.errors[str(yaml_file)] = str(e)
                continue

            if not isinstance(data, dict):
                logger.error(f"Error loading {yaml_file}: expected a mapping of server names")
                self.errors[str(yaml_file)] = "expected a mapping of server names"
                continue

            for name, spec in data.items():
                try:
                    self.servers[name] = ServerSpec(name=name, **(spec or {}))
                except (ValidationError, TypeError) as e:
                    logger.error(f"Invalid server {name} in {yaml_file}: {e}")
                    self.errors[name] = str(e)
            logger.debug(f"Loaded servers from {yaml_file}")

    async def _read_yaml(self, file_path: Path) -> Dict[str, Any]:
        """Read and parse YAML file."""
        return await asyncio.to_thread(self._parse_yaml, file_path)

    def _parse_yaml(self, file_path: Path) -> Dict[str, Any]:
        return self.yaml.load(file_path.read_text())

    def get_server_spec(self, name: str) -> Optional[ServerSpec]:
        """Get server specification by name."""
        return self.servers.get(name)
