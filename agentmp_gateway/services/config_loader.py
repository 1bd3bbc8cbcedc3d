"""
Routing configuration loader.

Reads ``config.json`` into a ``RoutingTable``. At startup a missing or broken
file is healed by writing the default configuration; on reload the same
problems are reported to the caller and the live table is left alone.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError

from agentmp_gateway.proxy.errors import ConfigError, ConfigMalformed, ConfigMissing
from agentmp_gateway.routing.table import RoutingTable
from agentmp_gateway.schemas.gateway import GatewayConfigFile

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Dict[str, str]] = {
    "mcpServers": {
        "curated-discovery": "https://curateddiscovery-788757352670.us-west2.run.app",
    },
    "a2aAgents": {
        "portfolio-manager": "https://portfoliomanager.a2a.agentmp.io",
        "retirement-planner": "https://retirementplanneragent.a2a.agentmp.io",
    },
}


def _format_validation_error(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
    )


class ConfigLoader:
    """Loads and writes the JSON routing configuration at ``path``."""

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = Path(path)

    def read(self) -> RoutingTable:
        """
        Parse the configuration file into a new table.

        Raises:
            ConfigMissing: The file does not exist.
            ConfigMalformed: The file is not UTF-8 JSON or does not match the schema.
            ConfigError: The file exists but could not be read.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigMissing(f"Configuration file not found: {self.path}") from None
        except OSError as e:
            raise ConfigError(f"Could not read {self.path}: {e.strerror or e}") from e
        except UnicodeDecodeError as e:
            raise ConfigMalformed(f"Invalid configuration in {self.path}: not UTF-8 text ({e.reason})") from e

        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigMalformed(f"Invalid JSON in {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigMalformed(f"Invalid configuration in {self.path}: top level must be an object")

        try:
            config = GatewayConfigFile.model_validate(data)
        except ValidationError as e:
            raise ConfigMalformed(
                f"Invalid configuration in {self.path}: {_format_validation_error(e)}"
            ) from e

        return RoutingTable.from_config(config)

    def load(self) -> RoutingTable:
        """Startup load: fall back to (and persist) the default configuration."""
        try:
            table = self.read()
        except ConfigMissing:
            logger.warning(f"No {self.path.name} found. Creating default configuration...")
            return self.write_default()
        except ConfigMalformed as e:
            logger.error(f"Error loading configuration: {e.message}")
            self._set_aside()
            return self.write_default()

        logger.info(
            f"Loaded configuration from {self.path}: "
            f"{len(table.mcp_servers)} MCP servers, {len(table.a2a_agents)} A2A agents"
        )
        return table

    def reload(self) -> RoutingTable:
        """Reload: any problem is raised, nothing is written."""
        table = self.read()
        logger.info(f"Reloaded configuration from {self.path}")
        return table

    def write(self, data: Dict[str, Any]) -> None:
        """Atomically replace the file with ``data`` as indented JSON."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def write_default(self) -> RoutingTable:
        self.write(DEFAULT_CONFIG)
        logger.info(f"Created default {self.path.name}")
        return RoutingTable.from_config(GatewayConfigFile.model_validate(DEFAULT_CONFIG))

    def _set_aside(self) -> None:
        """Keep a broken file as ``<name>.invalid`` instead of overwriting it."""
        backup = self.path.with_name(f"{self.path.name}.invalid")
        try:
            os.replace(self.path, backup)
        except OSError as e:
            logger.warning(f"Could not move {self.path} aside: {e}")
            return
        logger.warning(f"Moved unreadable configuration to {backup}")
