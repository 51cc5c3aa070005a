"""
Configuration models

Typed view over the YAML configuration. Every field has a default so a
missing section (or a missing file) still yields a usable configuration.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from relaywatch.models.errors import ConfigError


@dataclass
class NodeConfig:
    """Relay node startup settings, handed verbatim to the node factory."""
    factory: str = "relaywatch.node.local:start_local_relay"
    listen: List[str] = field(default_factory=lambda: ["/ip4/127.0.0.1/tcp/4001"])
    protocols: List[str] = field(default_factory=lambda: ["/relay/1.0"])
    peer_id: Optional[str] = None


@dataclass
class BridgeConfig:
    channel: str = "ipc-update"
    poll_interval: float = 4.0


@dataclass
class ShutdownConfig:
    stop_timeout: float = 5.0      # bound on handle.stop()
    start_grace: float = 5.0       # how long shutdown waits for an in-flight start
    total_timeout: float = 15.0    # whole stop sequence, at least start_grace + stop_timeout + 1


@dataclass
class ServerConfig:
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class LoggingConfig:
    level: str = "INFO"
    colors: bool = True


@dataclass
class RelaywatchConfig:
    node: NodeConfig = field(default_factory=NodeConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RelaywatchConfig":
        """
        Build config from parsed YAML.

        Raises:
            ConfigError: unknown keys or wrongly shaped sections
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping, got {type(data).__name__}")

        sections = {
            "node": NodeConfig,
            "bridge": BridgeConfig,
            "shutdown": ShutdownConfig,
            "server": ServerConfig,
            "logging": LoggingConfig,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigError(f"Unknown config sections: {sorted(unknown)}")

        kwargs = {}
        for name, section_cls in sections.items():
            raw = data.get(name) or {}
            if not isinstance(raw, dict):
                raise ConfigError(f"Section '{name}' must be a mapping")
            try:
                kwargs[name] = section_cls(**raw)
            except TypeError as ex:
                raise ConfigError(f"Invalid keys in section '{name}': {ex}") from ex

        config = cls(**kwargs)
        config.validate()
        return config

    def validate(self) -> None:
        if self.bridge.poll_interval <= 0:
            raise ConfigError("bridge.poll_interval must be positive")
        for name in ("stop_timeout", "start_grace", "total_timeout"):
            if getattr(self.shutdown, name) <= 0:
                raise ConfigError(f"shutdown.{name} must be positive")
        node_budget = self.shutdown.start_grace + self.shutdown.stop_timeout + 1.0
        if self.shutdown.total_timeout < node_budget:
            raise ConfigError(
                f"shutdown.total_timeout ({self.shutdown.total_timeout}s) must cover "
                f"start_grace + stop_timeout + 1 ({node_budget}s)"
            )
        if self.logging.level.upper() not in {"DEBUG", "INFO", "WARN", "ERROR"}:
            raise ConfigError(f"logging.level must be DEBUG, INFO, WARN or ERROR, got '{self.logging.level}'")
        if ":" not in self.node.factory:
            raise ConfigError("node.factory must look like 'package.module:callable'")
