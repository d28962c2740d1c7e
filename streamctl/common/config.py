"""Configuration file loading, layering and saving"""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import yaml

from streamctl.common.errors import ConfigError
from streamctl.common.settings import settings
from streamctl.common.types import Codec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamSettings:
    """Requested stream geometry and transport settings"""
    width: int
    height: int
    fps: int
    bitrate: int  # kbps, -1 derives it from geometry
    packet_size: int
    remote: bool
    surround: bool


@dataclass(frozen=True)
class DiscoveryConfig:
    """Host discovery settings"""
    timeout_seconds: float


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration settings"""
    level: str
    file: Optional[str]
    format: str


@dataclass(frozen=True)
class SessionConfig:
    """Complete, immutable session configuration"""
    address: Optional[str]
    app: str
    platform: str
    codec: Codec
    sops: bool
    local_audio: bool
    unsupported: bool
    fullscreen: bool
    debug_level: int
    key_dir: Optional[str]
    mapping: Optional[str]
    audio_device: Optional[str]
    backend: Optional[str]  # "package.module:attribute" of the GameStream backend
    stream: StreamSettings
    discovery: DiscoveryConfig
    logging: LoggingConfig


class AddressLocator(Protocol):
    """Resolves a host address when configuration does not name one."""

    def host_locate(self, address: Optional[str], timeout: float) -> str:
        """Return `address` or a discovered one."""
        ...


DEFAULTS: Dict[str, Any] = {
    "address": None,
    "app": "Steam",
    "platform": "auto",
    "codec": "auto",
    "sops": True,
    "localaudio": False,
    "unsupported": False,
    "fullscreen": True,
    "debug_level": 0,
    "keydir": None,
    "mapping": None,
    "audio_device": None,
    "backend": None,
    "stream": {
        "width": 1280,
        "height": 720,
        "fps": 60,
        "bitrate": -1,
        "packetsize": settings.DEFAULT_PACKET_SIZE,
        "remote": False,
        "surround": False,
    },
    "discovery": {
        "timeout_seconds": settings.DISCOVERY_TIMEOUT_SEC,
    },
    "logging": {
        "level": "WARNING",
        "file": None,
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}


def _typed_get(data: Dict[str, Any], key: str, kind: type, section: str = "") -> Any:
    """Fetch a required value and check its type"""
    label = f"{section}.{key}" if section else key
    value = data.get(key)
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if kind is int and isinstance(value, bool):
        raise ConfigError(f"'{label}' must be an integer, got {value!r}")
    if not isinstance(value, kind):
        raise ConfigError(f"'{label}' must be {kind.__name__}, got {value!r}")
    return value


def _optional_get(data: Dict[str, Any], key: str, section: str = "") -> Optional[str]:
    """Fetch an optional string value"""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        label = f"{section}.{key}" if section else key
        raise ConfigError(f"'{label}' must be a string, got {value!r}")
    return value


class ConfigLoader:
    """Loads, merges and saves configuration from YAML files"""

    @staticmethod
    def yaml_load(file_path: Path) -> Dict[str, Any]:
        """
        Load YAML configuration file

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed configuration dictionary (empty for an empty file)

        Raises:
            FileNotFoundError: If file does not exist
            yaml.YAMLError: If file is not valid YAML
            ValueError: If the document is not a mapping
        """
        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a YAML dictionary")

        return data

    @staticmethod
    def layers_merge(*layers: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration layers field by field

        Later layers win. Nested sections are merged recursively so a layer
        that sets only `stream.fps` keeps every other stream field.

        Args:
            *layers: Raw configuration dictionaries, lowest precedence first

        Returns:
            New merged dictionary
        """
        merged: Dict[str, Any] = {}
        for layer in layers:
            for key, value in layer.items():
                if isinstance(value, dict) and isinstance(merged.get(key), dict):
                    merged[key] = ConfigLoader.layers_merge(merged[key], value)
                else:
                    merged[key] = copy.deepcopy(value)
        return merged

    @staticmethod
    def config_parse(data: Dict[str, Any]) -> SessionConfig:
        """
        Parse a merged configuration dictionary into SessionConfig

        Args:
            data: Merged configuration dictionary (defaults included)

        Returns:
            Parsed SessionConfig

        Raises:
            ConfigError: If a value has the wrong type or is unknown
        """
        stream_data = data.get("stream")
        discovery_data = data.get("discovery")
        logging_data = data.get("logging")
        for name, section in (
            ("stream", stream_data),
            ("discovery", discovery_data),
            ("logging", logging_data),
        ):
            if not isinstance(section, dict):
                raise ConfigError(f"'{name}' must be a mapping, got {section!r}")

        stream = StreamSettings(
            width=_typed_get(stream_data, "width", int, "stream"),
            height=_typed_get(stream_data, "height", int, "stream"),
            fps=_typed_get(stream_data, "fps", int, "stream"),
            bitrate=_typed_get(stream_data, "bitrate", int, "stream"),
            packet_size=_typed_get(stream_data, "packetsize", int, "stream"),
            remote=_typed_get(stream_data, "remote", bool, "stream"),
            surround=_typed_get(stream_data, "surround", bool, "stream"),
        )

        timeout: float = _typed_get(discovery_data, "timeout_seconds", float, "discovery")
        if timeout <= 0:
            raise ConfigError(f"'discovery.timeout_seconds' must be positive, got {timeout}")
        discovery = DiscoveryConfig(timeout_seconds=timeout)

        log_config = LoggingConfig(
            level=_typed_get(logging_data, "level", str, "logging"),
            file=_optional_get(logging_data, "file", "logging"),
            format=_typed_get(logging_data, "format", str, "logging"),
        )

        try:
            codec = Codec.fromName_parse(_typed_get(data, "codec", str))
        except ValueError as e:
            raise ConfigError(str(e)) from e

        key_dir = _optional_get(data, "keydir")
        mapping = _optional_get(data, "mapping")

        return SessionConfig(
            address=_optional_get(data, "address"),
            app=_typed_get(data, "app", str),
            platform=_typed_get(data, "platform", str),
            codec=codec,
            sops=_typed_get(data, "sops", bool),
            local_audio=_typed_get(data, "localaudio", bool),
            unsupported=_typed_get(data, "unsupported", bool),
            fullscreen=_typed_get(data, "fullscreen", bool),
            debug_level=_typed_get(data, "debug_level", int),
            key_dir=os.path.expanduser(key_dir) if key_dir else None,
            mapping=os.path.expanduser(mapping) if mapping else None,
            audio_device=_optional_get(data, "audio_device"),
            backend=_optional_get(data, "backend"),
            stream=stream,
            discovery=discovery,
            logging=log_config,
        )

    @staticmethod
    def config_serialize(config: SessionConfig) -> Dict[str, Any]:
        """
        Convert SessionConfig back into the YAML key layout

        Args:
            config: Configuration to serialize

        Returns:
            Dictionary suitable for `yaml.safe_dump`
        """
        return {
            "address": config.address,
            "app": config.app,
            "platform": config.platform,
            "codec": config.codec.value,
            "sops": config.sops,
            "localaudio": config.local_audio,
            "unsupported": config.unsupported,
            "fullscreen": config.fullscreen,
            "debug_level": config.debug_level,
            "keydir": config.key_dir,
            "mapping": config.mapping,
            "audio_device": config.audio_device,
            "backend": config.backend,
            "stream": {
                "width": config.stream.width,
                "height": config.stream.height,
                "fps": config.stream.fps,
                "bitrate": config.stream.bitrate,
                "packetsize": config.stream.packet_size,
                "remote": config.stream.remote,
                "surround": config.stream.surround,
            },
            "discovery": {
                "timeout_seconds": config.discovery.timeout_seconds,
            },
            "logging": {
                "level": config.logging.level,
                "file": config.logging.file,
                "format": config.logging.format,
            },
        }

    @staticmethod
    def config_save(config: SessionConfig, file_path: Path) -> None:
        """
        Write the effective configuration to a YAML file

        Args:
            config: Configuration to save
            file_path: Destination path; parent directories are created
        """
        file_path = Path(file_path).expanduser()
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w") as f:
            yaml.safe_dump(ConfigLoader.config_serialize(config), f, sort_keys=False)
        logger.info(f"Saved configuration to {file_path}")

    @staticmethod
    def globalFile_load(file_path: Path) -> Dict[str, Any]:
        """
        Load the global settings layer

        A missing file yields an empty layer. Anything else that prevents
        reading it is fatal.

        Args:
            file_path: Global settings file

        Returns:
            Raw global layer

        Raises:
            ConfigError: If the file exists but is unreadable or malformed
        """
        if not file_path.exists():
            logger.info(f"No global config at {file_path}, using defaults")
            return {}
        try:
            return ConfigLoader.yaml_load(file_path)
        except (OSError, yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"Error loading config {file_path}: {e}") from e

    @staticmethod
    def hostConfigPath_derive(template: str, address: str) -> Path:
        """
        Substitute the resolved address into the host override template

        Args:
            template: Path template containing `{address}`
            address: Resolved host address

        Returns:
            Host override file path
        """
        return Path(template.format(address=address)).expanduser()

    @staticmethod
    def hostFile_load(file_path: Path) -> Dict[str, Any]:
        """
        Load a host override layer, best effort

        Args:
            file_path: Host override file

        Returns:
            Raw host layer, or empty if it cannot be read
        """
        if not os.access(file_path, os.R_OK):
            logger.debug(f"No readable host config at {file_path}")
            return {}
        try:
            data = ConfigLoader.yaml_load(file_path)
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning(f"Ignoring host config {file_path}: {e}")
            return {}
        logger.info(f"Loaded host config {file_path}")
        return data

    @staticmethod
    def config_resolve(
        global_path: Path,
        host_path_template: str,
        cli_overrides: Dict[str, Any],
        locator: AddressLocator,
    ) -> SessionConfig:
        """
        Build the session configuration from all layers

        Order of precedence, lowest first: defaults, global file, host
        override file, command-line overrides. When no layer names an
        address the locator is asked for one before the host file is read.

        Args:
            global_path: Global settings file
            host_path_template: Host override path containing `{address}`
            cli_overrides: Raw override layer built from command-line flags
            locator: Address locator used when no address is configured

        Returns:
            Merged SessionConfig

        Raises:
            ConfigError: If the global file is malformed
            DiscoveryTimeout: If discovery finds no host
        """
        global_layer = ConfigLoader.globalFile_load(Path(global_path).expanduser())
        initial = ConfigLoader.config_parse(
            ConfigLoader.layers_merge(DEFAULTS, global_layer, cli_overrides)
        )

        address: str = locator.host_locate(initial.address, initial.discovery.timeout_seconds)
        address_layer: Dict[str, Any] = {"address": address}

        host_path = ConfigLoader.hostConfigPath_derive(host_path_template, address)
        host_layer = ConfigLoader.hostFile_load(host_path)
        if host_layer:
            try:
                return ConfigLoader.config_parse(
                    ConfigLoader.layers_merge(
                        DEFAULTS, global_layer, host_layer, cli_overrides, address_layer
                    )
                )
            except ConfigError as e:
                logger.warning(f"Ignoring host config {host_path}: {e}")

        return ConfigLoader.config_parse(
            ConfigLoader.layers_merge(DEFAULTS, global_layer, cli_overrides, address_layer)
        )
