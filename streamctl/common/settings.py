"""Application settings singleton - single source of controller constants

This module provides a singleton Settings class that consolidates:
1. Locations of persisted state (global config, host overrides, key store)
2. GameStream protocol limits (gamepad slots, PIN length)
3. Controller timing (discovery timeout, dispatch poll interval)

Usage:
    from streamctl.common.settings import settings

    config_path = settings.globalConfigPath_get()
    if count > settings.MAX_GAMEPADS:
        ...
"""

from pathlib import Path
from typing import Optional


class Settings:
    """Singleton settings manager for controller constants

    This class provides:
    - Default on-disk locations for config and trust material
    - Protocol constants shared by pairing and stream launch
    - Timing constants for discovery and the command loop

    The singleton pattern ensures all parts of the controller agree on the
    same locations and limits.
    """

    _instance: Optional["Settings"] = None

    def __new__(cls) -> "Settings":
        """Ensure only one Settings instance exists"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize settings singleton (only runs once)"""
        if hasattr(self, "_initialized"):
            return
        self._initialized = True

    # =========================================================================
    # Persisted State Locations
    # =========================================================================

    DATA_DIR: str = "~/.config/streamctl"
    """Per-install directory for settings, host overrides and key material"""

    GLOBAL_CONFIG_NAME: str = "streamctl.yml"
    """Global settings file name inside DATA_DIR"""

    HOST_CONFIG_TEMPLATE: str = "hosts/{address}.yml"
    """Host override file, relative to DATA_DIR, keyed by resolved address"""

    KEY_DIR_NAME: str = "key"
    """Key store directory name inside DATA_DIR"""

    # =========================================================================
    # Protocol Constants
    # =========================================================================

    MAX_GAMEPADS: int = 4
    """Number of controller slots a host can be told about

    The gamepad-presence mask carries one bit per slot.
    """

    PIN_LENGTH: int = 4
    """Number of decimal digits in a pairing PIN"""

    DEFAULT_PACKET_SIZE: int = 1024
    """Maximum video packet size in bytes when none is configured"""

    # =========================================================================
    # Timing Constants
    # =========================================================================

    DISCOVERY_TIMEOUT_SEC: float = 5.0
    """How long host discovery waits for an mDNS answer (seconds)

    Discovery is a single attempt. When it expires startup is aborted.
    """

    DISPATCH_POLL_INTERVAL: float = 0.016
    """Sleep between command polls when no command is pending (seconds)"""

    # =========================================================================
    # Derived Paths
    # =========================================================================

    def dataDir_get(self) -> Path:
        """
        Get the data directory

        Returns:
            Expanded data directory path.
        """
        return Path(self.DATA_DIR).expanduser()

    def globalConfigPath_get(self) -> Path:
        """Return default global config file path"""
        return self.dataDir_get() / self.GLOBAL_CONFIG_NAME

    def hostConfigTemplate_get(self) -> str:
        """Return default host override path template"""
        return str(self.dataDir_get() / self.HOST_CONFIG_TEMPLATE)

    def keyDir_get(self) -> Path:
        """Return default key store directory"""
        return self.dataDir_get() / self.KEY_DIR_NAME


# Global singleton instance
settings = Settings()
"""Global settings singleton instance

Import this anywhere in the application:
    from streamctl.common.settings import settings
"""
