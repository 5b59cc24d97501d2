"""
Configuration management for Socket Smith.

Provides centralized configuration loading from environment variables
with sensible defaults for all settings.
"""

import os
from pathlib import Path
from typing import List, Optional
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUE_VALUES = ('true', '1', 'yes')


def _split_list(raw: str) -> List[str]:
    """Split a comma separated env value, dropping blanks."""
    return [part.strip() for part in raw.split(',') if part.strip()]


def _parse_int(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


class Config:
    """
    Centralized configuration management for Socket Smith.

    Loads configuration from environment variables with fallback defaults.
    Supports .env files via python-dotenv.

    The socket rules read here are not consulted directly by the engine;
    build a SocketSettings from this object and pass it in.

    Example:
        config = Config()
        print(config.max_sockets)  # 6
        print(config.port)         # 5000
    """

    def __init__(self, env_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            env_file: Optional path to .env file. If None, auto-discovers .env
                     in project root or skips if not found.
        """
        if env_file:
            load_dotenv(env_file)
            logger.info(f"Loaded configuration from {env_file}")
        else:
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / '.env'
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded configuration from {env_path}")
            else:
                logger.debug("No .env file found, using environment variables and defaults")

        # === Server Settings ===
        self.host = os.getenv('HOST', '127.0.0.1')
        self.port = int(os.getenv('PORT', '5000'))
        self.debug = os.getenv('DEBUG', 'False').lower() in _TRUE_VALUES
        self.secret_key = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
        # Required to sign in to the web API as ASSISTANT or GAMEMASTER
        self.gm_key = os.getenv('GM_KEY') or None

        # === Logging ===
        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.log_file = os.getenv('LOG_FILE', None)

        # === Storage ===
        self.worlds_directory = os.getenv('WORLDS_DIR', 'worlds')

        # === Sockets ===
        self.loot_type = os.getenv('SOCKETS_LOOT_TYPE', 'loot').strip()
        self.gem_subtypes = _split_list(os.getenv('SOCKETS_GEM_SUBTYPES', 'gem'))
        self.edit_socket_role = os.getenv('SOCKETS_EDIT_ROLE', 'GAMEMASTER').strip()
        # Unparseable values fall back to the default; validate() reports them
        self.max_sockets_raw = os.getenv('SOCKETS_MAX', '6').strip()
        max_sockets = _parse_int(self.max_sockets_raw)
        self.max_sockets = 6 if max_sockets is None else max_sockets
        self.delete_gem_on_removal = (
            os.getenv('SOCKETS_DELETE_GEM_ON_REMOVAL', 'False').lower() in _TRUE_VALUES
        )
        self.socketable_types = _split_list(
            os.getenv('SOCKETS_SOCKETABLE_TYPES', 'weapon,equipment')
        )
        self.slot_img = os.getenv('SOCKETS_SLOT_IMG', 'assets/imgs/socket-slot.webp')

    def validate(self) -> bool:
        """
        Validate configuration and log warnings for suspicious values.

        Returns:
            True if config is valid, False if critical values are unusable
        """
        from socketsmith.core.models import UserRole

        valid = True

        if not self.gem_subtypes:
            logger.warning("SOCKETS_GEM_SUBTYPES is empty; falling back to 'gem'")

        if not self.loot_type:
            logger.error("SOCKETS_LOOT_TYPE must not be empty")
            valid = False

        try:
            UserRole.parse(self.edit_socket_role)
        except ValueError:
            logger.error(
                f"Invalid SOCKETS_EDIT_ROLE: {self.edit_socket_role}. "
                f"Must be one of {[role.name for role in UserRole]} or 0-4; "
                f"only gamemasters may edit sockets"
            )
            valid = False

        if _parse_int(self.max_sockets_raw) is None:
            logger.error(
                f"Invalid SOCKETS_MAX: {self.max_sockets_raw}. "
                f"Must be an integer; using {self.max_sockets}"
            )
            valid = False

        if self.max_sockets < 0:
            logger.debug("SOCKETS_MAX is negative; sockets per item are unlimited")

        if not self.debug and self.secret_key == 'dev-secret-key-change-in-production':
            logger.warning("Using default SECRET_KEY in production mode! Set SECRET_KEY environment variable.")

        if not self.gm_key:
            logger.debug("GM_KEY is not set; the web API only accepts roles up to TRUSTED")

        return valid

    def __repr__(self) -> str:
        """Safe representation hiding sensitive values."""
        return (
            f"Config("
            f"loot_type={self.loot_type}, "
            f"gem_subtypes={self.gem_subtypes}, "
            f"max_sockets={self.max_sockets}, "
            f"host={self.host}, "
            f"port={self.port}, "
            f"debug={self.debug})"
        )


# Global config instance (lazy-loaded), used by the CLI and web entry points only
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global config instance.

    Returns:
        Global Config instance
    """
    global _config
    if _config is None:
        _config = Config()
        _config.validate()
    return _config


__all__ = ['Config', 'get_config']
