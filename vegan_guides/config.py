"""
Centralized configuration management with validation and type conversion.

All environment lookups go through the ``Config`` helpers so values are
typed once and validated at startup instead of being read ad hoc with
``os.getenv`` throughout the providers and routes.
"""

import os
import logging
from typing import Optional, Dict, Any, List, Tuple
from dataclasses import dataclass, field
from enum import Enum

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class Environment(Enum):
    """Application environment types."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class TimeoutConfig:
    """Timeout configuration for different operations."""
    places: float = 10.0
    photo: float = 15.0
    ai: float = 60.0
    api: float = 30.0

    def get(self, operation: str) -> float:
        """Get timeout for a specific operation.

        Args:
            operation: Operation name

        Returns:
            Timeout value in seconds
        """
        return getattr(self, operation, self.api)


@dataclass
class CacheConfig:
    """Cache configuration."""
    ttl_search: int = 1800  # 30 minutes
    disabled: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5


@dataclass
class DiscoveryConfig:
    """Viewport-driven discovery tuning."""
    grid_cells_per_degree: int = 20
    debounce_seconds: float = 0.6
    min_zoom: int = 11
    # (minimum zoom, radius in meters), finest first
    radius_tiers: List[Tuple[int, int]] = field(default_factory=lambda: [(15, 1000), (13, 2500)])
    default_radius: int = 5000
    photo_max_width: int = 600


@dataclass
class ChatConfig:
    """Assistant model settings."""
    model: str = "llama-3.1-8b-instant"
    max_tokens: int = 1024
    temperature: float = 0.4


class Config:
    """Centralized configuration with validation and type conversion."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.environment = self._get_environment()
        self.debug = self._get_bool("DEBUG", False)
        self.port = self._get_int("PORT", 3001)

        # API Keys
        self.google_api_key = self._get_optional("GOOGLE_API_KEY")
        self.groq_api_key = self._get_optional("GROQ_API_KEY")

        # URLs
        self.redis_url: str = self._get_str("REDIS_URL", "")
        self.cors_origins = self._get_list("CORS_ORIGINS", ["http://localhost:5173"])

        self.timeout_config = TimeoutConfig(
            places=self._get_float("TIMEOUT_PLACES", 10.0),
            photo=self._get_float("TIMEOUT_PHOTO", 15.0),
            ai=self._get_float("TIMEOUT_AI", 60.0),
            api=self._get_float("TIMEOUT_API", 30.0),
        )

        self.cache_config = CacheConfig(
            ttl_search=self._get_int("CACHE_TTL_SEARCH", 1800),
            disabled=self._get_bool("DISABLE_SEARCH_CACHE", False),
        )

        self.logging_config = LoggingConfig(
            level=self._get_str("LOG_LEVEL", "INFO"),
            format=self._get_str("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            file=self._get_optional("LOG_FILE"),
            max_bytes=self._get_int("LOG_MAX_BYTES", 10485760),
            backup_count=self._get_int("LOG_BACKUP_COUNT", 5),
        )

        self.discovery_config = DiscoveryConfig(
            grid_cells_per_degree=self._get_int("GRID_CELLS_PER_DEGREE", 20),
            debounce_seconds=self._get_float("DEBOUNCE_SECONDS", 0.6),
            min_zoom=self._get_int("NEARBY_MIN_ZOOM", 11),
            radius_tiers=self._get_radius_tiers("NEARBY_RADIUS_TIERS", [(15, 1000), (13, 2500)]),
            default_radius=self._get_int("NEARBY_DEFAULT_RADIUS", 5000),
            photo_max_width=self._get_int("PHOTO_MAX_WIDTH", 600),
        )

        self.chat_config = ChatConfig(
            model=self._get_str("GROQ_MODEL", "llama-3.1-8b-instant"),
            max_tokens=self._get_int("CHAT_MAX_TOKENS", 1024),
            temperature=self._get_float("CHAT_TEMPERATURE", 0.4),
        )

        self._validate()

    def _get_environment(self) -> Environment:
        """Get application environment."""
        env_str = self._get_str("ENVIRONMENT", "development").lower()
        try:
            return Environment(env_str)
        except ValueError:
            raise ValueError(f"Invalid environment: {env_str}")

    def _get_optional(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get optional environment variable.

        Args:
            key: Environment variable name
            default: Default value if not found

        Returns:
            Environment variable value or default
        """
        return os.getenv(key, default)

    def _get_str(self, key: str, default: str) -> str:
        return os.getenv(key, default)

    def _get_int(self, key: str, default: int) -> int:
        """Get integer environment variable with default.

        Raises:
            ValueError: If value cannot be converted to int
        """
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"Invalid integer for {key}: {value}")

    def _get_float(self, key: str, default: float) -> float:
        """Get float environment variable with default.

        Raises:
            ValueError: If value cannot be converted to float
        """
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"Invalid float for {key}: {value}")

    def _get_bool(self, key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ('1', 'true', 'yes', 'on')

    def _get_list(self, key: str, default: list) -> list:
        value = os.getenv(key)
        if value is None:
            return default
        return [item.strip() for item in value.split(',') if item.strip()]

    def _get_radius_tiers(self, key: str, default: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
        """Parse ``zoom:radius`` pairs, e.g. ``15:1000,13:2500``.

        Raises:
            ValueError: If a pair is malformed or a radius is not positive
        """
        value = os.getenv(key)
        if value is None or not value.strip():
            return default
        tiers = []
        for item in value.split(','):
            item = item.strip()
            if not item:
                continue
            try:
                zoom, radius = (int(part) for part in item.split(':'))
            except ValueError:
                raise ValueError(f"Invalid radius tier for {key}: {item}")
            if radius <= 0:
                raise ValueError(f"Invalid radius tier for {key}: {item}")
            tiers.append((zoom, radius))
        return sorted(tiers, reverse=True)

    def _validate(self):
        """Validate configuration values."""
        for attr_name in ['places', 'photo', 'ai', 'api']:
            timeout = getattr(self.timeout_config, attr_name)
            if timeout <= 0:
                raise ValueError(f"Invalid timeout for {attr_name}: {timeout}")

        if self.redis_url and not self.redis_url.startswith(('redis://', 'rediss://')):
            raise ValueError(f"Invalid Redis URL: {self.redis_url}")

        if self.discovery_config.grid_cells_per_degree <= 0:
            raise ValueError("GRID_CELLS_PER_DEGREE must be positive")

        if self.discovery_config.debounce_seconds < 0:
            raise ValueError("DEBOUNCE_SECONDS must not be negative")

        # Missing keys only disable features
        if not self.google_api_key:
            logger.warning("GOOGLE_API_KEY not set - restaurant search will fail")

        if not self.groq_api_key:
            logger.warning("GROQ_API_KEY not set - chat assistant will fail")

    def get_timeout(self, operation: str) -> float:
        return self.timeout_config.get(operation)

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == Environment.TESTING

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for debugging.

        Key values are never included, only whether they are present.
        """
        return {
            'environment': self.environment.value,
            'debug': self.debug,
            'redis': bool(self.redis_url),
            'google_api_key': bool(self.google_api_key),
            'groq_api_key': bool(self.groq_api_key),
            'timeout_config': {
                'places': self.timeout_config.places,
                'photo': self.timeout_config.photo,
                'ai': self.timeout_config.ai,
                'api': self.timeout_config.api,
            },
            'cache_config': {
                'ttl_search': self.cache_config.ttl_search,
                'disabled': self.cache_config.disabled,
            },
            'discovery_config': {
                'grid_cells_per_degree': self.discovery_config.grid_cells_per_degree,
                'debounce_seconds': self.discovery_config.debounce_seconds,
                'min_zoom': self.discovery_config.min_zoom,
            },
        }


# Global configuration instance
config = Config()


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Configuration instance
    """
    return config


def reload_config() -> Config:
    """Re-read the environment into a fresh global configuration."""
    global config
    config = Config()
    return config


def setup_logging():
    """Set up logging based on configuration."""
    from logging.handlers import RotatingFileHandler

    config = get_config()

    logging.basicConfig(
        level=getattr(logging, config.logging_config.level.upper()),
        format=config.logging_config.format,
    )

    if config.logging_config.file:
        file_handler = RotatingFileHandler(
            config.logging_config.file,
            maxBytes=config.logging_config.max_bytes,
            backupCount=config.logging_config.backup_count,
        )
        file_handler.setFormatter(logging.Formatter(config.logging_config.format))
        logging.getLogger().addHandler(file_handler)

    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    if config.is_development():
        logging.getLogger().setLevel(logging.DEBUG)
    elif config.is_production():
        logging.getLogger().setLevel(logging.INFO)
