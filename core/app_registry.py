"""
App registry for the review listings this service knows how to scrape.
Provides a centralized way to register, discover, and build URLs for tracked apps.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    """Configuration for a single app listing."""

    name: str
    slug: str
    description: str = ""
    default_total_reviews: int = 0
    default_average_rating: float = 0.0
    is_default: bool = False

    def listing_url(self, page: int, base_url: Optional[str] = None) -> str:
        """URL of one page of the newest-first review listing."""
        base = (base_url or settings.LISTING_BASE_URL).rstrip("/")
        return f"{base}/{self.slug}/reviews?sort_by=newest&page={page}"

    def metadata_url(self, base_url: Optional[str] = None) -> str:
        """URL of the listing landing page carrying the aggregate counters."""
        base = (base_url or settings.LISTING_BASE_URL).rstrip("/")
        return f"{base}/{self.slug}/reviews"


@dataclass
class AppRegistry:
    """Registry of scrapeable apps, keyed case-insensitively by display name."""

    apps: Dict[str, AppConfig] = field(default_factory=dict)
    _default_app: Optional[str] = None

    def register(self, config: AppConfig) -> None:
        """Register an app configuration."""
        self.apps[config.name.lower()] = config
        if config.is_default:
            self._default_app = config.name.lower()
        logger.debug("Registered app: %s (slug=%s)", config.name, config.slug)

    def get(self, name: str) -> Optional[AppConfig]:
        """Get an app configuration by display name."""
        return self.apps.get(name.strip().lower())

    def get_default(self) -> Optional[AppConfig]:
        """Get the default app configuration."""
        if self._default_app:
            return self.apps.get(self._default_app)
        # Fallback to first registered app
        if self.apps:
            return next(iter(self.apps.values()))
        return None

    def list_apps(self) -> List[str]:
        """List all registered app display names."""
        return [config.name for config in self.apps.values()]

    @property
    def default_name(self) -> Optional[str]:
        default = self.get_default()
        return default.name if default else None


def load_registry_from_yaml(path: Path | str | None = None) -> AppRegistry:
    """
    Load the app registry from a YAML configuration file.

    Args:
        path: Path to the YAML file. Defaults to settings.APPS_CONFIG_PATH.

    Returns:
        Populated AppRegistry instance (empty if the file is missing or invalid).

    Example YAML format:
        apps:
          Vidify:
            slug: vidify
            description: AI product video generator
            default_total_reviews: 8
            default_average_rating: 5.0
            is_default: true
    """
    registry = AppRegistry()
    config_path = Path(path) if path else settings.APPS_CONFIG_PATH

    if not config_path.exists():
        logger.warning("App registry file not found at %s", config_path)
        return registry

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)

        if not data or not isinstance(data.get("apps"), dict):
            logger.warning("No apps defined in %s", config_path)
            return registry

        for name, config_data in data["apps"].items():
            if not isinstance(config_data, dict):
                logger.warning("Invalid config for app %s, skipping", name)
                continue

            slug = config_data.get("slug")
            if not slug:
                logger.warning("App %s has no slug, skipping", name)
                continue

            try:
                config = AppConfig(
                    name=str(name),
                    slug=str(slug),
                    description=config_data.get("description", ""),
                    default_total_reviews=int(config_data.get("default_total_reviews", 0)),
                    default_average_rating=float(config_data.get("default_average_rating", 0.0)),
                    is_default=bool(config_data.get("is_default", False)),
                )
            except (TypeError, ValueError) as exc:
                logger.warning("Invalid defaults for app %s, skipping: %s", name, exc)
                continue
            registry.register(config)

        logger.info(
            "Loaded %d apps from registry: %s",
            len(registry.apps),
            registry.list_apps(),
        )

    except yaml.YAMLError as exc:
        logger.error("Failed to parse app registry YAML: %s", exc)
    except OSError as exc:
        logger.error("Failed to read app registry file: %s", exc)

    return registry


def create_default_registry() -> AppRegistry:
    """
    Create a registry with the built-in app.
    Used as fallback when no YAML config exists.
    """
    registry = AppRegistry()
    registry.register(
        AppConfig(
            name="Vidify",
            slug="vidify",
            description="AI product video generator",
            default_total_reviews=8,
            default_average_rating=5.0,
            is_default=True,
        )
    )
    return registry


# Global registry instance - lazily initialized
_registry_instance: Optional[AppRegistry] = None


def get_app_registry() -> AppRegistry:
    """
    Get the global app registry instance.
    Loads from YAML if available, otherwise uses defaults.
    """
    global _registry_instance

    if _registry_instance is None:
        _registry_instance = load_registry_from_yaml()

        if not _registry_instance.apps:
            logger.info("No YAML config found, using default app registry")
            _registry_instance = create_default_registry()

    return _registry_instance


def reset_app_registry() -> None:
    """Drop the cached global registry. Useful for testing."""
    global _registry_instance
    _registry_instance = None
