"""
Configuration management for the visitor analytics service.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool
    admin_user_ids: list[str]


@dataclass
class AnalyticsConfig:
    """Session reconstruction and dashboard settings."""
    session_timeout_minutes: int
    live_window_minutes: int
    default_time_range: str
    top_pages_limit: int
    top_countries_limit: int
    top_devices_limit: int
    top_browsers_limit: int


@dataclass
class GeoConfig:
    """Location resolution settings."""
    enabled: bool
    default_country: str
    default_country_code: str
    default_city: str


@dataclass
class PathsConfig:
    """Path configuration settings."""
    data_dir: str


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "analytics_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        # Start with default config
        self._config = self._get_default_config()

        # Load base config from file
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        # Override with environment variables
        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app": {
                "host": "0.0.0.0",
                "port": 22581,
                "debug": False,
                "admin_user_ids": []
            },
            "analytics": {
                "session_timeout_minutes": 30,
                "live_window_minutes": 5,
                "default_time_range": "30d",
                "top_pages_limit": 20,
                "top_countries_limit": 10,
                "top_devices_limit": 10,
                "top_browsers_limit": 10
            },
            "geo": {
                "enabled": True,
                "default_country": "Ireland",
                "default_country_code": "IE",
                "default_city": "Dublin"
            },
            "paths": {
                "data_dir": "analytics_data"
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config:
                if isinstance(values, dict):
                    self._config[section].update(values)
                else:
                    self._config[section] = values
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # App settings
        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

        if os.getenv("ADMIN_USER_IDS"):
            self._config["app"]["admin_user_ids"] = [
                uid.strip() for uid in os.getenv("ADMIN_USER_IDS").split(",") if uid.strip()
            ]

        # Analytics settings
        if os.getenv("SESSION_TIMEOUT_MINUTES"):
            self._config["analytics"]["session_timeout_minutes"] = int(os.getenv("SESSION_TIMEOUT_MINUTES"))

        if os.getenv("LIVE_WINDOW_MINUTES"):
            self._config["analytics"]["live_window_minutes"] = int(os.getenv("LIVE_WINDOW_MINUTES"))

        # Geo settings
        if os.getenv("GEO_ENABLED"):
            self._config["geo"]["enabled"] = os.getenv("GEO_ENABLED").lower() == "true"

        if os.getenv("GEO_DEFAULT_COUNTRY"):
            self._config["geo"]["default_country"] = os.getenv("GEO_DEFAULT_COUNTRY")

        if os.getenv("GEO_DEFAULT_COUNTRY_CODE"):
            self._config["geo"]["default_country_code"] = os.getenv("GEO_DEFAULT_COUNTRY_CODE")

        if os.getenv("GEO_DEFAULT_CITY"):
            self._config["geo"]["default_city"] = os.getenv("GEO_DEFAULT_CITY")

        # Paths
        if os.getenv("ANALYTICS_DATA_DIR"):
            self._config["paths"]["data_dir"] = os.getenv("ANALYTICS_DATA_DIR")

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"],
            admin_user_ids=app_config["admin_user_ids"]
        )

    def get_analytics_config(self) -> AnalyticsConfig:
        """Get analytics configuration."""
        analytics_config = self._config["analytics"]
        return AnalyticsConfig(
            session_timeout_minutes=analytics_config["session_timeout_minutes"],
            live_window_minutes=analytics_config["live_window_minutes"],
            default_time_range=analytics_config["default_time_range"],
            top_pages_limit=analytics_config["top_pages_limit"],
            top_countries_limit=analytics_config["top_countries_limit"],
            top_devices_limit=analytics_config["top_devices_limit"],
            top_browsers_limit=analytics_config["top_browsers_limit"]
        )

    def get_geo_config(self) -> GeoConfig:
        """Get geo configuration."""
        geo_config = self._config["geo"]
        return GeoConfig(
            enabled=geo_config["enabled"],
            default_country=geo_config["default_country"],
            default_country_code=geo_config["default_country_code"],
            default_city=geo_config["default_city"]
        )

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        paths_config = self._config["paths"]
        return PathsConfig(
            data_dir=paths_config["data_dir"]
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def get_analytics_config() -> AnalyticsConfig:
    """Get analytics configuration."""
    return config_manager.get_analytics_config()


def get_geo_config() -> GeoConfig:
    """Get geo configuration."""
    return config_manager.get_geo_config()


def get_paths_config() -> PathsConfig:
    """Get paths configuration."""
    return config_manager.get_paths_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
