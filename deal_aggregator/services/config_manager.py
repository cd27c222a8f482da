"""
Configuration management system for the deal aggregation pipeline.
"""

import os
import re
import yaml
import json
from typing import Dict, Any, List, Optional

from ..models.config import (
    Configuration,
    FeaturedConfig,
    HealthThresholds,
    HistoryConfig,
    SourceConfig,
    StorageConfig,
    StoreConfig,
    ValidityRules,
)

# ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-(.*))?\}$", re.DOTALL)


class ConfigurationManager:
    """Manages loading and validation of the pipeline configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, uses default paths.
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Configuration] = None
        self._last_modified: Optional[float] = None

    def _find_config_file(self) -> str:
        """Find the configuration file in standard locations."""
        possible_paths = [
            "config/config.yaml",
            "config/config.yml",
            "config/config.json",
            "config.yaml",
            "config.yml",
            "config.json"
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        if os.path.exists("config/config.example.yaml"):
            raise ValueError(
                "No configuration file found. Please copy 'config/config.example.yaml' "
                "to 'config/config.yaml' and list your collectors under 'sources'."
            )

        raise ValueError(
            "No configuration file found. Please create a configuration file "
            "at one of these locations: " + ", ".join(possible_paths)
        )

    def _read_raw(self, config_path: str) -> Any:
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.endswith('.json'):
                return json.load(f)
            return yaml.safe_load(f)

    def load_config(self) -> Configuration:
        """
        Load configuration from file.

        Returns:
            Configuration object with validated settings.

        Raises:
            ValueError: If configuration is invalid or file cannot be read.
            FileNotFoundError: If configuration file doesn't exist.
        """
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            raw_config = self._read_raw(self.config_path)

            # Expand environment variables
            raw_config = self._expand_env_vars(raw_config)

            config = self._parse_config(raw_config)
            config.validate()

            self._config = config
            self._last_modified = os.path.getmtime(self.config_path)

            return config

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")
        except Exception as e:
            raise ValueError(f"Error loading configuration: {e}")

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR} and ${VAR:-default} values."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            match = ENV_VAR_PATTERN.match(obj)
            if match:
                var_name, default = match.group(1), match.group(2)
                env_value = os.getenv(var_name)
                if env_value:
                    return env_value
                if default is not None:
                    return default
                if env_value is None:
                    raise ValueError(f"Environment variable '{var_name}' not found")
                return env_value
            return obj
        else:
            return obj

    def _parse_sources(self, raw_sources: Any) -> List[SourceConfig]:
        if not isinstance(raw_sources, list):
            raise ValueError("'sources' must be a list")

        sources = []
        for item in raw_sources:
            if not isinstance(item, dict):
                raise ValueError(f"Invalid source entry: {item!r}")
            sources.append(
                SourceConfig(
                    name=item["name"],
                    artifact_url=item.get("artifact_url") or None,
                    endpoint_url=item.get("endpoint_url") or None,
                    store=item.get("store") or None,
                    payload_shape=item.get("payload_shape", "auto"),
                    timeout=item.get("timeout", 30)
                )
            )
        return sources

    def _parse_config(self, raw_config: Dict[str, Any]) -> Configuration:
        """Parse raw configuration dictionary into Configuration object."""
        if not isinstance(raw_config, dict):
            raise ValueError("Configuration root must be a mapping")

        try:
            sources = self._parse_sources(raw_config.get("sources", []))

            stores = [
                StoreConfig(
                    name=item["name"],
                    base_url=item["base_url"],
                    aliases=item.get("aliases", [])
                )
                for item in raw_config.get("stores", []) or []
            ]

            validity_data = raw_config.get("validity", {}) or {}
            defaults = ValidityRules()
            validity = ValidityRules(
                min_sale_price=validity_data.get("min_sale_price", defaults.min_sale_price),
                max_sale_price=validity_data.get("max_sale_price", defaults.max_sale_price),
                min_discount_percent=validity_data.get(
                    "min_discount_percent", defaults.min_discount_percent
                ),
                max_discount_percent=validity_data.get(
                    "max_discount_percent", defaults.max_discount_percent
                ),
                excluded_terms=validity_data.get("excluded_terms", defaults.excluded_terms)
            )

            health = HealthThresholds(**(raw_config.get("health", {}) or {}))
            featured = FeaturedConfig(**(raw_config.get("featured", {}) or {}))
            history = HistoryConfig(**(raw_config.get("history", {}) or {}))
            storage = StorageConfig(**(raw_config.get("storage", {}) or {}))

            system_data = raw_config.get("system", {}) or {}

            return Configuration(
                sources=sources,
                stores=stores,
                validity=validity,
                health=health,
                featured=featured,
                history=history,
                storage=storage,
                fallback_base_url=system_data.get("fallback_base_url", "https://example.com"),
                brands_top_n=system_data.get("brands_top_n", 25),
                user_agent=system_data.get(
                    "user_agent", "Deal-Aggregator/1.0 (Catalog Merge)"
                )
            )

        except KeyError as e:
            raise ValueError(f"Missing required configuration key: {e}")
        except TypeError as e:
            raise ValueError(f"Unknown configuration key: {e}")

    def get_config(self) -> Configuration:
        """
        Get current configuration, loading if necessary.

        Returns:
            Current configuration object.
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def validate_config_file(self, config_path: str) -> bool:
        """
        Validate a configuration file without loading it.

        Args:
            config_path: Path to configuration file to validate.

        Returns:
            True if configuration is valid.

        Raises:
            ValueError: If configuration is invalid with detailed error message.
        """
        if not os.path.exists(config_path):
            raise ValueError(f"Configuration file not found: {config_path}")

        try:
            raw_config = self._read_raw(config_path)

            # Missing environment variables do not fail validation
            try:
                raw_config = self._expand_env_vars(raw_config)
            except ValueError:
                pass

            config = self._parse_config(raw_config)
            config.validate()

            return True

        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}")

    @staticmethod
    def get_config_template() -> Dict[str, Any]:
        """
        Get a template configuration dictionary.

        Returns:
            Dictionary with example configuration structure.
        """
        return {
            "sources": [
                {
                    "name": "holabird-mens-road",
                    "artifact_url": "${HOLABIRD_MENS_ROAD_BLOB_URL}",
                    "store": "Holabird Sports",
                    "payload_shape": "deals"
                },
                {
                    "name": "brooks-sale",
                    "endpoint_url": "https://collectors.example.com/api/scrapers/brooks-sale",
                    "store": "Brooks Running",
                    "payload_shape": "auto",
                    "timeout": 60
                }
            ],
            "stores": [
                {
                    "name": "Running United",
                    "base_url": "https://rununited.com",
                    "aliases": ["rununited"]
                }
            ],
            "validity": {
                "min_sale_price": 10,
                "max_sale_price": 1000,
                "min_discount_percent": 5,
                "max_discount_percent": 90
            },
            "health": {
                "warning_unknown_brand_pct": 20,
                "critical_unknown_brand_pct": 50,
                "warning_missing_image_pct": 30,
                "warning_missing_url_pct": 10,
                "warning_missing_model_pct": 30,
                "min_deal_count": 5
            },
            "featured": {
                "size": 12,
                "strong_pool_size": 20,
                "picks_per_group": 4
            },
            "history": {
                "max_days": 30,
                "prior_key": "scraper-history.json"
            },
            "storage": {
                "backend": "file",
                "directory": "artifacts"
            },
            "system": {
                "fallback_base_url": "https://example.com",
                "brands_top_n": 25
            }
        }
