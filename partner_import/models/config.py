"""Configuration management for the partner feed import."""

import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from partner_import.models.data_models import Partner


DEFAULT_REGION_GROUPS = [
    ["RU-MOS", "RU-MOW"],
    ["RU-LEN", "RU-SPE"],
]


class PartnerConfig(BaseModel):
    """Configuration for a single partner feed."""
    id: str = Field(description="Host identifier of the partner record")
    name: str = Field(description="Partner display name, used in store titles")
    unique_id: Optional[str] = Field(default=None, description="Prefix for derived store/stock/SKU ids")
    import_url: str = Field(description="Full URL of the partner XML feed")
    published: bool = Field(default=True, description="Unpublished partners are deactivated, not imported")

    @field_validator('import_url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError(f"URL must start with http:// or https://, got: {v}")
        return v

    def to_partner(self) -> Partner:
        return Partner(
            id=self.id,
            name=self.name,
            unique_id=self.unique_id,
            import_url=self.import_url,
            published=self.published,
        )


class StoreDefaults(BaseModel):
    """Values applied to stores created by the import."""
    store_type: str = Field(default="online")
    country_code: str = Field(default="RU")
    timezone: str = Field(default="Europe/Moscow")


class ImportConfig(BaseModel):
    """Main import configuration."""

    # Retry configuration
    max_retries: int = Field(default=3, description="Retries after the first feed request")
    retry_base_delay: float = Field(default=0.5, description="Base delay for exponential backoff")
    retry_max_delay: float = Field(default=4.0, description="Maximum retry delay")
    retry_jitter_max: float = Field(default=0.5, description="Maximum jitter for retry delay")
    retryable_status_codes: List[int] = Field(
        default=[429, 502, 503, 504],
        description="HTTP status codes that trigger retries"
    )

    # Timeout configuration
    connect_timeout: float = Field(default=3.0, description="HTTP connect timeout in seconds")
    read_timeout: float = Field(default=30.0, description="HTTP read timeout in seconds")
    total_timeout: float = Field(default=600.0, description="Maximum duration of one partner import")

    # Reconciliation
    worker_pool_size: int = Field(default=1, description="Regions reconciled concurrently")
    currency: str = Field(default="RUB", description="Currency of imported prices")
    store_defaults: StoreDefaults = Field(default_factory=StoreDefaults)
    region_groups: List[List[str]] = Field(
        default=DEFAULT_REGION_GROUPS,
        description="Region codes treated as one logical region"
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")

    # Storage and output
    catalog_path: str = Field(default="data/catalog.json", description="In-memory catalog snapshot")
    output_directory: str = Field(default="out", description="Directory for statistics reports")

    partners: List[PartnerConfig] = Field(default=[], description="Partners to import")

    @field_validator('worker_pool_size')
    @classmethod
    def validate_worker_pool(cls, v: int) -> int:
        """Validate worker pool size is positive."""
        if v <= 0:
            raise ValueError(f"worker_pool_size must be positive, got: {v}")
        return v

    @field_validator('total_timeout')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError(f"total_timeout must be positive, got: {v}")
        return v

    @field_validator('max_retries')
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_retries must not be negative, got: {v}")
        return v

    @field_validator('region_groups')
    @classmethod
    def validate_region_groups(cls, v: List[List[str]]) -> List[List[str]]:
        """A region code may belong to one group only."""
        seen = set()
        for group in v:
            for code in group:
                if code in seen:
                    raise ValueError(f"region code {code} appears in more than one group")
                seen.add(code)
        return v

    @property
    def output_path(self) -> Path:
        return Path(self.output_directory)

    def get_partner(self, partner_id: str) -> PartnerConfig:
        for partner in self.partners:
            if partner.id == partner_id:
                return partner
        raise KeyError(f"Unknown partner: {partner_id}")

    # Environment variable overrides
    @classmethod
    def from_env(cls) -> "ImportConfig":
        """Create configuration with environment variable overrides."""
        config = cls()

        env_mappings = {
            "PARTNER_IMPORT_TIMEOUT": "total_timeout",
            "PARTNER_IMPORT_WORKER_POOL_SIZE": "worker_pool_size",
            "PARTNER_IMPORT_LOG_LEVEL": "log_level",
            "PARTNER_IMPORT_CONNECT_TIMEOUT": "connect_timeout",
            "PARTNER_IMPORT_READ_TIMEOUT": "read_timeout",
            "PARTNER_IMPORT_MAX_RETRIES": "max_retries",
            "PARTNER_IMPORT_CATALOG_PATH": "catalog_path",
            "PARTNER_IMPORT_OUTPUT_DIR": "output_directory",
        }

        for env_var, field_name in env_mappings.items():
            if env_var in os.environ:
                value = os.environ[env_var]
                field_info = cls.model_fields[field_name]
                if field_info.annotation == int:
                    setattr(config, field_name, int(value))
                elif field_info.annotation == float:
                    setattr(config, field_name, float(value))
                else:
                    setattr(config, field_name, value)

        return config


class ConfigManager:
    """Manages configuration loading with override precedence."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or Path("config/config.yaml")
        self._config: Optional[ImportConfig] = None

    def load_config(self, cli_overrides: Optional[Dict] = None) -> ImportConfig:
        """
        Load configuration with override precedence: CLI > ENV > YAML.

        Args:
            cli_overrides: Optional dictionary of CLI flag overrides

        Returns:
            Fully merged ImportConfig instance

        Raises:
            pydantic.ValidationError: If configuration validation fails
        """
        config_dict = {}

        if self.config_file.exists():
            with open(self.config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config_dict.update(yaml_config)

        base_config = ImportConfig(**config_dict)

        env_config = ImportConfig.from_env()

        merged_dict = base_config.model_dump()
        env_dict = env_config.model_dump()

        # Only override with env values that differ from defaults
        default_dict = ImportConfig().model_dump()
        for key, value in env_dict.items():
            if value != default_dict[key]:
                merged_dict[key] = value

        if cli_overrides:
            cli_overrides = {k: v for k, v in cli_overrides.items() if v is not None}
            merged_dict.update(cli_overrides)

        self._config = ImportConfig(**merged_dict)
        return self._config

    @property
    def config(self) -> ImportConfig:
        """Get the loaded configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config
