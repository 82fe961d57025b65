"""Configuration management for the vendor feed pipeline."""

import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from vendor_feeds.models.data_models import (
    AuthMode,
    HandlerName,
    HttpMethod,
    PaginationStrategy,
    TransformName,
)
from vendor_feeds.models.errors import ConfigError


class PaginationSpec(BaseModel):
    """How a vendor feed splits its result set across requests."""
    strategy: PaginationStrategy = Field(default=PaginationStrategy.NONE, description="Pagination strategy")
    page_size: Optional[int] = Field(default=None, description="Records requested per page")
    data_path: str = Field(default="", description="Dot-path to the record array in a response")
    total_path: Optional[str] = Field(default=None, description="Dot-path to the last page number")
    page_param: str = Field(default="page", description="Query parameter carrying the page number")
    size_param: str = Field(default="per_page", description="Query parameter carrying the page size")

    @field_validator('page_size')
    @classmethod
    def validate_page_size(cls, v: Optional[int]) -> Optional[int]:
        """Validate page size is positive."""
        if v is not None and v <= 0:
            raise ValueError(f"page_size must be positive, got: {v}")
        return v


class VendorConfig(BaseModel):
    """Declarative description of one vendor data source and its mapping."""

    name: str = Field(description="Vendor display name, stored on every record")
    source: str = Field(description="Feed URL, JSON data file or CSV file")

    # Request configuration
    auth_mode: AuthMode = Field(default=AuthMode.NONE, description="Authentication scheme")
    auth_token: str = Field(default="", description="Token, 'user:password' or API key")
    auth_header: str = Field(default="X-API-Key", description="Header used by custom_header auth")
    customer_id: Optional[str] = Field(default=None, description="Sent as CustId in POST bodies")
    http_method: HttpMethod = Field(default=HttpMethod.GET, description="Request method")
    request_body: Dict[str, Any] = Field(default_factory=dict, description="JSON body for POST feeds")
    extra_headers: Dict[str, str] = Field(default_factory=dict, description="Additional request headers")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    pagination: PaginationSpec = Field(default_factory=PaginationSpec)

    # Mapping configuration; field_mapping keeps its configured order
    field_mapping: Dict[str, str] = Field(default_factory=dict, description="Source path -> target field")
    transforms: Dict[str, str] = Field(default_factory=dict, description="Source path -> transform name")
    special_handlers: Dict[str, str] = Field(default_factory=dict, description="Source path -> handler name")
    identity_field: str = Field(description="Source path identifying a product within the vendor")
    taxonomy_mapping: Dict[str, str] = Field(default_factory=dict, description="Target field -> taxonomy")

    # Sink slots
    title_field: str = Field(default="title", description="Target field written as the record title")
    body_field: str = Field(default="description", description="Target field written as the record body")
    identity_attribute: str = Field(default="vendor_sku", description="Attribute holding the identity value")
    image_fields: List[str] = Field(default_factory=list, description="Target fields holding image references")

    @field_validator('name', 'source', 'identity_field')
    @classmethod
    def validate_required(cls, v: str) -> str:
        """Validate required fields are non-empty."""
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @property
    def is_remote(self) -> bool:
        """True when the source is an HTTP feed rather than a local file."""
        return self.source.startswith(('http://', 'https://'))

    @property
    def is_csv(self) -> bool:
        return not self.is_remote and self.source.lower().endswith('.csv')

    @property
    def identity_target(self) -> Optional[str]:
        """Target field the identity path is mapped to, if it is mapped."""
        return self.field_mapping.get(self.identity_field)

    def unknown_names(self) -> List[str]:
        """Transform and handler names that have no registered implementation."""
        known_transforms = {t.value for t in TransformName}
        known_handlers = {h.value for h in HandlerName}
        unknown = [
            f"transform '{name}' on '{path}'"
            for path, name in self.transforms.items()
            if name not in known_transforms
        ]
        unknown.extend(
            f"handler '{name}' on '{path}'"
            for path, name in self.special_handlers.items()
            if name not in known_handlers
        )
        return unknown


class ImporterConfig(BaseModel):
    """Main importer configuration."""

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")
    structured_logging: bool = Field(default=True, description="Emit JSON log lines")

    # Timeout configuration
    connect_timeout: float = Field(default=10.0, description="HTTP connect timeout in seconds")
    read_timeout: float = Field(default=120.0, description="HTTP read timeout in seconds")

    # File-system layout
    data_directory: str = Field(default="data", description="Directory for vendor data files")
    asset_root: str = Field(default="assets", description="Root directory of stored image assets")
    store_path: Optional[str] = Field(default=None, description="JSON snapshot of the record store")
    output_directory: str = Field(default="out", description="Output directory for results")
    output_filename: str = Field(default="import_result.json", description="Output JSON filename")

    # Reject unknown transform/handler names instead of passing values through
    strict_transforms: bool = Field(default=False, description="Fail on unknown transform names")

    vendors: Dict[str, VendorConfig] = Field(default_factory=dict, description="Vendor key -> config")

    @field_validator('connect_timeout', 'read_timeout')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError(f"timeout must be positive, got: {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @model_validator(mode='after')
    def validate_transform_names(self) -> "ImporterConfig":
        if self.strict_transforms:
            for key, vendor in self.vendors.items():
                unknown = vendor.unknown_names()
                if unknown:
                    raise ValueError(f"vendor '{key}' uses unknown {', '.join(unknown)}")
        return self

    @property
    def output_path(self) -> Path:
        """Get full output file path."""
        return Path(self.output_directory) / self.output_filename

    @classmethod
    def env_overrides(cls) -> Dict[str, Any]:
        """Collect configuration overrides from FEEDS_* environment variables."""
        env_mappings = {
            "FEEDS_LOG_LEVEL": "log_level",
            "FEEDS_CONNECT_TIMEOUT": "connect_timeout",
            "FEEDS_READ_TIMEOUT": "read_timeout",
            "FEEDS_DATA_DIR": "data_directory",
            "FEEDS_ASSET_ROOT": "asset_root",
            "FEEDS_STORE_PATH": "store_path",
            "FEEDS_OUTPUT_DIR": "output_directory",
            "FEEDS_STRICT_TRANSFORMS": "strict_transforms",
        }

        overrides: Dict[str, Any] = {}
        for env_var, field_name in env_mappings.items():
            if env_var in os.environ:
                # pydantic coerces the string to the field type on construction
                overrides[field_name] = os.environ[env_var]
        return overrides


class ConfigManager:
    """Manages configuration loading with override precedence."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else Path("config/vendors.yaml")
        self._config: Optional[ImporterConfig] = None

    def load_config(self, cli_overrides: Optional[Dict] = None) -> ImporterConfig:
        """
        Load configuration with override precedence: CLI > ENV > YAML.

        Args:
            cli_overrides: Optional dictionary of CLI flag overrides

        Returns:
            Fully merged ImporterConfig instance

        Raises:
            ConfigError: If the file cannot be parsed or validation fails
        """
        config_dict: Dict[str, Any] = {}

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    yaml_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_file}: {e}") from e
            if yaml_config:
                if not isinstance(yaml_config, dict):
                    raise ConfigError(f"{self.config_file} must contain a mapping")
                config_dict.update(yaml_config)

        config_dict.update(ImporterConfig.env_overrides())

        if cli_overrides:
            config_dict.update({k: v for k, v in cli_overrides.items() if v is not None})

        try:
            self._config = ImporterConfig(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}", details={"file": str(self.config_file)}) from e
        return self._config


class VendorRegistry(Mapping):
    """
    Read-only vendor lookup built once from the loaded configuration.

    Relative file sources are resolved against the configured data directory.
    """

    def __init__(self, config: ImporterConfig):
        data_dir = Path(config.data_directory)
        vendors = {}
        for key, vendor in config.vendors.items():
            if not vendor.is_remote and not Path(vendor.source).is_absolute():
                vendor = vendor.model_copy(update={"source": str(data_dir / vendor.source)})
            vendors[key] = vendor
        self._vendors = MappingProxyType(vendors)

    def __getitem__(self, key: str) -> VendorConfig:
        return self._vendors[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._vendors)

    def __len__(self) -> int:
        return len(self._vendors)

    def get_vendor(self, key: str) -> VendorConfig:
        """
        Look up a vendor by key.

        Raises:
            ConfigError: If no vendor is configured under that key
        """
        try:
            return self._vendors[key]
        except KeyError:
            raise ConfigError(
                f"Unknown vendor: {key}",
                code="UNKNOWN_VENDOR",
                details={"known": sorted(self._vendors)},
            ) from None
