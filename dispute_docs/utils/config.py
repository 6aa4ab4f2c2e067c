"""Configuration management for the dispute document generator."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class GenerationConfig:
    """Text-generation service (AWS Bedrock) configuration."""
    model_id: str = "anthropic.claude-3-5-sonnet-20240620-v1:0"
    timeout: int = 120
    max_retries: int = 2
    backoff_base_seconds: float = 1.0
    backoff_jitter_seconds: float = 0.5
    max_tokens: int = 1024


@dataclass
class DocumentsConfig:
    """Document defaults."""
    default_state: str = "VIC"
    filename_prefix: str = "au"
    schema_version: str = "1.0.0"
    default_response_deadline_days: int = 14


@dataclass
class StorageConfig:
    """Object storage (S3 / R2) configuration."""
    bucket: str = "mechanic-dispute-documents"
    endpoint_url: Optional[str] = None
    region: str = "auto"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - [%(generation_id)s] %(message)s"
    file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""
    aws_region: str = "us-east-1"
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    documents: DocumentsConfig = field(default_factory=DocumentsConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: str = "config.yaml") -> "Config":
        """
        Load configuration from file and environment variables.

        Environment variables override config file values:
        - AWS_REGION
        - BEDROCK_MODEL_ID
        - GENERATION_MAX_RETRIES
        - DOCUMENTS_BUCKET
        - S3_ENDPOINT
        - S3_REGION
        - DEFAULT_STATE
        - LOG_LEVEL

        A missing file is not an error: built-in defaults are used.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            ConfigurationError: If a value cannot be converted to its type
        """
        load_dotenv()

        config_data: Dict[str, Any] = {}
        if Path(config_path).exists():
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        else:
            logger.warning(f"Config file '{config_path}' not found, using defaults")

        return cls.from_dict(config_data, environ=os.environ)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> "Config":
        """
        Build a Config from a parsed YAML mapping plus environment overrides.

        Args:
            config_data: Parsed YAML content
            environ: Environment mapping (defaults to no overrides)

        Returns:
            Config instance
        """
        env = environ or {}
        aws = config_data.get("aws", {}) or {}
        gen = config_data.get("generation", {}) or {}
        docs = config_data.get("documents", {}) or {}
        store = config_data.get("storage", {}) or {}
        log = config_data.get("logging", {}) or {}

        defaults = GenerationConfig()
        generation_config = GenerationConfig(
            model_id=env.get("BEDROCK_MODEL_ID", gen.get("model_id", defaults.model_id)),
            timeout=_as_int("generation.timeout", gen.get("timeout", defaults.timeout)),
            max_retries=_as_int(
                "generation.max_retries",
                env.get("GENERATION_MAX_RETRIES", gen.get("max_retries", defaults.max_retries)),
                minimum=0
            ),
            backoff_base_seconds=_as_float(
                "generation.backoff_base_seconds",
                gen.get("backoff_base_seconds", defaults.backoff_base_seconds)
            ),
            backoff_jitter_seconds=_as_float(
                "generation.backoff_jitter_seconds",
                gen.get("backoff_jitter_seconds", defaults.backoff_jitter_seconds)
            ),
            max_tokens=_as_int("generation.max_tokens", gen.get("max_tokens", defaults.max_tokens), minimum=1)
        )

        doc_defaults = DocumentsConfig()
        documents_config = DocumentsConfig(
            default_state=env.get("DEFAULT_STATE", docs.get("default_state", doc_defaults.default_state)),
            filename_prefix=docs.get("filename_prefix", doc_defaults.filename_prefix),
            schema_version=str(docs.get("schema_version", doc_defaults.schema_version)),
            default_response_deadline_days=_as_int(
                "documents.default_response_deadline_days",
                docs.get("default_response_deadline_days", doc_defaults.default_response_deadline_days),
                minimum=1
            )
        )

        store_defaults = StorageConfig()
        storage_config = StorageConfig(
            bucket=env.get("DOCUMENTS_BUCKET", store.get("bucket", store_defaults.bucket)),
            endpoint_url=env.get("S3_ENDPOINT", store.get("endpoint_url", store_defaults.endpoint_url)),
            region=env.get("S3_REGION", store.get("region", store_defaults.region))
        )

        log_defaults = LoggingConfig()
        logging_config = LoggingConfig(
            level=env.get("LOG_LEVEL", log.get("level", log_defaults.level)),
            format=log.get("format", log_defaults.format),
            file=log.get("file", log_defaults.file)
        )

        return cls(
            aws_region=env.get("AWS_REGION", aws.get("region", "us-east-1")),
            generation=generation_config,
            documents=documents_config,
            storage=storage_config,
            logging=logging_config,
        )


def _as_int(key: str, value: Any, minimum: Optional[int] = None) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError.invalid(key, value, "expected an integer")
    if minimum is not None and result < minimum:
        raise ConfigurationError.invalid(key, value, f"must be >= {minimum}")
    return result


def _as_float(key: str, value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError.invalid(key, value, "expected a number")
    if result < 0:
        raise ConfigurationError.invalid(key, value, "must not be negative")
    return result
