"""
Configuration management for the filing pipeline.

Supports:
- Loading base config from YAML
- Merging run-specific overrides
- Config validation with Pydantic
- Config hashing for reproducibility
- Logging setup
"""

import hashlib
import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field

from .parse.chunker import ChunkingConfig
from .parse.models import ParserOptions

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


# =============================================================================
# Pydantic Config Models
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"  # DEBUG | INFO | WARNING | ERROR


class ProcessingConfig(BaseModel):
    """Batch processing settings."""

    max_workers: int = Field(default=4, gt=0)  # Thread pool size for batch runs


class PipelineConfig(BaseModel):
    """Complete pipeline configuration."""

    parser: ParserOptions = Field(default_factory=ParserOptions)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def config_hash(self) -> str:
        """
        Generate hash of config for reproducibility tracking.

        Returns:
            SHA256 hash of serialized config (first 12 chars)
        """
        config_json = self.model_dump_json(exclude={"logging"})
        return hashlib.sha256(config_json.encode()).hexdigest()[:12]


# =============================================================================
# Config Loading Functions
# =============================================================================


def load_yaml(path: Union[str, Path]) -> dict[str, Any]:
    """Load YAML file and return as dict."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Override values take precedence. Nested dicts are merged recursively.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> PipelineConfig:
    """
    Load pipeline configuration from YAML.

    Args:
        config_path: Path to a YAML config file; defaults only if None
        overrides: Optional nested dict merged on top of the file

    Returns:
        PipelineConfig with all settings resolved
    """
    config_dict: dict[str, Any] = {}
    if config_path is not None:
        config_dict = load_yaml(config_path)
    if overrides:
        config_dict = deep_merge(config_dict, overrides)

    config = PipelineConfig.model_validate(config_dict)
    logger.info(f"Loaded config from {config_path or 'defaults'} (hash: {config.config_hash()})")
    return config


def save_config(config: PipelineConfig, output_path: Union[str, Path]) -> Path:
    """
    Save resolved config to YAML file.

    Args:
        config: PipelineConfig to save
        output_path: Path to save to

    Returns:
        Path where config was saved
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)

    logger.info(f"Saved config to {output_path}")
    return output_path


# =============================================================================
# Config Validation
# =============================================================================


def validate_config(config: PipelineConfig) -> list[str]:
    """
    Validate config and return list of warnings/issues.

    Args:
        config: PipelineConfig to validate

    Returns:
        List of warning messages (empty if all good)
    """
    warnings = []

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.logging.level.upper() not in valid_levels:
        warnings.append(
            f"Invalid logging level: {config.logging.level}. "
            f"Valid options: {valid_levels}"
        )

    chunking = config.chunking
    if chunking.max_chunk_size <= chunking.chunk_overlap:
        warnings.append(
            f"max_chunk_size={chunking.max_chunk_size} must be greater than "
            f"chunk_overlap={chunking.chunk_overlap}"
        )

    if chunking.min_chunk_size >= chunking.max_chunk_size:
        warnings.append(
            f"min_chunk_size={chunking.min_chunk_size} is not below max_chunk_size, "
            "sections will never be split across chunks"
        )

    if config.parser.max_full_text_length < config.parser.max_section_length:
        warnings.append(
            f"max_full_text_length={config.parser.max_full_text_length} is below "
            f"max_section_length={config.parser.max_section_length}, full text may be cut mid-section"
        )

    if config.processing.max_workers > 32:
        warnings.append(
            f"max_workers={config.processing.max_workers} is high, "
            "PDF table reconstruction is CPU-bound"
        )

    return warnings


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Configure root logging with the pipeline's format."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
