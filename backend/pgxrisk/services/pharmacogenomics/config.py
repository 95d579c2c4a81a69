"""
Configuration for pharmacogenomics service.
Centralizes tunable parameters for allele calling and confidence scoring.
"""

import json

from pydantic import BaseModel, Field


class ConfidencePenalties(BaseModel):
    """Confidence penalty deductions (subtracted from a 1.0 base)."""

    missing_marker: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Deduction per marker rsID the VCF did not report"
    )

    unknown_phenotype: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Deduction when the phenotype could not be assigned"
    )

    partial_allele_detection: float = Field(
        default=0.15,
        ge=0.0,
        le=1.0,
        description="Deduction when the diplotype rests on incomplete allele signatures"
    )

    multi_gene_inference: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Deduction when more than one gene informs the call (reserved)"
    )


class PharmacogenomicsConfig(BaseModel):
    """Main configuration for pharmacogenomics service."""

    confidence_penalties: ConfidencePenalties = Field(
        default_factory=ConfidencePenalties,
        description="Confidence penalty configuration"
    )

    confidence_decimals: int = Field(
        default=2,
        ge=0,
        description="Decimal places kept on the final confidence score"
    )


# Global configuration instance
_config: PharmacogenomicsConfig = PharmacogenomicsConfig()


def get_config() -> PharmacogenomicsConfig:
    """Get the global configuration instance."""
    return _config


def update_config(**kwargs) -> PharmacogenomicsConfig:
    """
    Update configuration parameters.

    Nested keys use dots, e.g.
    ``update_config(**{"confidence_penalties.missing_marker": 0.05})``.
    """
    global _config
    current_dict = _config.model_dump()

    for key, value in kwargs.items():
        if '.' in key:
            parts = key.split('.')
            current = current_dict
            for part in parts[:-1]:
                current = current[part]
            current[parts[-1]] = value
        else:
            current_dict[key] = value

    _config = PharmacogenomicsConfig(**current_dict)
    return _config


def reset_config() -> PharmacogenomicsConfig:
    """Restore defaults."""
    global _config
    _config = PharmacogenomicsConfig()
    return _config


def load_config_from_file(filepath: str) -> PharmacogenomicsConfig:
    """Load configuration from a JSON file."""
    global _config

    with open(filepath, 'r') as f:
        config_dict = json.load(f)

    _config = PharmacogenomicsConfig(**config_dict)
    return _config


def save_config_to_file(filepath: str):
    """Save current configuration to a JSON file."""
    with open(filepath, 'w') as f:
        json.dump(_config.model_dump(), f, indent=2)


def get_confidence_penalties() -> ConfidencePenalties:
    """Get confidence penalties configuration."""
    return _config.confidence_penalties

