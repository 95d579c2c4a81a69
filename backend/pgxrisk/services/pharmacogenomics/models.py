"""
Internal data models for the pharmacogenomics service.
These models describe the static drug-gene rules and the intermediate
results produced while turning VCF variants into a risk classification.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pgxrisk.schemas.pharma_schema import DetectedVariant

BASELINE_ALLELE = "*1"
WILDTYPE_DIPLOTYPE = f"{BASELINE_ALLELE}/{BASELINE_ALLELE}"

CpicLevel = Literal["A", "B", "C", "D"]


class Phenotype(str, Enum):
    """Metabolizer status."""
    PM = "PM"          # Poor Metabolizer
    IM = "IM"          # Intermediate Metabolizer
    NM = "NM"          # Normal Metabolizer
    RM = "RM"          # Rapid Metabolizer
    URM = "URM"        # Ultrarapid Metabolizer
    UNKNOWN = "Unknown"


class RiskLabel(str, Enum):
    SAFE = "Safe"
    ADJUST_DOSAGE = "Adjust Dosage"
    MONITOR_CLOSELY = "Monitor Closely"
    TOXIC = "Toxic"
    CONTRAINDICATED = "Contraindicated"


SEVERITY_MAP: Dict[RiskLabel, str] = {
    RiskLabel.SAFE: "none",
    RiskLabel.ADJUST_DOSAGE: "moderate",
    RiskLabel.MONITOR_CLOSELY: "moderate",
    RiskLabel.TOXIC: "high",
    RiskLabel.CONTRAINDICATED: "critical",
}


class RuleValidationError(ValueError):
    """Raised at load time when a drug-gene rule is malformed."""


def split_signature(signature: str) -> tuple:
    """Split an ``rsID:genotype`` allele signature into its two parts."""
    rsid, _, genotype = signature.partition(":")
    return rsid, genotype


class DrugGeneRule(BaseModel):
    """
    Static pharmacogenomic rule for one drug.

    ``star_alleles`` keeps declaration order; the allele caller uses it to
    break score ties.
    """
    model_config = ConfigDict(frozen=True)

    gene: str = Field(..., description="Gene symbol (e.g., CYP2C19)")
    rsids: List[str] = Field(..., min_length=1, description="Marker rsIDs used for allele calling")
    star_alleles: Dict[str, List[str]] = Field(
        ..., description="Star allele -> list of 'rsID:expectedGenotype' signatures"
    )
    phenotype_map: Dict[str, Phenotype] = Field(..., description="Diplotype -> phenotype")
    risk_map: Dict[Phenotype, RiskLabel] = Field(..., description="Phenotype -> risk label")
    cpic_level: CpicLevel = Field(..., description="CPIC evidence level")
    recommendations: Dict[Phenotype, str] = Field(..., description="Phenotype -> recommendation text")
    alternatives: List[str] = Field(default_factory=list, description="Alternative drug names")
    monitoring: Dict[Phenotype, str] = Field(..., description="Phenotype -> monitoring guidance")

    @field_validator("phenotype_map")
    @classmethod
    def validate_diplotype_keys(cls, v: Dict[str, Phenotype]) -> Dict[str, Phenotype]:
        for diplotype in v:
            parts = diplotype.split("/")
            if len(parts) != 2 or not all(parts):
                raise ValueError(f"Diplotype key '{diplotype}' must look like 'X/Y'")
        if WILDTYPE_DIPLOTYPE not in v:
            raise ValueError(f"phenotype_map must map the baseline diplotype {WILDTYPE_DIPLOTYPE}")
        return v

    @model_validator(mode="after")
    def validate_rule_consistency(self) -> "DrugGeneRule":
        markers = set(self.rsids)
        for allele, signatures in self.star_alleles.items():
            for signature in signatures:
                rsid, genotype = split_signature(signature)
                if not rsid or not genotype:
                    raise ValueError(f"{self.gene} {allele}: signature '{signature}' is not 'rsID:genotype'")
                if rsid not in markers:
                    raise ValueError(f"{self.gene} {allele}: {rsid} is not one of the rule's marker rsIDs")

        for name, table in (
            ("risk_map", self.risk_map),
            ("recommendations", self.recommendations),
            ("monitoring", self.monitoring),
        ):
            missing = [p.value for p in self.reachable_phenotypes() if p not in table]
            if missing:
                raise ValueError(f"{self.gene} {name} has no entry for phenotype(s): {', '.join(missing)}")
        return self

    def reachable_phenotypes(self) -> List[Phenotype]:
        """Phenotypes inference can produce for this rule, in enum order."""
        from .phenotype_mapper import HEURISTIC_PHENOTYPES

        reachable = set(self.phenotype_map.values()) | set(HEURISTIC_PHENOTYPES) | {Phenotype.UNKNOWN}
        return [p for p in Phenotype if p in reachable]


@dataclass(frozen=True)
class AlleleCallResult:
    """Star allele call for one (drug, sample) pair."""
    diplotype: str
    allele1: str
    allele2: str
    partial_detection: bool
    detected_variants: List[DetectedVariant] = field(default_factory=list)
