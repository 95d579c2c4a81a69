"""
Confidence scoring - deterministic penalty model.

Starts from 1.0 and subtracts fixed deductions for missing marker
coverage, an unassigned phenotype, partial allele detection and
multi-gene inference. The result is rounded and clamped to [0, 1].
Deduction sizes come from ``PharmacogenomicsConfig.confidence_penalties``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import ConfidencePenalties, get_config
from .models import Phenotype


@dataclass
class ConfidenceBreakdown:
    """Final score plus a human-readable audit trail of deductions."""

    score: float = 1.0
    expected_markers: int = 0
    detected_markers: int = 0
    penalties_applied: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "score": self.score,
            "expected_markers": self.expected_markers,
            "detected_markers": self.detected_markers,
            "penalties_applied": list(self.penalties_applied),
        }


class ConfidenceCalculator:
    """
    Usage::

        calc = ConfidenceCalculator()
        bd = calc.calculate(expected_markers=4, detected_markers=3,
                            phenotype=Phenotype.IM, partial_allele_detected=True)
        bd.score   # 0.75
    """

    def __init__(self, penalties: Optional[ConfidencePenalties] = None, decimals: Optional[int] = None):
        config = get_config()
        self.penalties = penalties or config.confidence_penalties
        self.decimals = config.confidence_decimals if decimals is None else decimals

    def calculate(
        self,
        expected_markers: int,
        detected_markers: int,
        phenotype: Phenotype,
        partial_allele_detected: bool,
        multi_gene_inference: bool = False,
    ) -> ConfidenceBreakdown:
        bd = ConfidenceBreakdown(expected_markers=expected_markers, detected_markers=detected_markers)
        total = 0.0

        # Surplus detections give no bonus
        missing = max(0, expected_markers - detected_markers)
        if missing:
            deduction = missing * self.penalties.missing_marker
            total += deduction
            bd.penalties_applied.append(
                f"missing_markers: -{deduction:.2f} ({missing} of {expected_markers} not reported)"
            )

        if Phenotype(phenotype) == Phenotype.UNKNOWN:
            total += self.penalties.unknown_phenotype
            bd.penalties_applied.append(f"unknown_phenotype: -{self.penalties.unknown_phenotype:.2f}")

        if partial_allele_detected:
            total += self.penalties.partial_allele_detection
            bd.penalties_applied.append(
                f"partial_allele_detection: -{self.penalties.partial_allele_detection:.2f}"
            )

        if multi_gene_inference:
            total += self.penalties.multi_gene_inference
            bd.penalties_applied.append(f"multi_gene_inference: -{self.penalties.multi_gene_inference:.2f}")

        bd.score = min(1.0, max(0.0, round(1.0 - total, self.decimals)))
        return bd


def compute_confidence(
    expected_markers: int,
    detected_markers: int,
    phenotype: Phenotype,
    partial_allele_detected: bool,
    multi_gene_inference: bool = False,
) -> float:
    """Confidence score in [0, 1] with the configured penalties."""
    return ConfidenceCalculator().calculate(
        expected_markers,
        detected_markers,
        phenotype,
        partial_allele_detected,
        multi_gene_inference,
    ).score
