"""
Star allele caller.

Matches parsed VCF variants against a rule's ``rsID:genotype`` allele
signatures and picks the two best-supported star alleles. Missing
coverage never fails the call; it surfaces as ``partial_detection`` and
falls back to the baseline ``*1`` allele.
"""

import logging
from typing import Dict, Iterable, List, Tuple

from pgxrisk.schemas.pharma_schema import DetectedVariant
from pgxrisk.services.vcf.parser import VcfVariant

from .models import BASELINE_ALLELE, AlleleCallResult, DrugGeneRule, split_signature

logger = logging.getLogger(__name__)


def normalize_genotype(genotype: str) -> str:
    """
    Order-insensitive genotype key: separators removed, characters sorted.

      normalize_genotype("G|A") -> "AG"
      normalize_genotype("A/G") -> "AG"
    """
    return "".join(sorted(genotype.replace("/", "").replace("|", "")))


def collect_relevant_variants(
    variants: Iterable[VcfVariant], rule: DrugGeneRule
) -> Tuple[Dict[str, str], List[DetectedVariant]]:
    """Variants whose ID is one of the rule's marker rsIDs, as lookup and as report."""
    markers = set(rule.rsids)
    genotypes: Dict[str, str] = {}
    detected: List[DetectedVariant] = []

    for variant in variants:
        if variant.id not in markers:
            continue
        genotypes[variant.id] = variant.genotype
        detected.append(
            DetectedVariant(
                rsid=variant.id,
                chromosome=variant.chrom,
                position=variant.pos,
                genotype=variant.genotype,
            )
        )
    return genotypes, detected


def score_alleles(genotypes: Dict[str, str], rule: DrugGeneRule) -> List[Tuple[str, float]]:
    """
    Fraction of matching signatures per star allele, best first.

    Alleles without signatures or without any match are left out. The
    sort is stable so declaration order breaks ties.
    """
    scored: List[Tuple[str, float]] = []
    for allele, signatures in rule.star_alleles.items():
        if not signatures:
            continue

        matches = 0
        for signature in signatures:
            rsid, expected = split_signature(signature)
            observed = genotypes.get(rsid)
            if observed is not None and normalize_genotype(observed) == normalize_genotype(expected):
                matches += 1

        if matches:
            scored.append((allele, matches / len(signatures)))

    return sorted(scored, key=lambda item: item[1], reverse=True)


def call_star_alleles(variants: Iterable[VcfVariant], rule: DrugGeneRule) -> AlleleCallResult:
    """Call the diplotype for one rule from the sample's variants."""
    genotypes, detected = collect_relevant_variants(variants, rule)
    scored = score_alleles(genotypes, rule)

    if len(scored) >= 2:
        allele1, allele2 = scored[0][0], scored[1][0]
        partial = any(score < 1 for _, score in scored)
    elif len(scored) == 1:
        allele1, allele2 = scored[0][0], BASELINE_ALLELE
        partial = True
    else:
        allele1 = allele2 = BASELINE_ALLELE
        partial = len(detected) < len(rule.rsids)

    diplotype = f"{allele1}/{allele2}"
    logger.debug(
        "%s: %d/%d markers detected, scored=%s -> %s (partial=%s)",
        rule.gene, len(detected), len(rule.rsids), scored, diplotype, partial,
    )

    return AlleleCallResult(
        diplotype=diplotype,
        allele1=allele1,
        allele2=allele2,
        partial_detection=partial,
        detected_variants=detected,
    )
