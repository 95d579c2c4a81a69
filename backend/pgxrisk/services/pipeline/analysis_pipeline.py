"""
Analysis Pipeline: orchestrates VCF → star alleles → phenotype → risk.

Parses the VCF once, then evaluates each requested drug independently.
A structural VCF error stops the whole run; anything that goes wrong for
one drug becomes an error entry for that drug and the rest continue.
"""
import logging
import re
from datetime import datetime, timezone
from typing import List, Optional, Union

from pgxrisk.schemas.pharma_schema import (
    DEFAULT_LANGUAGE,
    AnalysisError,
    AnalysisResult,
    ClinicalOutput,
    ClinicalRecommendation,
    ErrorCode,
    PharmacogenomicProfile,
    QualityMetrics,
    RiskAssessment,
)
from pgxrisk.services.llm.explanation_service import build_template_explanation
from pgxrisk.services.pharmacogenomics.allele_caller import call_star_alleles
from pgxrisk.services.pharmacogenomics.confidence import compute_confidence
from pgxrisk.services.pharmacogenomics.models import SEVERITY_MAP, DrugGeneRule, Phenotype
from pgxrisk.services.pharmacogenomics.phenotype_mapper import resolve_phenotype
from pgxrisk.services.pharmacogenomics.rule_loader import DrugRuleTable, get_rule_table
from pgxrisk.services.vcf.parser import ParsedVcf, VcfParseError, parse_vcf

logger = logging.getLogger(__name__)

UNSUPPORTED_DRUG_MESSAGE = "Drug not supported by current pharmacogenomic engine."
NO_RESULTS_MESSAGE = "No pharmacogenomic data found in this VCF for the selected drugs."

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def build_patient_id(sample_id: str) -> str:
    """``"na-12878"`` -> ``"PATIENT_NA_12878"``"""
    return "PATIENT_" + _NON_ALNUM.sub("_", sample_id).upper()


def evaluate_drug(parsed: ParsedVcf, drug: str, rule: DrugGeneRule) -> ClinicalOutput:
    """Run the rule chain for one drug and assemble its clinical record."""
    call = call_star_alleles(parsed.variants, rule)
    resolution = resolve_phenotype(call.diplotype, rule)
    phenotype = resolution.phenotype

    risk_label = rule.risk_map[phenotype]
    severity = SEVERITY_MAP[risk_label]

    expected = len(rule.rsids)
    detected = len(call.detected_variants)
    confidence = compute_confidence(
        expected_markers=expected,
        detected_markers=detected,
        phenotype=phenotype,
        partial_allele_detected=call.partial_detection,
        multi_gene_inference=False,
    )

    logger.info(
        "%s/%s: %s -> %s (%s lookup) -> %s, confidence %.2f",
        drug, rule.gene, call.diplotype, phenotype.value, resolution.strategy, risk_label.value, confidence,
    )

    return ClinicalOutput(
        patient_id=build_patient_id(parsed.sample_id),
        drug=drug,
        timestamp=datetime.now(timezone.utc).isoformat(),
        risk_assessment=RiskAssessment(
            risk_label=risk_label.value,
            confidence_score=confidence,
            severity=severity,
        ),
        pharmacogenomic_profile=PharmacogenomicProfile(
            primary_gene=rule.gene,
            diplotype=call.diplotype,
            phenotype=phenotype.value,
            detected_variants=call.detected_variants,
        ),
        clinical_recommendation=ClinicalRecommendation(
            cpic_level=rule.cpic_level,
            recommendation_summary=rule.recommendations[phenotype],
            alternative_drugs=list(rule.alternatives),
            monitoring_guidance=rule.monitoring[phenotype],
        ),
        llm_generated_explanation=build_template_explanation(
            drug=drug,
            gene=rule.gene,
            diplotype=call.diplotype,
            phenotype=phenotype.value,
            risk_label=risk_label.value,
            severity=severity,
            cpic_level=rule.cpic_level,
        ),
        quality_metrics=QualityMetrics(
            vcf_parsing_success=True,
            star_allele_detection_success=detected > 0,
            phenotype_assignment_success=phenotype != Phenotype.UNKNOWN,
            drug_rule_applied=True,
            variant_count=detected,
            missing_data_flag=detected < expected,
            llm_failure_flag=False,
        ),
    )


def run_analysis_pipeline(
    vcf_content: Union[str, bytes],
    drug_names: List[str],
    language: str = DEFAULT_LANGUAGE,
    rule_table: Optional[DrugRuleTable] = None,
) -> AnalysisResult:
    """
    Full pipeline for one VCF and a list of drug names.

    Results follow the order of ``drug_names``. Errors and results are
    independent lists; a run can return both.
    """
    # ── 1. Parse VCF ──────────────────────────────────────────────────────
    try:
        parsed = parse_vcf(vcf_content)
    except VcfParseError as e:
        logger.warning("VCF rejected (%s): %s", e.code, e.message)
        return AnalysisResult(
            results=[],
            errors=[AnalysisError(code=e.code, message=e.message)],
            language=language,
        )

    table = rule_table if rule_table is not None else get_rule_table()
    results: List[ClinicalOutput] = []
    errors: List[AnalysisError] = []

    # ── 2. Per-drug evaluation ────────────────────────────────────────────
    for raw_name in drug_names:
        name = raw_name.strip()
        matched = table.match_supported_drug(name)
        if matched is None:
            logger.info("Unsupported drug requested: %r", name)
            errors.append(AnalysisError(
                code=ErrorCode.UNSUPPORTED_DRUG.value,
                message=UNSUPPORTED_DRUG_MESSAGE,
                drug=name,
            ))
            continue

        rule = table.get_rule(matched)
        if rule is None:
            logger.error("Supported drug %s has no rule", matched)
            errors.append(AnalysisError(
                code=ErrorCode.NO_RULE.value,
                message=f"No pharmacogenomic rule found for {matched}.",
                drug=matched,
            ))
            continue

        try:
            results.append(evaluate_drug(parsed, matched, rule))
        except Exception as e:
            logger.exception("Analysis failed for %s", matched)
            errors.append(AnalysisError(
                code=ErrorCode.ANALYSIS_ERROR.value,
                message=f"Analysis failed for {matched}: {e}",
                drug=matched,
            ))

    if not results and not errors:
        errors.append(AnalysisError(code=ErrorCode.NO_RESULTS.value, message=NO_RESULTS_MESSAGE))

    logger.info("Analysis finished: %d result(s), %d error(s)", len(results), len(errors))
    return AnalysisResult(results=results, errors=errors, language=language)
