"""
Explanation text for clinical outputs.

Every result carries a deterministic template explanation built from the
rule chain. When the remote explanation service answers, its text replaces
the template; when it does not, the template stays and
``llm_failure_flag`` is set.
"""
import logging
from typing import List, Optional

from pgxrisk.schemas.pharma_schema import (
    DEFAULT_LANGUAGE,
    ClinicalOutput,
    ExplanationRequest,
    LLMExplanation,
)

from .explanation_client import ExplanationClient

logger = logging.getLogger(__name__)

ENZYME_ACTIVITY = {
    "PM": "absent/significantly reduced",
    "IM": "reduced",
    "NM": "normal",
    "RM": "increased",
    "URM": "greatly increased",
}


def build_template_explanation(
    drug: str,
    gene: str,
    diplotype: str,
    phenotype: str,
    risk_label: str,
    severity: str,
    cpic_level: str,
) -> LLMExplanation:
    activity = ENZYME_ACTIVITY.get(phenotype, "uncertain")
    return LLMExplanation(
        summary=f"{phenotype} phenotype detected for {gene}. {risk_label} risk for {drug}.",
        detailed_explanation=(
            f"Patient carries {diplotype} diplotype in {gene}, classified as {phenotype}. "
            f"This affects the metabolism of {drug}, resulting in a {risk_label.lower()} risk "
            f"classification with {severity} severity. CPIC Level {cpic_level} evidence "
            f"supports this recommendation."
        ),
        mechanism=(
            f"{gene} enzyme activity is {activity} in {phenotype} phenotype, directly "
            f"impacting the pharmacokinetic processing of {drug}."
        ),
    )


def build_request_explanation(request: ExplanationRequest) -> LLMExplanation:
    """Template explanation from an explanation request alone (no diplotype available)."""
    activity = ENZYME_ACTIVITY.get(request.phenotype, "uncertain")
    return LLMExplanation(
        summary=(
            f"{request.phenotype} phenotype detected for {request.gene}. "
            f"{request.risk_label} risk for {request.drug}."
        ),
        detailed_explanation=(
            f"A {request.phenotype} phenotype in {request.gene} gives {request.drug} a "
            f"{request.risk_label.lower()} risk classification with {request.severity} severity "
            f"(confidence {request.confidence_score:.2f}). CPIC Level {request.cpic_level} "
            f"evidence supports this recommendation."
        ),
        mechanism=(
            f"{request.gene} enzyme activity is {activity} in {request.phenotype} phenotype, "
            f"directly impacting the pharmacokinetic processing of {request.drug}."
        ),
    )


def build_explanation_request(output: ClinicalOutput, language: str = DEFAULT_LANGUAGE) -> ExplanationRequest:
    """The per-drug payload the explanation service accepts."""
    return ExplanationRequest(
        drug=output.drug,
        gene=output.pharmacogenomic_profile.primary_gene,
        phenotype=output.pharmacogenomic_profile.phenotype,
        risk_label=output.risk_assessment.risk_label,
        severity=output.risk_assessment.severity,
        confidence_score=output.risk_assessment.confidence_score,
        cpic_level=output.clinical_recommendation.cpic_level,
        preferred_language=language,
    )


def _language_key(language: str) -> str:
    # "hi-IN" -> "hi"
    return language.split("-")[0].lower()


def apply_explanation(output: ClinicalOutput, payload: Optional[dict], language: str = DEFAULT_LANGUAGE) -> ClinicalOutput:
    """
    Return a copy of ``output`` with the service's text in place of the template.

    The service answers with ``llm_generated_explanation`` holding localized
    keys (``clinician_en``, ``patient_hi``, ...) and/or ``summary``,
    ``detailed_explanation``, ``mechanism``. Whatever is missing keeps the
    template value. No explanation object at all sets ``llm_failure_flag``.
    """
    ext = payload.get("llm_generated_explanation") if isinstance(payload, dict) else None
    if not isinstance(ext, dict):
        metrics = output.quality_metrics.model_copy(update={"llm_failure_flag": True})
        return output.model_copy(update={"quality_metrics": metrics})

    lang = _language_key(language)
    template = output.llm_generated_explanation
    clinician = ext.get(f"clinician_{lang}") or ext.get("clinician_en")

    explanation = LLMExplanation(
        summary=clinician or ext.get("summary") or template.summary,
        detailed_explanation=clinician or ext.get("detailed_explanation") or template.detailed_explanation,
        mechanism=ext.get("mechanism") or template.mechanism,
        patient_summary=ext.get(f"patient_{lang}") or ext.get("patient_en") or template.patient_summary,
    )
    metrics = output.quality_metrics.model_copy(update={"llm_failure_flag": False})
    return output.model_copy(update={"llm_generated_explanation": explanation, "quality_metrics": metrics})


async def enrich_results(
    results: List[ClinicalOutput],
    language: str = DEFAULT_LANGUAGE,
    client: Optional[ExplanationClient] = None,
) -> List[ClinicalOutput]:
    """One explanation round trip per result, in order. Never raises for service failures."""
    client = client or ExplanationClient()
    enriched: List[ClinicalOutput] = []

    for output in results:
        payload = await client.generate(build_explanation_request(output, language))
        if payload is None:
            logger.warning("Falling back to template explanation for %s", output.drug)
        enriched.append(apply_explanation(output, payload, language))

    return enriched
