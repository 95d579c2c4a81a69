import re
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

SUPPORTED_LANGUAGES = {
    "en-US": "English",
    "hi-IN": "Hindi",
    "bn-IN": "Bengali",
    "ta-IN": "Tamil",
    "te-IN": "Telugu",
    "mr-IN": "Marathi",
    "gu-IN": "Gujarati",
}

LanguageCode = Literal["en-US", "hi-IN", "bn-IN", "ta-IN", "te-IN", "mr-IN", "gu-IN"]

DEFAULT_LANGUAGE = "en-US"


class ErrorCode(str, Enum):
    """Stable error vocabulary returned to callers."""
    EMPTY_FILE = "EMPTY_FILE"
    MISSING_FILEFORMAT = "MISSING_FILEFORMAT"
    MISSING_CHROM_HEADER = "MISSING_CHROM_HEADER"
    NO_VARIANTS = "NO_VARIANTS"
    MISSING_GT = "MISSING_GT"
    NO_GT_FIELD = "NO_GT_FIELD"
    UNSUPPORTED_DRUG = "UNSUPPORTED_DRUG"
    NO_RULE = "NO_RULE"
    ANALYSIS_ERROR = "ANALYSIS_ERROR"
    NO_RESULTS = "NO_RESULTS"


class DetectedVariant(BaseModel):
    rsid: str
    chromosome: str
    position: str
    genotype: str


class RiskAssessment(BaseModel):
    risk_label: str
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    severity: str


class PharmacogenomicProfile(BaseModel):
    primary_gene: str
    diplotype: str
    phenotype: str
    detected_variants: List[DetectedVariant] = []


class ClinicalRecommendation(BaseModel):
    cpic_level: str
    recommendation_summary: str
    alternative_drugs: List[str] = []
    monitoring_guidance: str


class LLMExplanation(BaseModel):
    summary: str
    detailed_explanation: str
    mechanism: str
    patient_summary: Optional[str] = None


class QualityMetrics(BaseModel):
    vcf_parsing_success: bool = True
    star_allele_detection_success: bool
    phenotype_assignment_success: bool
    drug_rule_applied: bool = True
    variant_count: int = Field(..., ge=0)
    missing_data_flag: bool
    llm_failure_flag: bool = False


class ClinicalOutput(BaseModel):
    patient_id: str
    drug: str
    timestamp: str
    risk_assessment: RiskAssessment
    pharmacogenomic_profile: PharmacogenomicProfile
    clinical_recommendation: ClinicalRecommendation
    llm_generated_explanation: LLMExplanation
    quality_metrics: QualityMetrics

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v):
        try:
            datetime.fromisoformat(v.replace('Z', '+00:00'))
            return v
        except ValueError:
            raise ValueError("Timestamp must be a valid ISO 8601 string")


class AnalysisError(BaseModel):
    code: str
    message: str
    drug: Optional[str] = None


class AnalysisResult(BaseModel):
    results: List[ClinicalOutput] = []
    errors: List[AnalysisError] = []
    language: str = DEFAULT_LANGUAGE


class AnalysisResponse(AnalysisResult):
    success: bool


# ── Request validation ────────────────────────────────────────────────────

_VCF_CONTENT_MESSAGE = "This field accepts drug names only. VCF content detected."

_VCF_CONTENT_PATTERNS = (
    re.compile(r"##fileformat"),
    re.compile(r"#CHROM"),
    re.compile(r"\bPOS\b"),
    re.compile(r"\bALT\b"),
    re.compile(r"\t"),
    re.compile(r"rs\d+"),
)

_DRUG_LIST_PATTERN = re.compile(r"^[a-zA-Z\s,\-]+$")


class AnalysisRequest(BaseModel):
    """Form fields of an analysis request."""
    drugs: str = Field("", max_length=100, description="Comma-separated drug names")
    language: LanguageCode = DEFAULT_LANGUAGE

    @field_validator('drugs')
    @classmethod
    def validate_drugs(cls, v: str) -> str:
        for pattern in _VCF_CONTENT_PATTERNS:
            if pattern.search(v):
                raise ValueError(_VCF_CONTENT_MESSAGE)
        if v and not _DRUG_LIST_PATTERN.match(v):
            raise ValueError("Drug names may only contain letters, spaces, commas, and hyphens.")
        return v

    def drug_names(self) -> List[str]:
        return [d.strip() for d in self.drugs.split(",") if d.strip()]


class ExplanationRequest(BaseModel):
    """Request object sent to the explanation service (one drug at a time)."""
    drug: str
    gene: str
    phenotype: str
    risk_label: str
    severity: str
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    cpic_level: str
    preferred_language: LanguageCode = DEFAULT_LANGUAGE
