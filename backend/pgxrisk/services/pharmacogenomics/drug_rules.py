"""
drug_rules.py
=============
CPIC-based drug-gene rules for the six supported drugs.

Each rule lists the marker rsIDs read from the VCF, the star alleles those
markers define, and the diplotype → phenotype → risk/recommendation chain.

Allele signatures are ``"rsID:genotype"`` strings compared against the
resolved VCF genotype with allele order ignored. Every variant allele is
defined by one marker and lists both carrier genotypes (heterozygous and
homozygous), so either zygosity reveals the allele.

Sources: CPIC guidelines (https://cpicpgx.org/genes-drugs/)
"""
from __future__ import annotations

from typing import Dict, List


def _carrier(rsid: str, ref: str, alt: str) -> List[str]:
    """Signatures matching a heterozygous or homozygous carrier of ``alt``."""
    return [f"{rsid}:{ref}/{alt}", f"{rsid}:{alt}/{alt}"]


# ---------------------------------------------------------------------------
# Shared recommendation text
# ---------------------------------------------------------------------------

_UNKNOWN_MONITORING = (
    "Genotype could not be interpreted. Confirm with a clinical-grade "
    "pharmacogenomic test and monitor the patient closely."
)

_NOT_APPLICABLE = (
    "No CPIC phenotype of this kind is defined for {gene}; "
    "use standard dosing with routine monitoring."
)


# ── CYP2D6 ──────────────────────────────────────────────────────────────────
# CPIC guideline: https://cpicpgx.org/guidelines/guideline-for-codeine-and-cyp2d6/

CODEINE = {
    "gene": "CYP2D6",
    "rsids": ["rs3892097", "rs1065852", "rs28371706", "rs28371725"],
    "star_alleles": {
        "*1":  [],                                      # reference
        "*4":  _carrier("rs3892097", "C", "T"),         # No function (splice defect)
        "*10": _carrier("rs1065852", "G", "A"),         # Decreased function
        "*17": _carrier("rs28371706", "G", "A"),        # Decreased function
        "*41": _carrier("rs28371725", "C", "T"),        # Decreased function
    },
    "phenotype_map": {
        "*1/*1":   "NM",
        "*1/*4":   "IM",    # AS 1.0
        "*1/*10":  "NM",    # AS 1.25
        "*1/*17":  "NM",    # AS 1.5
        "*1/*41":  "NM",    # AS 1.5
        "*4/*4":   "PM",
        "*4/*10":  "IM",
        "*4/*17":  "IM",
        "*4/*41":  "IM",
        "*10/*10": "IM",
        "*10/*17": "IM",
        "*10/*41": "IM",
        "*17/*17": "IM",
        "*17/*41": "IM",
        "*41/*41": "IM",
    },
    "risk_map": {
        "PM":      "Contraindicated",
        "IM":      "Monitor Closely",
        "NM":      "Safe",
        "RM":      "Safe",
        "URM":     "Contraindicated",
        "Unknown": "Monitor Closely",
    },
    "cpic_level": "A",
    "recommendations": {
        "PM": "Avoid codeine due to lack of efficacy. Use a non-tramadol alternative analgesic.",
        "IM": "Use label-recommended age- or weight-specific dosing. If no response, "
              "consider a non-tramadol alternative analgesic.",
        "NM": "Use label-recommended age- or weight-specific dosing.",
        "RM": "Use label-recommended age- or weight-specific dosing.",
        "URM": "Avoid codeine due to potential for serious toxicity from rapid conversion "
               "to morphine. Use a non-tramadol alternative analgesic.",
        "Unknown": "CYP2D6 status is undetermined. Prefer an analgesic not dependent on "
                   "CYP2D6 activation, or use codeine with close clinical monitoring.",
    },
    "alternatives": ["Morphine", "Hydromorphone", "Non-opioid analgesics"],
    "monitoring": {
        "PM": "Assess analgesic response early; expect inadequate pain relief on codeine.",
        "IM": "Monitor pain control; reduced morphine formation may limit efficacy.",
        "NM": "Routine monitoring for opioid adverse effects.",
        "RM": _NOT_APPLICABLE.format(gene="CYP2D6"),
        "URM": "If codeine was given, monitor for respiratory depression and opioid toxicity.",
        "Unknown": _UNKNOWN_MONITORING,
    },
}


# ── CYP2C19 ─────────────────────────────────────────────────────────────────
# CPIC guideline: https://cpicpgx.org/guidelines/guideline-for-clopidogrel-and-cyp2c19/

CLOPIDOGREL = {
    "gene": "CYP2C19",
    "rsids": ["rs4244285", "rs4986893", "rs12248560"],
    "star_alleles": {
        "*1":  [],
        "*2":  _carrier("rs4244285", "G", "A"),         # No function (splice defect)
        "*3":  _carrier("rs4986893", "G", "A"),         # No function (premature stop)
        "*17": _carrier("rs12248560", "C", "T"),        # Increased function
    },
    "phenotype_map": {
        "*1/*1":   "NM",
        "*1/*2":   "IM",
        "*1/*3":   "IM",
        "*1/*17":  "RM",
        "*2/*2":   "PM",
        "*2/*3":   "PM",
        "*3/*3":   "PM",
        "*2/*17":  "IM",
        "*3/*17":  "IM",
        "*17/*17": "URM",
    },
    "risk_map": {
        "PM":      "Contraindicated",
        "IM":      "Adjust Dosage",
        "NM":      "Safe",
        "RM":      "Safe",
        "URM":     "Safe",
        "Unknown": "Monitor Closely",
    },
    "cpic_level": "A",
    "recommendations": {
        "PM": "Avoid clopidogrel. Use prasugrel or ticagrelor at standard dose if not contraindicated.",
        "IM": "Reduced platelet inhibition expected. Use prasugrel or ticagrelor at standard "
              "dose if not contraindicated.",
        "NM": "Use clopidogrel at standard dose (75 mg/day).",
        "RM": "Use clopidogrel at standard dose (75 mg/day).",
        "URM": "Use clopidogrel at standard dose (75 mg/day).",
        "Unknown": "CYP2C19 status is undetermined. Consider an alternative P2Y12 inhibitor "
                   "for high-risk indications.",
    },
    "alternatives": ["Prasugrel", "Ticagrelor"],
    "monitoring": {
        "PM": "Monitor for stent thrombosis and recurrent ischemic events; consider platelet function testing.",
        "IM": "Consider platelet function testing; monitor for ischemic events.",
        "NM": "Routine cardiovascular follow-up.",
        "RM": "Routine cardiovascular follow-up; watch for bleeding.",
        "URM": "Routine cardiovascular follow-up; watch for bleeding.",
        "Unknown": _UNKNOWN_MONITORING,
    },
}


# ── CYP2C9 ──────────────────────────────────────────────────────────────────
# CPIC guideline: https://cpicpgx.org/guidelines/guideline-for-warfarin-and-cyp2c9-and-vkorc1/

WARFARIN = {
    "gene": "CYP2C9",
    "rsids": ["rs1799853", "rs1057910"],
    "star_alleles": {
        "*1": [],
        "*2": _carrier("rs1799853", "C", "T"),          # Decreased function
        "*3": _carrier("rs1057910", "A", "C"),          # No function
    },
    "phenotype_map": {
        "*1/*1": "NM",
        "*1/*2": "IM",
        "*1/*3": "IM",
        "*2/*2": "IM",
        "*2/*3": "PM",
        "*3/*3": "PM",
    },
    "risk_map": {
        "PM":      "Toxic",
        "IM":      "Adjust Dosage",
        "NM":      "Safe",
        "RM":      "Monitor Closely",
        "URM":     "Monitor Closely",
        "Unknown": "Monitor Closely",
    },
    "cpic_level": "A",
    "recommendations": {
        "PM": "Markedly reduced warfarin clearance. Reduce the initial dose substantially "
              "(consider 50-80% reduction) and titrate slowly.",
        "IM": "Reduced warfarin clearance. Consider a lower initial dose and adjust using INR.",
        "NM": "Initiate warfarin with a standard dosing algorithm.",
        "RM": _NOT_APPLICABLE.format(gene="CYP2C9"),
        "URM": _NOT_APPLICABLE.format(gene="CYP2C9"),
        "Unknown": "CYP2C9 status is undetermined. Start with conservative dosing and titrate by INR.",
    },
    "alternatives": ["Apixaban", "Rivaroxaban", "Dabigatran"],
    "monitoring": {
        "PM": "Frequent INR checks during initiation; high bleeding risk.",
        "IM": "Closer INR monitoring during the first weeks of therapy.",
        "NM": "Standard INR monitoring.",
        "RM": "Standard INR monitoring.",
        "URM": "Standard INR monitoring.",
        "Unknown": _UNKNOWN_MONITORING,
    },
}


# ── TPMT ────────────────────────────────────────────────────────────────────
# CPIC guideline: https://cpicpgx.org/guidelines/guideline-for-thiopurines-and-tpmt/
# Mercaptopurine and azathioprine share the TPMT allele model.

_TPMT_RSIDS = ["rs1800462", "rs1800460", "rs1142345"]

_TPMT_ALLELES = {
    "*1":  [],
    "*2":  _carrier("rs1800462", "C", "G"),             # No function
    "*3B": _carrier("rs1800460", "C", "T"),             # No function
    "*3C": _carrier("rs1142345", "T", "C"),             # No function
}

_TPMT_PHENOTYPES = {
    "*1/*1":   "NM",
    "*1/*2":   "IM",
    "*1/*3B":  "IM",
    "*1/*3C":  "IM",
    "*2/*2":   "PM",
    "*2/*3B":  "PM",
    "*2/*3C":  "PM",
    "*3B/*3B": "PM",
    "*3B/*3C": "IM",    # unphased; usually *1/*3A (both SNPs in cis)
    "*3C/*3C": "PM",
}

_TPMT_MONITORING = {
    "PM": "Weekly complete blood counts during initiation; high risk of life-threatening myelosuppression.",
    "IM": "Complete blood counts every 1-2 weeks after dose changes.",
    "NM": "Routine complete blood count monitoring.",
    "RM": "Routine complete blood count monitoring.",
    "URM": "Routine complete blood count monitoring.",
    "Unknown": _UNKNOWN_MONITORING,
}

MERCAPTOPURINE = {
    "gene": "TPMT",
    "rsids": list(_TPMT_RSIDS),
    "star_alleles": dict(_TPMT_ALLELES),
    "phenotype_map": dict(_TPMT_PHENOTYPES),
    "risk_map": {
        "PM":      "Toxic",
        "IM":      "Adjust Dosage",
        "NM":      "Safe",
        "RM":      "Safe",
        "URM":     "Safe",
        "Unknown": "Monitor Closely",
    },
    "cpic_level": "A",
    "recommendations": {
        "PM": "Drastically reduce the dose (10-fold, 3 times weekly instead of daily) "
              "and allow 4-6 weeks to reach steady state.",
        "IM": "Start at 30-80% of the normal dose and adjust based on myelosuppression.",
        "NM": "Start with the normal starting dose.",
        "RM": _NOT_APPLICABLE.format(gene="TPMT"),
        "URM": _NOT_APPLICABLE.format(gene="TPMT"),
        "Unknown": "TPMT status is undetermined. Consider phenotypic TPMT activity testing before dosing.",
    },
    "alternatives": [],
    "monitoring": dict(_TPMT_MONITORING),
}

AZATHIOPRINE = {
    "gene": "TPMT",
    "rsids": list(_TPMT_RSIDS),
    "star_alleles": dict(_TPMT_ALLELES),
    "phenotype_map": dict(_TPMT_PHENOTYPES),
    "risk_map": {
        "PM":      "Contraindicated",
        "IM":      "Adjust Dosage",
        "NM":      "Safe",
        "RM":      "Safe",
        "URM":     "Safe",
        "Unknown": "Monitor Closely",
    },
    "cpic_level": "A",
    "recommendations": {
        "PM": "For nonmalignant conditions, consider an alternative nonthiopurine "
              "immunosuppressant. For malignancy, drastically reduce the dose.",
        "IM": "Start at 30-80% of the normal dose and adjust based on myelosuppression.",
        "NM": "Start with the normal starting dose.",
        "RM": _NOT_APPLICABLE.format(gene="TPMT"),
        "URM": _NOT_APPLICABLE.format(gene="TPMT"),
        "Unknown": "TPMT status is undetermined. Consider phenotypic TPMT activity testing before dosing.",
    },
    "alternatives": ["Mycophenolate mofetil", "Methotrexate"],
    "monitoring": dict(_TPMT_MONITORING),
}


# ── SLCO1B1 ─────────────────────────────────────────────────────────────────
# CPIC guideline: https://cpicpgx.org/guidelines/cpic-guideline-for-statins/
# Transporter function is reported on the metabolizer scale
# (NM = normal, IM = decreased, PM = poor function).

SIMVASTATIN = {
    "gene": "SLCO1B1",
    "rsids": ["rs4149056", "rs2306283"],
    "star_alleles": {
        "*1":  [],
        "*5":  _carrier("rs4149056", "T", "C"),         # Poor function (Val174Ala)
        "*1B": _carrier("rs2306283", "A", "G"),         # Normal function
    },
    "phenotype_map": {
        "*1/*1":   "NM",
        "*1/*5":   "IM",
        "*1/*1B":  "NM",
        "*5/*5":   "PM",
        "*5/*1B":  "IM",    # unphased; *15 when in cis
        "*1B/*1B": "NM",
    },
    "risk_map": {
        "PM":      "Toxic",
        "IM":      "Adjust Dosage",
        "NM":      "Safe",
        "RM":      "Safe",
        "URM":     "Safe",
        "Unknown": "Monitor Closely",
    },
    "cpic_level": "A",
    "recommendations": {
        "PM": "Prescribe an alternative statin; simvastatin carries a high myopathy risk.",
        "IM": "Prescribe a lower simvastatin dose (20 mg/day or less) or an alternative statin.",
        "NM": "Prescribe desired starting dose and adjust based on disease-specific guidelines.",
        "RM": _NOT_APPLICABLE.format(gene="SLCO1B1"),
        "URM": _NOT_APPLICABLE.format(gene="SLCO1B1"),
        "Unknown": "SLCO1B1 status is undetermined. Prefer a statin with low SLCO1B1 dependence.",
    },
    "alternatives": ["Rosuvastatin", "Pravastatin", "Fluvastatin"],
    "monitoring": {
        "PM": "Monitor CK levels and muscle symptoms if any statin exposure occurs.",
        "IM": "Ask about muscle pain and weakness at each visit; check CK if symptomatic.",
        "NM": "Routine lipid and safety monitoring.",
        "RM": "Routine lipid and safety monitoring.",
        "URM": "Routine lipid and safety monitoring.",
        "Unknown": _UNKNOWN_MONITORING,
    },
}


# ---------------------------------------------------------------------------
# Drug → rule (display names are the supported vocabulary)
# ---------------------------------------------------------------------------

DRUG_GENE_RULES: Dict[str, dict] = {
    "Codeine":        CODEINE,
    "Clopidogrel":    CLOPIDOGREL,
    "Warfarin":       WARFARIN,
    "Mercaptopurine": MERCAPTOPURINE,
    "Azathioprine":   AZATHIOPRINE,
    "Simvastatin":    SIMVASTATIN,
}

SUPPORTED_DRUGS: List[str] = list(DRUG_GENE_RULES)
