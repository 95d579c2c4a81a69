"""
Pharmacogenomics Service

CPIC-aligned, rule-based inference chain: star allele calling, phenotype
inference, risk/severity lookup and confidence scoring.
"""

from .models import (
    AlleleCallResult,
    DrugGeneRule,
    Phenotype,
    RiskLabel,
    RuleValidationError,
    SEVERITY_MAP,
)
from .rule_loader import (
    DrugRuleTable,
    get_rule,
    get_rule_table,
    get_supported_drugs,
    match_supported_drug,
    reload_rule_table,
)
from .allele_caller import call_star_alleles
from .phenotype_mapper import PhenotypeResolution, infer_phenotype, resolve_phenotype
from .confidence import ConfidenceBreakdown, ConfidenceCalculator, compute_confidence
from .config import (
    get_config,
    update_config,
    reset_config,
    load_config_from_file,
    save_config_to_file,
    get_confidence_penalties,
)

__all__ = [
    # Models
    'AlleleCallResult',
    'DrugGeneRule',
    'Phenotype',
    'RiskLabel',
    'RuleValidationError',
    'SEVERITY_MAP',

    # Rule table
    'DrugRuleTable',
    'get_rule',
    'get_rule_table',
    'get_supported_drugs',
    'match_supported_drug',
    'reload_rule_table',

    # Inference
    'call_star_alleles',
    'PhenotypeResolution',
    'infer_phenotype',
    'resolve_phenotype',
    'ConfidenceBreakdown',
    'ConfidenceCalculator',
    'compute_confidence',

    # Config
    'get_config',
    'update_config',
    'reset_config',
    'load_config_from_file',
    'save_config_to_file',
    'get_confidence_penalties',
]
