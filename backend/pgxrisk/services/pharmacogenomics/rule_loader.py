"""
Drug-gene rule loader - runtime singleton for the validated rule table.

The built-in table lives in ``drug_rules.py``. A JSON file with the same
shape (``{"Drug": {...rule...}}``) can replace it through the
``PGX_RULES_PATH`` setting. Either way every rule is validated into a
``DrugGeneRule`` once per process and a malformed rule stops the load.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import ValidationError

from pgxrisk.core.config import get_settings

from .drug_rules import DRUG_GENE_RULES
from .models import DrugGeneRule, RuleValidationError

logger = logging.getLogger(__name__)


class DrugRuleTable:
    """
    Immutable lookup over the validated drug-gene rules.

    Drug names are the canonical display names (``"Warfarin"``); lookups
    through ``match_supported_drug`` are trimmed and case-insensitive.
    """

    def __init__(self, rules: Mapping[str, DrugGeneRule]):
        self._rules: Dict[str, DrugGeneRule] = dict(rules)
        self._by_lower: Dict[str, str] = {name.lower(): name for name in self._rules}

    @classmethod
    def from_raw(cls, raw_rules: Mapping[str, dict]) -> "DrugRuleTable":
        """Validate raw rule dicts. Raises RuleValidationError on the first bad rule."""
        if not raw_rules:
            raise RuleValidationError("Rule table is empty")

        rules: Dict[str, DrugGeneRule] = {}
        for drug, raw in raw_rules.items():
            try:
                rules[drug] = DrugGeneRule.model_validate(raw)
            except ValidationError as e:
                raise RuleValidationError(f"Invalid rule for {drug}: {e}") from e
        return cls(rules)

    # ===== Drug Access =====

    @property
    def supported_drugs(self) -> List[str]:
        return list(self._rules)

    def match_supported_drug(self, name: str) -> Optional[str]:
        """Canonical drug name for free text input, or None when unsupported."""
        if not name:
            return None
        return self._by_lower.get(name.strip().lower())

    def get_rule(self, drug: str) -> Optional[DrugGeneRule]:
        canonical = self.match_supported_drug(drug)
        if canonical is None:
            return None
        return self._rules.get(canonical)

    def genes(self) -> List[str]:
        """Distinct genes covered by the table, in drug order."""
        seen: List[str] = []
        for rule in self._rules.values():
            if rule.gene not in seen:
                seen.append(rule.gene)
        return seen

    def __contains__(self, drug: str) -> bool:
        return self.match_supported_drug(drug) is not None

    def __len__(self) -> int:
        return len(self._rules)


def load_rules_file(path: str) -> Dict[str, dict]:
    """Read a JSON rule override file."""
    file_path = Path(path)
    if not file_path.exists():
        raise RuleValidationError(f"Rule file not found at {file_path}")

    with open(file_path, 'r') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise RuleValidationError(f"Rule file {file_path} must contain a JSON object keyed by drug name")
    return data


@lru_cache(maxsize=1)
def get_rule_table() -> DrugRuleTable:
    """Get the process-wide rule table, loading and validating it on first use."""
    rules_path = get_settings().PGX_RULES_PATH
    if rules_path:
        raw_rules = load_rules_file(rules_path)
        source = rules_path
    else:
        raw_rules = DRUG_GENE_RULES
        source = "built-in table"

    table = DrugRuleTable.from_raw(raw_rules)
    logger.info("Loaded %d drug-gene rules (%s) from %s", len(table), ", ".join(table.genes()), source)
    return table


def reload_rule_table() -> DrugRuleTable:
    """Drop the cached table and load it again (tests, or after editing the override file)."""
    get_rule_table.cache_clear()
    return get_rule_table()


def get_rule(drug: str) -> Optional[DrugGeneRule]:
    return get_rule_table().get_rule(drug)


def match_supported_drug(name: str) -> Optional[str]:
    return get_rule_table().match_supported_drug(name)


def get_supported_drugs() -> List[str]:
    return get_rule_table().supported_drugs
