"""
Phenotype Mapper - diplotype to metabolizer phenotype.

Resolution is an ordered chain of strategies; the first one that returns a
phenotype wins:

  1. exact_lookup              rule.phenotype_map[diplotype]
  2. symmetric_lookup          rule.phenotype_map[reversed diplotype]
  3. allele_function_heuristic global allele-function lists

The heuristic ignores which gene the rule is for. Star allele names mean
different things in different genes (CYP2C19*17 is increased function,
CYP2D6*17 is decreased), so it is a coarse fallback and not a clinical
call. ``*17`` appears in both the reduced and increased lists; the reduced
branch is checked first, so a heuristic ``*17`` never reaches RM/URM.
"""

import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional, Tuple

from .models import DrugGeneRule, Phenotype

logger = logging.getLogger(__name__)

LOSS_OF_FUNCTION: FrozenSet[str] = frozenset({"*4", "*5", "*6", "*3", "*3A", "*3B", "*3C", "*2"})
REDUCED_FUNCTION: FrozenSet[str] = frozenset({"*10", "*17", "*41", "*9"})
INCREASED_FUNCTION: FrozenSet[str] = frozenset({"*17"})

# Every outcome allele_function_heuristic can return
HEURISTIC_PHENOTYPES: Tuple[Phenotype, ...] = (
    Phenotype.PM,
    Phenotype.IM,
    Phenotype.URM,
    Phenotype.RM,
    Phenotype.UNKNOWN,
)

PhenotypeStrategy = Callable[[str, DrugGeneRule], Optional[Phenotype]]


@dataclass(frozen=True)
class PhenotypeResolution:
    phenotype: Phenotype
    strategy: str


def split_diplotype(diplotype: str) -> Optional[Tuple[str, str]]:
    parts = diplotype.split("/")
    if len(parts) != 2:
        return None
    return parts[0], parts[1]


def exact_lookup(diplotype: str, rule: DrugGeneRule) -> Optional[Phenotype]:
    return rule.phenotype_map.get(diplotype)


def symmetric_lookup(diplotype: str, rule: DrugGeneRule) -> Optional[Phenotype]:
    alleles = split_diplotype(diplotype)
    if alleles is None:
        return None
    return rule.phenotype_map.get(f"{alleles[1]}/{alleles[0]}")


def allele_function_heuristic(diplotype: str, rule: DrugGeneRule) -> Optional[Phenotype]:
    """Classify by allele function category. Always answers, possibly Unknown."""
    alleles = split_diplotype(diplotype)
    if alleles is None:
        return Phenotype.UNKNOWN
    a1, a2 = alleles

    loss1, loss2 = a1 in LOSS_OF_FUNCTION, a2 in LOSS_OF_FUNCTION
    reduced1, reduced2 = a1 in REDUCED_FUNCTION, a2 in REDUCED_FUNCTION
    inc1, inc2 = a1 in INCREASED_FUNCTION, a2 in INCREASED_FUNCTION

    if loss1 and loss2:
        return Phenotype.PM
    if (loss1 and reduced2) or (reduced1 and loss2):
        return Phenotype.PM
    if loss1 or loss2 or reduced1 or reduced2:
        return Phenotype.IM
    if inc1 and inc2:
        return Phenotype.URM
    if inc1 or inc2:
        return Phenotype.RM
    return Phenotype.UNKNOWN


PHENOTYPE_STRATEGIES: List[Tuple[str, PhenotypeStrategy]] = [
    ("exact", exact_lookup),
    ("symmetric", symmetric_lookup),
    ("heuristic", allele_function_heuristic),
]


def resolve_phenotype(diplotype: str, rule: DrugGeneRule) -> PhenotypeResolution:
    """Run the strategy chain and report which strategy answered."""
    for name, strategy in PHENOTYPE_STRATEGIES:
        phenotype = strategy(diplotype, rule)
        if phenotype is not None:
            logger.debug("%s %s -> %s via %s lookup", rule.gene, diplotype, phenotype.value, name)
            return PhenotypeResolution(phenotype=phenotype, strategy=name)

    return PhenotypeResolution(phenotype=Phenotype.UNKNOWN, strategy="none")


def infer_phenotype(diplotype: str, rule: DrugGeneRule) -> Phenotype:
    return resolve_phenotype(diplotype, rule).phenotype
