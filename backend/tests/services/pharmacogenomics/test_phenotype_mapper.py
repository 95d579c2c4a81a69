"""
Unit tests for phenotype inference.
Each strategy is tested alone, then the chain as a whole.
"""

import pytest

from pgxrisk.services.pharmacogenomics.models import DrugGeneRule, Phenotype
from pgxrisk.services.pharmacogenomics.phenotype_mapper import (
    allele_function_heuristic,
    exact_lookup,
    infer_phenotype,
    resolve_phenotype,
    symmetric_lookup,
)
from pgxrisk.services.pharmacogenomics.rule_loader import get_rule

ALL_PHENOTYPES = ["PM", "IM", "NM", "RM", "URM", "Unknown"]


@pytest.fixture
def rule():
    """Minimal rule whose map knows only two diplotypes."""
    return DrugGeneRule(
        gene="GENE1",
        rsids=["rs1"],
        star_alleles={"*1": [], "*2": ["rs1:A/G"]},
        phenotype_map={"*1/*1": "NM", "*1/*2": "RM"},
        risk_map={p: "Safe" for p in ALL_PHENOTYPES},
        cpic_level="C",
        recommendations={p: "text" for p in ALL_PHENOTYPES},
        monitoring={p: "text" for p in ALL_PHENOTYPES},
    )


class TestExactLookup:

    def test_hit(self, rule):
        assert exact_lookup("*1/*2", rule) == Phenotype.RM

    def test_miss(self, rule):
        assert exact_lookup("*2/*1", rule) is None


class TestSymmetricLookup:

    def test_reversed_hit(self, rule):
        assert symmetric_lookup("*2/*1", rule) == Phenotype.RM

    def test_malformed_diplotype(self, rule):
        assert symmetric_lookup("*2", rule) is None

    def test_symmetry_through_chain(self, rule):
        # map value wins over the heuristic, which would say IM for *2
        assert infer_phenotype("*2/*1", rule) == infer_phenotype("*1/*2", rule) == Phenotype.RM


class TestAlleleFunctionHeuristic:

    @pytest.mark.parametrize("diplotype,expected", [
        ("*4/*5", Phenotype.PM),        # loss + loss
        ("*3A/*10", Phenotype.PM),      # loss + reduced
        ("*41/*2", Phenotype.PM),       # reduced + loss
        ("*4/*1", Phenotype.IM),        # single loss
        ("*1/*9", Phenotype.IM),        # single reduced
        ("*10/*41", Phenotype.IM),      # two reduced
        ("*1/*1", Phenotype.UNKNOWN),
        ("*8/*1", Phenotype.UNKNOWN),
        ("Unknown", Phenotype.UNKNOWN),
    ])
    def test_categories(self, rule, diplotype, expected):
        assert allele_function_heuristic(diplotype, rule) == expected

    def test_star17_reads_as_reduced(self, rule):
        # *17 is in both the reduced and increased lists; reduced is checked first
        assert allele_function_heuristic("*17/*17", rule) == Phenotype.IM
        assert allele_function_heuristic("*1/*17", rule) == Phenotype.IM

    def test_ignores_rule_gene(self, rule):
        assert allele_function_heuristic("*4/*4", rule) == allele_function_heuristic("*4/*4", get_rule("Warfarin"))


class TestResolvePhenotype:

    def test_reports_strategy(self, rule):
        assert resolve_phenotype("*1/*1", rule).strategy == "exact"
        assert resolve_phenotype("*2/*1", rule).strategy == "symmetric"
        assert resolve_phenotype("*4/*4", rule).strategy == "heuristic"

    def test_heuristic_fallback(self, rule):
        assert infer_phenotype("*4/*4", rule) == Phenotype.PM

    @pytest.mark.parametrize("drug,diplotype,expected", [
        ("Clopidogrel", "*2/*1", Phenotype.IM),
        ("Clopidogrel", "*17/*1", Phenotype.RM),
        ("Clopidogrel", "*2/*3", Phenotype.PM),
        ("Codeine", "*4/*1", Phenotype.IM),
        ("Codeine", "*10/*1", Phenotype.NM),
        ("Warfarin", "*3/*2", Phenotype.PM),
        ("Mercaptopurine", "*3C/*1", Phenotype.IM),
        ("Simvastatin", "*5/*1", Phenotype.IM),
    ])
    def test_built_in_rules(self, drug, diplotype, expected):
        assert infer_phenotype(diplotype, get_rule(drug)) == expected
