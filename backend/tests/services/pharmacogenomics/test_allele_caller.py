"""
Unit tests for star allele calling.
"""

import pytest

from pgxrisk.services.pharmacogenomics.allele_caller import (
    call_star_alleles,
    normalize_genotype,
    score_alleles,
)
from pgxrisk.services.pharmacogenomics.models import DrugGeneRule
from pgxrisk.services.pharmacogenomics.rule_loader import get_rule
from pgxrisk.services.vcf.parser import VcfVariant

ALL_PHENOTYPES = ["PM", "IM", "NM", "RM", "URM", "Unknown"]


def variant(rsid, genotype, chrom="chr1", pos="100", ref="A", alt="G"):
    return VcfVariant(chrom=chrom, pos=pos, id=rsid, ref=ref, alt=alt, genotype=genotype)


@pytest.fixture
def rule():
    """Three markers; *3 needs two of them."""
    return DrugGeneRule(
        gene="GENE1",
        rsids=["rs1", "rs2", "rs3"],
        star_alleles={
            "*1": [],
            "*2": ["rs1:A/G"],
            "*3": ["rs2:C/T", "rs3:G/A"],
        },
        phenotype_map={"*1/*1": "NM", "*2/*3": "PM"},
        risk_map={p: "Safe" for p in ALL_PHENOTYPES},
        cpic_level="B",
        recommendations={p: "text" for p in ALL_PHENOTYPES},
        monitoring={p: "text" for p in ALL_PHENOTYPES},
    )


class TestGenotypeNormalization:

    @pytest.mark.parametrize("genotype", ["AG", "GA", "A/G", "G|A"])
    def test_order_insensitive(self, genotype):
        assert normalize_genotype(genotype) == "AG"

    def test_different_alleles_differ(self):
        assert normalize_genotype("A/A") != normalize_genotype("A/G")


class TestScoring:

    def test_full_and_partial_scores(self, rule):
        scored = score_alleles({"rs1": "G/A", "rs2": "T/C", "rs3": "G/G"}, rule)
        assert scored == [("*2", 1.0), ("*3", 0.5)]

    def test_unmatched_alleles_excluded(self, rule):
        assert score_alleles({"rs1": "A/A"}, rule) == []

    def test_ties_keep_declaration_order(self, rule):
        scored = score_alleles({"rs1": "A/G", "rs2": "C/T", "rs3": "G/A"}, rule)
        assert [a for a, _ in scored] == ["*2", "*3"]


class TestCallStarAlleles:

    def test_two_complete_alleles(self, rule):
        result = call_star_alleles(
            [variant("rs1", "A/G"), variant("rs2", "C|T"), variant("rs3", "A/G")], rule
        )
        assert result.diplotype == "*2/*3"
        assert (result.allele1, result.allele2) == ("*2", "*3")
        assert result.partial_detection is False

    def test_incomplete_allele_flags_partial(self, rule):
        result = call_star_alleles(
            [variant("rs1", "A/G"), variant("rs2", "C/T"), variant("rs3", "G/G")], rule
        )
        assert result.diplotype == "*2/*3"
        assert result.partial_detection is True

    def test_single_allele_pairs_with_baseline(self, rule):
        result = call_star_alleles([variant("rs1", "G/A")], rule)
        assert result.diplotype == "*2/*1"
        assert result.partial_detection is True

    def test_all_reference_markers_is_complete_wildtype(self, rule):
        result = call_star_alleles(
            [variant("rs1", "A/A"), variant("rs2", "C/C"), variant("rs3", "G/G")], rule
        )
        assert result.diplotype == "*1/*1"
        assert result.partial_detection is False
        assert len(result.detected_variants) == 3

    def test_missing_markers_wildtype_is_partial(self, rule):
        result = call_star_alleles([variant("rs1", "A/A")], rule)
        assert result.diplotype == "*1/*1"
        assert result.partial_detection is True

    def test_no_variants(self, rule):
        result = call_star_alleles([], rule)
        assert result.diplotype == "*1/*1"
        assert result.partial_detection is True
        assert result.detected_variants == []

    def test_detected_variants_restricted_to_markers(self, rule):
        result = call_star_alleles(
            [variant("rs999", "A/G"), variant("rs2", "C/T", chrom="chr7", pos="555")], rule
        )
        assert [v.rsid for v in result.detected_variants] == ["rs2"]
        detected = result.detected_variants[0]
        assert (detected.chromosome, detected.position, detected.genotype) == ("chr7", "555", "C/T")


class TestBuiltInRuleCalls:

    def test_cyp2c19_heterozygous_star2(self):
        result = call_star_alleles([variant("rs4244285", "G/A", ref="G", alt="A")], get_rule("Clopidogrel"))
        assert result.diplotype == "*2/*1"
        assert result.partial_detection is True

    def test_cyp2c19_homozygous_star2_still_detected(self):
        result = call_star_alleles([variant("rs4244285", "A/A", ref="G", alt="A")], get_rule("Clopidogrel"))
        assert result.allele1 == "*2"

    def test_cyp2d6_compound_heterozygote(self):
        result = call_star_alleles(
            [variant("rs3892097", "C/T", ref="C", alt="T"), variant("rs1065852", "G/A", ref="G", alt="A")],
            get_rule("Codeine"),
        )
        assert result.diplotype == "*4/*10"
