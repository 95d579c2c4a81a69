"""Shared fixtures: VCF builders and a clean settings/rule-table state per test."""

import pytest

from pgxrisk.core.config import get_settings
from pgxrisk.services.pharmacogenomics.config import reset_config
from pgxrisk.services.pharmacogenomics.rule_loader import get_rule_table

HEADER = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\t{sample}"

_SETTINGS_ENV = (
    "EXPLANATION_API_URL",
    "EXPLANATION_TIMEOUT_SECONDS",
    "EXPLANATION_RETRY_DELAY_SECONDS",
    "EXPLANATION_MAX_RETRIES",
    "MAX_UPLOAD_BYTES",
    "LOG_LEVEL",
    "PGX_RULES_PATH",
)


def vcf_row(rsid, ref, alt, gt, chrom="chr1", pos="100", fmt="GT"):
    return "\t".join([chrom, str(pos), rsid, ref, alt, ".", "PASS", ".", fmt, gt])


def build_vcf(*rows, sample="SAMPLE_A", fileformat="VCFv4.2"):
    lines = [f"##fileformat={fileformat}", HEADER.format(sample=sample)]
    lines.extend(rows)
    return "\n".join(lines) + "\n"


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    get_rule_table.cache_clear()
    reset_config()
    yield
    get_settings.cache_clear()
    get_rule_table.cache_clear()
    reset_config()


@pytest.fixture
def make_vcf():
    return build_vcf


@pytest.fixture
def row():
    return vcf_row
