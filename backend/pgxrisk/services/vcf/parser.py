from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Constants & Configuration
# ----------------------------------------------------------------------

FILEFORMAT_MARKER = "##fileformat=VCF"
FILEFORMAT_PREFIX = "##fileformat="
CHROM_HEADER_PREFIX = "#CHROM"
GENOTYPE_KEY = "GT"

DEFAULT_SAMPLE_ID = "SAMPLE_001"
DEFAULT_FILE_FORMAT = "VCFv4.1"

# Column layout of a single-sample VCF data row
FORMAT_COLUMN = 8
SAMPLE_COLUMN = 9
MIN_HEADER_COLUMNS = 9
MIN_DATA_COLUMNS = 10

MISSING_ALLELE = "."

_GT_SPLIT = re.compile(r"[|/]")


@dataclass(frozen=True)
class VcfVariant:
    chrom: str
    pos: str
    id: str
    ref: str
    alt: str
    genotype: str   # resolved alleles, e.g. "A/G" or "T|T"


@dataclass
class ParsedVcf:
    variants: List[VcfVariant] = field(default_factory=list)
    sample_id: str = DEFAULT_SAMPLE_ID
    file_format: str = DEFAULT_FILE_FORMAT
    total_variants: int = 0


class VcfParseError(ValueError):
    """Structural VCF failure. ``code`` is part of the public error vocabulary."""

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.message = message
        self.code = code


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------

def validate_vcf_content(content: str) -> None:
    """
    Run the structural checks that make a text usable as a single-sample VCF.

    Raises VcfParseError with one of:
      EMPTY_FILE, MISSING_FILEFORMAT, MISSING_CHROM_HEADER,
      NO_VARIANTS, MISSING_GT, NO_GT_FIELD
    """
    if not content or not content.strip():
        raise VcfParseError("VCF file is empty or corrupted.", "EMPTY_FILE")

    lines = _non_blank_lines(content)

    if not any(FILEFORMAT_MARKER in line for line in lines):
        raise VcfParseError(
            "Invalid VCF file: Missing ##fileformat=VCF header.",
            "MISSING_FILEFORMAT",
        )

    header_line = next((line for line in lines if line.startswith(CHROM_HEADER_PREFIX)), None)
    if header_line is None:
        raise VcfParseError(
            "Invalid VCF file: Missing #CHROM header line.",
            "MISSING_CHROM_HEADER",
        )

    data_lines = [line for line in lines if not line.startswith("#")]
    if not data_lines:
        raise VcfParseError(
            "Invalid VCF file: No variant data rows found.",
            "NO_VARIANTS",
        )

    if len(header_line.split("\t")) < MIN_HEADER_COLUMNS:
        raise VcfParseError(
            "Invalid VCF file: Missing FORMAT/genotype columns.",
            "MISSING_GT",
        )

    if not any(_has_genotype_field(line.split("\t")) for line in data_lines):
        raise VcfParseError(
            "Invalid VCF file: No genotype (GT) field found in variant data.",
            "NO_GT_FIELD",
        )


# ----------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------

def parse_vcf(content: Union[str, bytes]) -> ParsedVcf:
    """
    Parse single-sample VCF text into variant records with resolved alleles.

    Rows with fewer than 10 columns or without a GT key in FORMAT are
    skipped. The sample identifier comes from the 10th column of the
    #CHROM line and the file format from the ##fileformat line; both fall
    back to fixed defaults.
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")

    validate_vcf_content(content)

    sample_id = DEFAULT_SAMPLE_ID
    file_format = DEFAULT_FILE_FORMAT
    variants: List[VcfVariant] = []
    skipped = 0

    for line in _non_blank_lines(content):
        if line.startswith(FILEFORMAT_PREFIX):
            file_format = line.split("=", 1)[1].strip() or DEFAULT_FILE_FORMAT
            continue
        if line.startswith(CHROM_HEADER_PREFIX):
            cols = line.split("\t")
            if len(cols) > SAMPLE_COLUMN and cols[SAMPLE_COLUMN].strip():
                sample_id = cols[SAMPLE_COLUMN].strip()
            continue
        if line.startswith("#"):
            continue

        variant = _parse_variant_line(line)
        if variant is None:
            skipped += 1
            continue
        variants.append(variant)

    if skipped:
        logger.debug("Skipped %d VCF rows without a usable genotype", skipped)
    logger.info("Parsed %d variants for sample %s (%s)", len(variants), sample_id, file_format)

    return ParsedVcf(
        variants=variants,
        sample_id=sample_id,
        file_format=file_format,
        total_variants=len(variants),
    )


def _parse_variant_line(line: str) -> Optional[VcfVariant]:
    cols = line.split("\t")
    if not _has_genotype_field(cols):
        return None

    chrom, pos, vid, ref, alt = (c or MISSING_ALLELE for c in cols[:5])
    format_keys = cols[FORMAT_COLUMN].split(":")
    sample_fields = cols[SAMPLE_COLUMN].split(":")

    gt_index = format_keys.index(GENOTYPE_KEY)
    gt_raw = sample_fields[gt_index] if gt_index < len(sample_fields) else MISSING_ALLELE

    return VcfVariant(
        chrom=chrom,
        pos=pos,
        id=vid,
        ref=ref,
        alt=alt,
        genotype=decode_genotype(gt_raw or MISSING_ALLELE, ref, alt),
    )


def decode_genotype(gt: str, ref: str, alt: str) -> str:
    """
    Resolve a GT value to allele strings, keeping the phasing separator.

      decode_genotype("0/2", "A", "G,T") -> "A/T"
      decode_genotype("1|1", "A", "G")   -> "G|G"
      decode_genotype("./.", "A", "G")   -> "./."
    """
    separator = "|" if "|" in gt else "/"
    alt_alleles = alt.split(",")
    return separator.join(
        _resolve_allele(index, ref, alt_alleles) for index in _GT_SPLIT.split(gt)
    )


def _resolve_allele(index: str, ref: str, alt_alleles: Sequence[str]) -> str:
    index = index.strip()
    if not index.isdigit():
        return MISSING_ALLELE
    i = int(index)
    if i == 0:
        return ref
    if i - 1 < len(alt_alleles) and alt_alleles[i - 1]:
        return alt_alleles[i - 1]
    return MISSING_ALLELE


def _has_genotype_field(cols: Sequence[str]) -> bool:
    return len(cols) >= MIN_DATA_COLUMNS and GENOTYPE_KEY in cols[FORMAT_COLUMN].split(":")


def _non_blank_lines(content: str) -> List[str]:
    return [line for line in content.splitlines() if line.strip()]

