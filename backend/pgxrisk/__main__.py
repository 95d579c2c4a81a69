from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pgxrisk.core.logging import setup_logging
from pgxrisk.schemas.pharma_schema import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES
from pgxrisk.services.llm.explanation_client import ExplanationClient
from pgxrisk.services.llm.explanation_service import enrich_results
from pgxrisk.services.pharmacogenomics.rule_loader import get_supported_drugs
from pgxrisk.services.pipeline.analysis_pipeline import run_analysis_pipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pgxrisk",
        description="Classify drug risk from a single-sample VCF using CPIC drug-gene rules.",
    )
    parser.add_argument("vcf", help="path to a .vcf file")
    parser.add_argument(
        "--drugs",
        default="",
        help="comma-separated drug names (default: every supported drug)",
    )
    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE,
        choices=sorted(SUPPORTED_LANGUAGES),
        help="language tag for explanations",
    )
    parser.add_argument(
        "--explain",
        action="store_true",
        help="request explanations from EXPLANATION_API_URL",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    path = Path(args.vcf)
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        return 2

    drugs = [d.strip() for d in args.drugs.split(",") if d.strip()] or get_supported_drugs()
    content = path.read_text(encoding="utf-8", errors="replace")

    result = run_analysis_pipeline(content, drugs, args.language)

    if args.explain and result.results:
        client = ExplanationClient()
        if client.enabled:
            enriched = asyncio.run(enrich_results(result.results, args.language, client))
            result = result.model_copy(update={"results": enriched})
        else:
            print("EXPLANATION_API_URL is not set; keeping template explanations", file=sys.stderr)

    print(json.dumps(result.model_dump(), indent=args.indent))
    return 0 if result.results else 1


if __name__ == "__main__":
    sys.exit(main())
