"""
Command line entry point: evaluate a loan purpose and print the result as JSON.

    python -m greenloan "Installation of 50 MW solar ..." --amount 5000000
    python -m greenloan --document report.txt
"""

import argparse
import json
import logging
import sys

from greenloan.explainability import create_audit_entry
from greenloan.models import Application
from greenloan.pipeline import Evaluator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='greenloan', description="Green Loan Evaluation")
    parser.add_argument("purpose", nargs='?', default=None,
                        help="Loan purpose text (read from stdin when omitted)")
    parser.add_argument("--amount", type=float, default=0.0, help="Requested loan amount")
    parser.add_argument("--applicant", type=str, default=None, help="Applicant name")
    parser.add_argument("--location", type=str, default=None, help="Project location")
    parser.add_argument("--document", type=str, default=None,
                        help="Analyze a plain-text supporting document instead of a purpose")
    parser.add_argument("--audit", action='store_true', help="Include an audit trail entry")
    parser.add_argument("--parallel", action='store_true', help="Run the analyses on a thread pool")
    parser.add_argument("--verbose", "-v", action='store_true', help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    evaluator = Evaluator.from_env(parallel=args.parallel)

    if args.document:
        with open(args.document, encoding='utf-8') as f:
            analysis = evaluator.analyze_document(f.read())
        print(analysis.model_dump_json(indent=2))
        return 0

    purpose = args.purpose if args.purpose is not None else sys.stdin.read()
    application = Application(
        purpose=purpose,
        amount=args.amount,
        applicant_name=args.applicant,
        location=args.location,
    )
    result = evaluator.evaluate(application)

    if args.audit:
        payload = {
            'result': result.model_dump(mode='json'),
            'audit_trail': create_audit_entry(application, result),
        }
        print(json.dumps(payload, indent=2))
    else:
        print(result.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
