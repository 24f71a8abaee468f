from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from schedule_doctor import __version__ as TOOL_VERSION
from schedule_doctor.assembler import ExtractionResult, extract_from_path
from schedule_doctor.contracts import build_contract, build_run_summary
from schedule_doctor.diagnostics import Diagnostics
from schedule_doctor.formatting import format_currency, format_file_size
from schedule_doctor.variance import explain_payment_variance
from schedule_doctor.workbook import ALL_FORMATS, WorkbookParseError

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_PARTIAL = 6

OUTPUT_STAMP_ENV_VAR = "SCHEDULE_DOCTOR_OUTPUT_STAMP"


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class ScheduleDoctorArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def timestamp_token() -> str:
    override = os.environ.get(OUTPUT_STAMP_ENV_VAR)
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def default_output_dir(input_path: Path) -> Path:
    return Path.cwd() / "schedule-doctor-output" / f"{input_path.stem}-{timestamp_token()}"


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_dumps(payload), encoding="utf-8")


def configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, (WorkbookParseError, ImportError)):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def check_input(raw: str) -> Path:
    path = Path(raw)
    if not path.exists():
        raise CliError(f"File not found: {path}", EXIT_COMMAND_ERROR)
    if path.suffix.lower() not in ALL_FORMATS:
        raise CliError(
            f"Unsupported file type '{path.suffix.lower() or '[missing extension]'}'. "
            f"Supported: {', '.join(sorted(ALL_FORMATS))}",
            EXIT_COMMAND_ERROR,
        )
    return path


def render_extract_text(result: ExtractionResult) -> str:
    record = result.record
    lines = [
        "schedule-doctor extract",
        f"File: {result.file.name if result.file else '[unknown]'}"
        + (f" ({format_file_size(result.file.size)})" if result.file else ""),
        f"Status: {result.status}",
        f"Contractor: {record.contractor_code or '[not found]'}",
        f"Month: {record.month or '[not found]'} {record.year}",
        f"Net payment: {format_currency(record.net_payment)}",
        f"Items: {record.item_counts.total}",
        f"Gross ingredient cost: {format_currency(record.financials.gross_ingredient_cost)}",
    ]
    if record.pfs_details is not None:
        lines.append(f"PFS total payment: {format_currency(record.pfs_details.total_payment)}")
    if record.regional_payments is not None:
        lines.append(
            f"Regional payments: {format_currency(record.regional_payments.total_amount)} "
            f"({len(record.regional_payments.payment_details)} lines)"
        )
    lines.append(f"High value items: {len(record.high_value_items)}")
    missing = [name for name, found in result.sections.items() if not found]
    if missing:
        lines.append(f"Sections without data: {', '.join(missing)}")
    for warning in result.warnings:
        lines.append(f"  - {warning}")
    return "\n".join(lines)


def build_extract_payload(result: ExtractionResult, input_path: Path, output_path: Path | None) -> dict[str, Any]:
    contract = build_contract("schedule_doctor.extract")
    payload = result.to_dict()
    payload.update({
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "run_summary": build_run_summary(
            command="extract",
            input_paths=[input_path],
            status=result.status,
            output_path=output_path,
            metrics={
                "important_fields_found": len(result.important_fields_found),
                "high_value_items": len(result.record.high_value_items),
                "sections_found": sum(1 for found in result.sections.values() if found),
            },
            warnings=result.warnings,
        ),
    })
    return payload


def run_extract(args: argparse.Namespace) -> int:
    try:
        input_path = check_input(args.input)
        result = extract_from_path(input_path, diagnostics=Diagnostics())
        output_path = None if args.json else Path(args.out_dir or default_output_dir(input_path)) / "record.json"
        payload = build_extract_payload(result, input_path, output_path)
        if args.json:
            print(json_dumps(payload))
        else:
            write_json(output_path, payload)
            emit_human(render_extract_text(result), quiet=args.quiet)
            emit_human(f"Record written: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS if result.is_complete else EXIT_PARTIAL
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def render_variance_text(variance: dict[str, Any]) -> str:
    lines = [
        "schedule-doctor compare",
        f"Net payment change: {format_currency(variance['totalDifference'])} ({variance['percentChange']:.1f}%)",
    ]
    for item in variance["components"]:
        lines.append(
            f"  {item['name']}: {format_currency(item['previous'])} -> {format_currency(item['current'])} "
            f"({item['contribution']:.1f}% of change)"
        )
    for item in variance["regionalPaymentDetails"]:
        lines.append(f"    {item['description']}: {format_currency(item['difference'])}")
    return "\n".join(lines)


def run_compare(args: argparse.Namespace) -> int:
    try:
        current_path = check_input(args.current)
        previous_path = check_input(args.previous)
        current = extract_from_path(current_path, diagnostics=Diagnostics())
        previous = extract_from_path(previous_path, diagnostics=Diagnostics())
        variance = explain_payment_variance(current.record, previous.record)
        contract = build_contract("schedule_doctor.compare")
        payload = {
            "contract": contract,
            "schema_version": contract["version"],
            "tool_version": TOOL_VERSION,
            "current": {"month": current.record.month, "year": current.record.year},
            "previous": {"month": previous.record.month, "year": previous.record.year},
            "variance": variance,
            "run_summary": build_run_summary(
                command="compare",
                input_paths=[current_path, previous_path],
                warnings=current.warnings + previous.warnings,
            ),
        }
        if args.json:
            print(json_dumps(payload))
        else:
            emit_human(render_variance_text(variance), quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def build_parser() -> argparse.ArgumentParser:
    parser = ScheduleDoctorArgumentParser(
        prog="schedule-doctor",
        description="Extract structured payment data from pharmacy payment schedule workbooks.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract a payment record from a schedule workbook.")
    extract.add_argument("input", help="Input workbook path")
    extract.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    extract.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    extract.add_argument("--debug", action="store_true", help="Log extraction progress to stderr")
    extract.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")

    compare = subparsers.add_parser("compare", help="Explain the payment change between two schedules.")
    compare.add_argument("current", help="Current month workbook path")
    compare.add_argument("previous", help="Previous month workbook path")
    compare.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    compare.add_argument("--debug", action="store_true", help="Log extraction progress to stderr")
    compare.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")

    subparsers.add_parser("version", help="Print version")
    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        configure_logging(getattr(args, "debug", False))
        if args.command == "extract":
            return run_extract(args)
        if args.command == "compare":
            return run_compare(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
