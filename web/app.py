#!/usr/bin/env python3
from __future__ import annotations

import json
import re
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

import pandas as pd
import requests
import streamlit as st

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from schedule_doctor.assembler import ExtractionResult, extract_from_bytes
from schedule_doctor.diagnostics import Diagnostics
from schedule_doctor.formatting import format_currency, format_file_size
from schedule_doctor.record import PaymentRecord, camel
from schedule_doctor.workbook import ALL_FORMATS, WorkbookParseError

MAX_REMOTE_FILE_MB = 25
MAX_REMOTE_FILE_BYTES = MAX_REMOTE_FILE_MB * 1024 * 1024
CONTENT_TYPE_EXTENSIONS = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
    "application/vnd.ms-excel.sheet.macroenabled.12": ".xlsm",
    "application/vnd.ms-excel": ".xls",
    "application/vnd.oasis.opendocument.spreadsheet": ".ods",
}


def ensure_state() -> None:
    st.session_state.setdefault("result", None)
    st.session_state.setdefault("error", None)


def normalize_public_url(raw_url: str) -> str:
    parsed = urlparse(raw_url.strip())
    if not parsed.scheme:
        raise ValueError("URL must start with http:// or https://")

    host = parsed.netloc.lower()
    path = parsed.path
    query = parse_qs(parsed.query, keep_blank_values=True)

    if "dropbox.com" in host:
        query["dl"] = ["1"]
        return urlunparse(parsed._replace(query=urlencode(query, doseq=True)))

    if host in {"drive.google.com", "docs.google.com"}:
        sheet_match = re.search(r"/spreadsheets/d/([^/]+)", path)
        if sheet_match:
            return f"https://docs.google.com/spreadsheets/d/{sheet_match.group(1)}/export?format=xlsx"
        match = re.search(r"/file/d/([^/]+)", path)
        if match:
            return f"https://drive.google.com/uc?export=download&id={match.group(1)}"

    if host.endswith("1drv.ms") or "onedrive.live.com" in host or host.endswith("sharepoint.com"):
        query["download"] = ["1"]
        return urlunparse(parsed._replace(query=urlencode(query, doseq=True)))

    return raw_url.strip()


def remote_filename(raw_url: str, response: requests.Response) -> str:
    content_disposition = response.headers.get("content-disposition", "")
    match = re.search(r'filename="([^"]+)"|filename=([^;]+)', content_disposition, re.I)
    name = Path(urlparse(response.url or raw_url).path).name or "schedule"
    if match:
        group = next(group for group in match.groups() if group)
        name = Path(group.strip().strip('"')).name
    if Path(name).suffix.lower() not in ALL_FORMATS:
        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        name = f"{Path(name).stem}{CONTENT_TYPE_EXTENSIONS.get(content_type, '.xlsx')}"
    return name


def fetch_remote_schedule(raw_url: str) -> tuple[str, bytes]:
    url = normalize_public_url(raw_url)
    response = requests.get(url, timeout=60, allow_redirects=True, stream=True)
    try:
        response.raise_for_status()
        chunks: list[bytes] = []
        downloaded = 0
        for chunk in response.iter_content(chunk_size=1024 * 1024):
            if not chunk:
                continue
            downloaded += len(chunk)
            if downloaded > MAX_REMOTE_FILE_BYTES:
                raise ValueError(f"Remote file is larger than {MAX_REMOTE_FILE_MB} MB.")
            chunks.append(chunk)
    finally:
        response.close()
    return remote_filename(raw_url, response), b"".join(chunks)


def fields_frame(fragment) -> pd.DataFrame:
    rows = [{"Field": camel(name), "Value": value} for name, value in vars(fragment).items() if value is not None]
    return pd.DataFrame(rows, columns=["Field", "Value"])


def record_tables(record: PaymentRecord) -> dict[str, pd.DataFrame]:
    tables = {
        "Item counts": fields_frame(record.item_counts),
        "Financials": fields_frame(record.financials),
        "Service costs": fields_frame(record.service_costs),
        "Advance payments": fields_frame(record.advance_payments),
    }
    if record.pfs_details is not None:
        tables["Pharmacy First Service"] = fields_frame(record.pfs_details)
    if record.regional_payments is not None:
        tables["Regional payments"] = pd.DataFrame(
            [{"Description": item.description, "Amount": item.amount} for item in record.regional_payments.payment_details],
            columns=["Description", "Amount"],
        )
    tables["High value items"] = pd.DataFrame(
        [
            {
                "Product": item.paid_product_name,
                "Paid GIC incl BB": item.paid_gic_incl_bb,
                "Quantity": item.paid_quantity,
                "Service flag": item.service_flag,
            }
            for item in record.high_value_items
        ],
        columns=["Product", "Paid GIC incl BB", "Quantity", "Service flag"],
    )
    return tables


def process_upload(name: str, data: bytes, mime_type: Optional[str] = None) -> None:
    st.session_state["result"] = None
    st.session_state["error"] = None
    try:
        st.session_state["result"] = extract_from_bytes(data, name, mime_type, diagnostics=Diagnostics())
    except (WorkbookParseError, ImportError) as exc:
        st.session_state["error"] = f"Could not process {name}: {exc}"


def render_result(result: ExtractionResult) -> None:
    record = result.record
    if result.file:
        st.caption(f"{result.file.name} · {format_file_size(result.file.size)} · {result.file.mime_type}")
    if not result.is_complete:
        st.warning("Only some of the key fields were found. Check that this is a payment schedule workbook.")

    cols = st.columns(4)
    cols[0].metric("Contractor", record.contractor_code or "—")
    cols[1].metric("Month", f"{record.month.title() or '—'} {record.year}")
    cols[2].metric("Net payment", format_currency(record.net_payment))
    cols[3].metric("Items", f"{record.item_counts.total:,}")

    for title, frame in record_tables(record).items():
        with st.expander(title, expanded=title in {"Item counts", "Financials"}):
            if frame.empty:
                st.write("Nothing found.")
            else:
                st.dataframe(frame, hide_index=True, width="stretch")

    if result.warnings:
        with st.expander(f"Warnings ({len(result.warnings)})"):
            for warning in result.warnings:
                st.write(f"- {warning}")

    st.download_button(
        "Download record JSON",
        data=json.dumps(result.to_dict(), indent=2, ensure_ascii=False),
        file_name=f"{Path(result.file.name).stem if result.file else 'schedule'}-record.json",
        mime="application/json",
    )


def main() -> None:
    st.set_page_config(page_title="schedule-doctor", layout="wide")
    ensure_state()

    st.title("schedule-doctor")
    st.caption("Upload a pharmacy payment schedule workbook to extract its payment record.")

    upload = st.file_uploader(
        "Payment schedule",
        type=[ext.lstrip(".") for ext in sorted(ALL_FORMATS)],
        accept_multiple_files=False,
    )
    url = st.text_input("…or a public share link", placeholder="Dropbox, Google Drive or OneDrive link")

    if st.button("Extract", type="primary", disabled=upload is None and not url.strip()):
        if upload is not None:
            process_upload(upload.name, upload.getvalue(), upload.type)
        else:
            try:
                name, data = fetch_remote_schedule(url)
            except (requests.RequestException, ValueError) as exc:
                st.session_state["result"] = None
                st.session_state["error"] = f"Could not download {url.strip()}: {exc}"
            else:
                process_upload(name, data)

    if st.session_state["error"]:
        st.error(st.session_state["error"])
        return
    if st.session_state["result"] is not None:
        render_result(st.session_state["result"])


if __name__ == "__main__":
    main()
