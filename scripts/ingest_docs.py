"""Ingest a folder of reference documents into the knowledge base.

Usage:
    python scripts/ingest_docs.py [docs-folder] [--api-url http://localhost:8000]

Each .txt, .md or .pdf file is posted to /api/admin/ingest, which chunks,
embeds and stores it. Requires SUPABASE_SERVICE_ROLE_KEY.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

import httpx
from dotenv import load_dotenv

from concertops.services.pdf_parser import extract_text_from_pdf

log = logging.getLogger("ingest_docs")

SUPPORTED_EXTENSIONS = (".txt", ".md", ".pdf")
MIN_CHARS = 100
FILE_DELAY_SECONDS = 1.5

# Checked in order; each entry matches when any of its keywords appears in the
# lower-cased file name. A keyword written "a+b" needs both parts present.
DOC_TYPE_KEYWORDS = [
    (("account", "settlement", "budget"), "accounting"),
    (("product",), "production"),
    (("audio", "sound", "engineer"), "audio_engineering"),
    (("international", "japan", "europe", "uk"), "international"),
    (("health", "mental", "wellness"), "health"),
    (("festival",), "festival"),
    (("stage",), "stage_management"),
    (("backline",), "backline"),
    (("promot",), "promotion"),
    (("tour+manag", "rider"), "tour_management"),
    (("arena", "lighting"), "production"),
    (("merchandis",), "promotion"),
    (("logistics",), "tour_management"),
]


def _matches(keyword: str, name: str) -> bool:
    return all(part in name for part in keyword.split("+"))


def infer_doc_type(file_name: str) -> str:
    lower = file_name.lower()
    for keywords, doc_type in DOC_TYPE_KEYWORDS:
        if any(_matches(k, lower) for k in keywords):
            return doc_type
    return "general"


def list_documents(folder: Path) -> List[Path]:
    return sorted(p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS)


def read_document(path: Path) -> str:
    if path.suffix.lower() == ".pdf":
        return extract_text_from_pdf(path.read_bytes())
    return path.read_text(encoding="utf-8", errors="ignore")


def ingest_file(client: httpx.Client, api_url: str, path: Path) -> bool:
    try:
        raw_text = read_document(path)
    except Exception as e:
        log.error("%s: extraction failed: %s", path.name, e)
        return False
    if len(raw_text.strip()) < MIN_CHARS:
        log.info("%s: skipped (too short)", path.name)
        return False
    doc_type = infer_doc_type(path.name)
    log.info("%s: doc_type=%s chars=%d", path.name, doc_type, len(raw_text))
    try:
        resp = client.post(
            f"{api_url}/api/admin/ingest",
            json={"file_name": path.name, "doc_type": doc_type, "raw_text": raw_text},
        )
    except httpx.HTTPError as e:
        log.error("%s: request failed: %s", path.name, e)
        return False
    if resp.status_code != 200:
        log.error("%s: failed status=%s body=%s", path.name, resp.status_code, resp.text[:300])
        return False
    body = resp.json()
    log.info("%s: %s/%s chunks created doc_id=%s", path.name, body.get("chunks_created"), body.get("total_chunks"), body.get("doc_id"))
    return True


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Ingest reference documents into the knowledge base.")
    parser.add_argument("folder", nargs="?", default="docs", help="Folder of .txt/.md/.pdf files")
    parser.add_argument("--api-url", default=os.getenv("API_URL", "http://localhost:8000"), help="Backend base URL")
    parser.add_argument("--delay", type=float, default=FILE_DELAY_SECONDS, help="Seconds to wait between files")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    if not key:
        log.error("SUPABASE_SERVICE_ROLE_KEY is not set")
        return 1
    folder = Path(args.folder)
    if not folder.is_dir():
        log.error("docs folder not found: %s", folder)
        return 1
    files = list_documents(folder)
    if not files:
        log.info("no .txt, .md or .pdf files in %s", folder)
        return 0

    api_url = args.api_url.rstrip("/")
    ok = 0
    headers = {"Authorization": f"Bearer {key}"}
    with httpx.Client(timeout=300.0, headers=headers) as client:
        for i, path in enumerate(files):
            if ingest_file(client, api_url, path):
                ok += 1
            if i < len(files) - 1:
                # Spacing between files keeps embedding calls under provider rate limits
                time.sleep(args.delay)
    log.info("ingestion complete: %d/%d files", ok, len(files))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
