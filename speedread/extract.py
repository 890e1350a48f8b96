"""
extract.py

Pulls plain text out of uploaded PDF/EPUB files so it can be fed to the
reader like pasted text.
"""

from __future__ import annotations

import logging
import re
import zipfile
from pathlib import Path
from typing import List, Tuple

from bs4 import BeautifulSoup
from ebooklib import ITEM_DOCUMENT, epub
from pypdf import PdfReader

from .errors import ExtractionError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".epub"}


def normalize_whitespace(text: str) -> str:
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n[ \t]+", "\n", text)
    text = re.sub(r"[ \t]{2,}", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def allowed_file(filename: str) -> bool:
    return Path(filename).suffix.lower() in ALLOWED_EXTENSIONS


def extract_text_from_pdf(path: str) -> str:
    try:
        reader = PdfReader(path)
    except Exception as e:
        raise ExtractionError(f"Could not open PDF: {e}") from e

    pages_text: List[str] = []
    for i, page in enumerate(reader.pages):
        try:
            txt = page.extract_text() or ""
        except Exception:
            logger.warning("Skipping unreadable PDF page %d in %s", i + 1, path)
            txt = ""
        pages_text.append(txt)
    return normalize_whitespace("\n\n".join(pages_text))


def extract_text_from_epub(path: str) -> str:
    try:
        book = epub.read_epub(path)
    except Exception as e:
        logger.warning("ebooklib could not read %s (%s); trying raw HTML", path, e)
        return extract_text_from_epub_fallback(path)

    parts: List[str] = []
    for item in book.get_items_of_type(ITEM_DOCUMENT):
        soup = BeautifulSoup(item.get_content(), "html.parser")
        for tag in soup(["script", "style", "nav"]):
            tag.decompose()
        text = normalize_whitespace(soup.get_text(separator=" ", strip=True))
        if text:
            parts.append(text)

    if parts:
        return normalize_whitespace("\n\n".join(parts))
    return extract_text_from_epub_fallback(path)


def extract_text_from_epub_fallback(path: str) -> str:
    if not zipfile.is_zipfile(path):
        raise ExtractionError("Invalid EPUB file (not a zip archive).")

    html_files: List[Tuple[str, str]] = []
    with zipfile.ZipFile(path, "r") as zf:
        for name in zf.namelist():
            if name.lower().endswith((".xhtml", ".html", ".htm")):
                html_files.append((name, zf.read(name).decode("utf-8", errors="ignore")))

    if not html_files:
        raise ExtractionError("No readable HTML/XHTML content found in EPUB.")

    html_files.sort(key=lambda x: x[0])

    parts: List[str] = []
    for _, raw_html in html_files:
        soup = BeautifulSoup(raw_html, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        cleaned = normalize_whitespace(soup.get_text(separator=" "))
        if cleaned:
            parts.append(cleaned)

    return normalize_whitespace("\n\n".join(parts))


def extract_text_from_file(path: str) -> str:
    ext = Path(path).suffix.lower()
    if ext == ".pdf":
        return extract_text_from_pdf(path)
    if ext == ".epub":
        return extract_text_from_epub(path)
    raise ExtractionError(f"Unsupported file type: {ext} (expected .pdf or .epub)")
