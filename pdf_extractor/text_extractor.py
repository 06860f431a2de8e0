"""
Text-native PDF extraction for the policy documents.

The guideline PDFs carry selectable text, so no OCR is involved: every page
is read block by block in reading order and the result is cleaned up for the
word chunker (hyphenated line ends rejoined, whitespace runs collapsed).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF

from .exceptions import PDFCorruptedError, PDFNotFoundError

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"
TEXT_BLOCK = 0

_HYPHEN_BREAK = re.compile(r"(?<=\w)-\n(?=\w)")
_SPACE_RUN = re.compile(r"[ \t]+")
_BLANK_RUN = re.compile(r"\n{3,}")
_PARAGRAPH_BREAK = re.compile(r"\n{2,}")


class PDFTextExtractor:
    def __init__(
        self,
        sort_blocks: bool = True,
        preserve_line_breaks: bool = True,
    ) -> None:
        self.sort_blocks = sort_blocks
        self.preserve_line_breaks = preserve_line_breaks

    def extract(self, name: str, data: bytes) -> str:
        """Extract the text of an in-memory PDF; `name` shows up in errors and logs."""
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise PDFCorruptedError(name, exc) from exc

        with doc:
            try:
                pages = [self._clean_text(PAGE_SEPARATOR.join(self._text_blocks(page))) for page in doc]
            except Exception as exc:
                raise PDFCorruptedError(name, exc) from exc

        text = PAGE_SEPARATOR.join(page for page in pages if page)
        logger.debug("%s: %d pages, %d characters", name, len(pages), len(text))
        return text

    def extract_file(self, pdf_path: str | Path) -> str:
        path = Path(pdf_path)
        if not path.is_file():
            raise PDFNotFoundError(str(path))
        return self.extract(str(path), path.read_bytes())

    def _text_blocks(self, page) -> Iterator[str]:
        # block tuples: (x0, y0, x1, y1, text, block_no, block_type)
        blocks = page.get_text("blocks", sort=False)
        if self.sort_blocks:
            blocks = sorted(blocks, key=lambda b: (b[1], b[0]))
        for block in blocks:
            if len(block) < 7 or block[6] != TEXT_BLOCK:
                continue
            if block[4].strip():
                yield block[4]

    def _clean_text(self, text: str) -> str:
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        text = _HYPHEN_BREAK.sub("", text)
        text = _SPACE_RUN.sub(" ", text)
        if not self.preserve_line_breaks:
            text = _PARAGRAPH_BREAK.sub(" \n", text)
        return _BLANK_RUN.sub("\n\n", text).strip()
