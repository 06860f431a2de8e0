"""Tests for pdf_extractor.text_extractor and pdf_extractor.sources."""

import pytest

from pdf_extractor.exceptions import ExtractionError, PDFCorruptedError, PDFError, PDFNotFoundError
from pdf_extractor.sources import (
    DEFAULT_DOCUMENTS,
    DocumentSource,
    default_sources,
    parse_sources,
)
from pdf_extractor.text_extractor import PDFTextExtractor

from conftest import PlainTextExtractor, make_pdf


# ---------------------------------------------------------------------------
# PDFTextExtractor
# ---------------------------------------------------------------------------


class TestPDFTextExtractor:
    def test_extracts_pages_in_order(self):
        data = make_pdf(["Seed Fund Scheme guidelines", "Electronics Component Manufacturing"])

        text = PDFTextExtractor().extract("guidelines.pdf", data)

        assert "Seed Fund Scheme guidelines" in text
        assert "Electronics Component Manufacturing" in text
        assert text.index("Seed Fund") < text.index("Electronics")

    def test_empty_pdf(self):
        assert PDFTextExtractor().extract("blank.pdf", make_pdf([""])) == ""

    def test_corrupted_bytes(self):
        with pytest.raises(PDFCorruptedError) as exc_info:
            PDFTextExtractor().extract("broken.pdf", b"this is not a pdf")
        assert exc_info.value.path == "broken.pdf"
        assert exc_info.value.original_error is not None

    def test_extract_file(self, tmp_path):
        path = tmp_path / "ecms.pdf"
        path.write_bytes(make_pdf(["ECMS incentive structure"]))
        assert "ECMS incentive structure" in PDFTextExtractor().extract_file(path)

    def test_extract_file_missing(self, tmp_path):
        with pytest.raises(PDFNotFoundError):
            PDFTextExtractor().extract_file(tmp_path / "nope.pdf")


class TestCleanText:
    def test_repairs_hyphenation(self):
        assert PDFTextExtractor()._clean_text("Start-\nup India") == "Startup India"

    def test_collapses_spaces_and_blank_lines(self):
        cleaned = PDFTextExtractor()._clean_text("Seed   fund\t\tscheme\n\n\n\n\nECMS")
        assert cleaned == "Seed fund scheme\n\nECMS"

    def test_normalizes_carriage_returns(self):
        assert PDFTextExtractor()._clean_text("a\r\nb\rc") == "a\nb\nc"

    def test_without_line_breaks(self):
        cleaned = PDFTextExtractor(preserve_line_breaks=False)._clean_text("one\n\ntwo")
        assert "\n\n" not in cleaned


# ---------------------------------------------------------------------------
# DocumentSource
# ---------------------------------------------------------------------------


class TestDocumentSource:
    def test_load_text(self, tmp_path):
        path = tmp_path / "doc.txt"
        path.write_text("seed fund", encoding="utf-8")
        source = DocumentSource(name="Seed", path=str(path))
        assert source.load_text(PlainTextExtractor()) == "seed fund"

    def test_missing_file(self, tmp_path):
        source = DocumentSource(name="Seed", path=str(tmp_path / "missing.pdf"))
        with pytest.raises(PDFNotFoundError) as exc_info:
            source.read_bytes()
        assert isinstance(exc_info.value, ExtractionError)

    def test_unreadable_path(self, tmp_path):
        source = DocumentSource(name="Folder", path=str(tmp_path))
        with pytest.raises(PDFError, match="Folder"):
            source.read_bytes()

    def test_default_sources(self, tmp_path):
        sources = default_sources(tmp_path)
        assert [s.name for s in sources] == list(DEFAULT_DOCUMENTS)
        assert sources[0].path == str(tmp_path / "Guidelines_for_Startup_India_Seed_Fund_Scheme.pdf")
        assert sources[1].path.endswith("ECMS Guidelines_26.04.2025.pdf")


class TestParseSources:
    def test_parse(self, tmp_path):
        sources = parse_sources("Seed=seed.pdf; ECMS = /abs/ecms.pdf", tmp_path)
        assert sources == [
            DocumentSource(name="Seed", path=str(tmp_path / "seed.pdf")),
            DocumentSource(name="ECMS", path="/abs/ecms.pdf"),
        ]

    def test_trailing_separator(self):
        assert len(parse_sources("Seed=seed.pdf;")) == 1

    @pytest.mark.parametrize("entries", ["seed.pdf", "=seed.pdf", "Seed="])
    def test_invalid_entry(self, entries):
        with pytest.raises(ValueError):
            parse_sources(entries)
