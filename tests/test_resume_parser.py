import io

import pytest
from docx import Document

from jobbot.services import resume_parser
from jobbot.services.resume_parser import extract_from_pdf, extract_text


def docx_bytes(*paragraphs: str) -> bytes:
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def test_plain_text():
    assert extract_text("Python developer\nDjango".encode("utf-8"), "resume.TXT") == "Python developer\nDjango"


def test_plain_text_must_be_utf8():
    with pytest.raises(ValueError):
        extract_text(b"\xff\xfe\xfa", "resume.txt")


def test_docx_paragraphs():
    content = docx_bytes("Ada Lovelace", "Analytical engine programmer")

    assert extract_text(content, "cv.docx").strip() == "Ada Lovelace\nAnalytical engine programmer"


def test_doc_extension_uses_docx_parser():
    assert "Ada" in extract_text(docx_bytes("Ada"), "cv.doc")


def test_unreadable_docx():
    with pytest.raises(ValueError, match="DOCX"):
        extract_text(b"not a word file", "cv.docx")


class FakePage:
    def __init__(self, text):
        self.text = text

    def extract_text(self):
        return self.text


class FakeReader:
    def __init__(self, stream):
        self.pages = [FakePage("Page one"), FakePage(None), FakePage("Page three")]


def broken(*args, **kwargs):
    raise RuntimeError("cannot parse")


def test_pdf_falls_back_to_pypdf2(monkeypatch):
    monkeypatch.setattr(resume_parser.pdfplumber, "open", broken)
    monkeypatch.setattr(resume_parser.PyPDF2, "PdfReader", FakeReader)

    assert extract_from_pdf(b"%PDF-1.4") == "Page one\n\nPage three"


def test_unreadable_pdf(monkeypatch):
    monkeypatch.setattr(resume_parser.pdfplumber, "open", broken)
    monkeypatch.setattr(resume_parser.PyPDF2, "PdfReader", broken)

    with pytest.raises(ValueError, match="PDF"):
        extract_text(b"definitely not a pdf", "resume.pdf")


@pytest.mark.parametrize("filename", ["resume.rtf", "resume"])
def test_unsupported_format(filename):
    with pytest.raises(ValueError, match="Unsupported file format"):
        extract_text(b"data", filename)
