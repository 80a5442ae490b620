"""
Text extraction from uploaded resume files
"""

import io
import logging
from pathlib import Path

import PyPDF2
import pdfplumber
from docx import Document

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ('.pdf', '.doc', '.docx', '.txt')


def extract_text(file_content: bytes, filename: str) -> str:
    """
    Extract plain text from a resume file

    Args:
        file_content: Raw file bytes
        filename: Original filename, its extension picks the parser

    Returns:
        Extracted text

    Raises:
        ValueError: Unsupported format or unreadable file
    """
    file_ext = Path(filename).suffix.lower()

    if file_ext == '.pdf':
        return extract_from_pdf(file_content)
    elif file_ext in ('.doc', '.docx'):
        return extract_from_docx(file_content)
    elif file_ext == '.txt':
        try:
            return file_content.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ValueError("Text resume is not valid UTF-8") from e
    else:
        raise ValueError(f"Unsupported file format: {file_ext or 'none'}")


def extract_from_pdf(pdf_bytes: bytes) -> str:
    """pdfplumber first, PyPDF2 when it cannot read the file"""
    text = ""

    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text += page_text + "\n"
    except Exception as e:
        logger.warning(f"pdfplumber failed: {e}")

        text = ""
        try:
            pdf_reader = PyPDF2.PdfReader(io.BytesIO(pdf_bytes))
            for page in pdf_reader.pages:
                text += (page.extract_text() or "") + "\n"
        except Exception as e2:
            logger.error(f"PyPDF2 also failed: {e2}")
            raise ValueError("Could not extract text from PDF") from e2

    return text.strip()


def extract_from_docx(docx_bytes: bytes) -> str:
    try:
        doc = Document(io.BytesIO(docx_bytes))
    except Exception as e:
        logger.error(f"Error extracting from DOCX: {e}")
        raise ValueError("Could not extract text from DOCX") from e

    return "\n".join(paragraph.text for paragraph in doc.paragraphs)
