"""
Resume text extraction: PyMuPDF for PDFs, python-docx for .docx files and a
lossy decode for legacy .doc files.
"""
import io
import re
import zipfile

import docx
import fitz  # PyMuPDF
from docx.opc.exceptions import PackageNotFoundError

PDF_MIME = "application/pdf"
DOC_MIME = "application/msword"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ALLOWED_RESUME_TYPES = {PDF_MIME, DOC_MIME, DOCX_MIME}

EXTENSION_TYPES = {
    ".pdf": PDF_MIME,
    ".doc": DOC_MIME,
    ".docx": DOCX_MIME,
}

# Anything shorter than this after stripping is treated as a failed extraction
MIN_TEXT_LENGTH = 100

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def resolve_content_type(content_type: str, filename: str) -> str:
    """Fall back to the file extension when the browser sends a generic MIME."""
    if content_type in ALLOWED_RESUME_TYPES:
        return content_type
    ext = "." + filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
    return EXTENSION_TYPES.get(ext, content_type or "application/octet-stream")


def extract_pdf_text(pdf_bytes: bytes) -> str:
    pages = []
    pdf_document = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        for page in pdf_document:
            pages.append(page.get_text())
    finally:
        pdf_document.close()
    return "\n\n".join(pages)


def extract_docx_text(data: bytes) -> str:
    """Paragraph and table text from an Office Open XML document."""
    try:
        document = docx.Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as e:
        raise ValueError(f"unreadable Word document: {e}")

    lines = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.append(" ".join(cell.text for cell in row.cells))
    text = "\n".join(line for line in lines if line.strip())
    return _CONTROL_CHARS.sub("", text)


def extract_word_text(data: bytes) -> str:
    # Legacy binary .doc: decode what is readable and drop control bytes
    text = data.decode("utf-8", errors="ignore")
    return _CONTROL_CHARS.sub("", text)


def extract_text(data: bytes, content_type: str) -> str:
    if content_type == PDF_MIME:
        return extract_pdf_text(data)
    if content_type == DOCX_MIME:
        return extract_docx_text(data)
    return extract_word_text(data)


def meets_text_floor(text: str) -> bool:
    return len((text or "").strip()) >= MIN_TEXT_LENGTH
