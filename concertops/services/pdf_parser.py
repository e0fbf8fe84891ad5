import fitz  # PyMuPDF


def extract_text_from_pdf(file_bytes: bytes) -> str:
    """Plain text of every page, pages separated by a blank line so the
    chunker treats page breaks as paragraph breaks."""
    parts = []
    with fitz.open(stream=file_bytes, filetype="pdf") as doc:
        for page in doc:
            text = (page.get_text("text") or "").strip()
            if text:
                parts.append(text)
    return "\n\n".join(parts)
