import fitz
import pytest
from PIL import Image


def make_pdf(path, lines=("Agreement",), pages=1):
    doc = fitz.open()
    for _ in range(pages):
        page = doc.new_page()
        for offset, line in enumerate(lines):
            page.insert_text(fitz.Point(72, 72 + offset * 20), line, fontsize=11)
    doc.save(str(path))
    doc.close()
    return str(path)


@pytest.fixture
def signature_image(tmp_path):
    path = tmp_path / "signature.png"
    Image.new("RGB", (300, 100), "white").save(path)
    return str(path)


@pytest.fixture
def entity_file(tmp_path):
    path = tmp_path / "entity.txt"
    path.write_text(
        "# signing party\n"
        "company=Acme Corp\n"
        "address=1 Main Street\n"
        "title=Director\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def pdf_file(tmp_path):
    return make_pdf(tmp_path / "contract.pdf", lines=("Agreement", "Signature:"))


class RecordingInvoker:
    """Signing stub returning scripted results and recording every call."""

    def __init__(self, results=None, default=True):
        self.results = list(results or [])
        self.default = default
        self.calls = []

    def __call__(self, input_path, output_path):
        self.calls.append((input_path, output_path))
        if self.results:
            return self.results.pop(0)
        return self.default


@pytest.fixture
def recorder():
    return RecordingInvoker
