"""
PDF signer used as the per-file signing operation of a batch.

Signs one PDF document by:
1. Reading entity data from a text file
2. Filling form fields if available
3. Placing the signature in signature fields or a fallback location
4. Flattening the PDF to make it non-editable
"""

import io
import os
from typing import Dict, List, Optional, Tuple

import fitz  # PyMuPDF
from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

SIGNATURE_KEYWORDS = ['signature', 'sign here', 'by:', 'signed by', 'name:', 'title:', 'date:']

COMPANY_FIELD_PATTERNS = [
    'recipient', 'receiving party', 'offeree', 'representatives',
    'representative', 'company', 'name', 'entity', 'party',
    'organization', 'corporation', 'firm', 'business'
]

ADDRESS_FIELD_PATTERNS = [
    'address', 'location', 'street', 'city', 'state', 'zip',
    'postal', 'residence', 'place'
]

FIELD_MAPPINGS = {
    'title': ['title', 'position'],
    'date': ['date'],
    'signature': ['company', 'name'],
}


class SignerError(Exception):
    """Raised when the signer itself is unusable, independent of any PDF."""


def load_entity_data(entity_file: str) -> Dict[str, str]:
    """
    Load entity data from a text file with key=value pairs.

    Blank lines and lines starting with ``#`` are ignored.

    Args:
        entity_file: Path to the entity file

    Returns:
        Dictionary containing entity data
    """
    entity_data = {}

    try:
        with open(entity_file, 'r', encoding='utf-8') as file:
            for line_num, line in enumerate(file, 1):
                line = line.strip()
                if not line or line.startswith('#'):
                    continue

                if '=' in line:
                    key, value = line.split('=', 1)
                    entity_data[key.strip()] = value.strip()
                else:
                    print(f"Warning: Invalid format on line {line_num}: {line}")

    except FileNotFoundError:
        raise SignerError(f"Entity file '{entity_file}' not found.")
    except (OSError, UnicodeDecodeError) as e:
        raise SignerError(f"Error reading entity file: {e}")

    return entity_data


def render_signature_stamp(signature_image: str, width: float, height: float) -> bytes:
    """
    Render the signature image into a one page PDF of the given box size.

    The image keeps its aspect ratio and is centred in the box.

    Args:
        signature_image: Path to the signature image
        width: Width of the box in points
        height: Height of the box in points

    Returns:
        PDF bytes of the stamp
    """
    with Image.open(signature_image) as img:
        img_width, img_height = img.size

    scale = min(width / img_width, height / img_height) if img_width and img_height else 1.0
    draw_width = img_width * scale
    draw_height = img_height * scale

    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(width, height))
    c.drawImage(
        ImageReader(signature_image),
        (width - draw_width) / 2,
        (height - draw_height) / 2,
        width=draw_width,
        height=draw_height,
        mask='auto',
    )
    c.save()
    return buffer.getvalue()


class PdfSigner:
    """Signs PDF files with a fixed entity file and signature image."""

    def __init__(self, entity_file: str, signature_image: str, flatten: bool = True):
        self.entity_file = entity_file
        self.signature_image = signature_image
        self.flatten = flatten
        self._entity_data: Optional[Dict[str, str]] = None

    @property
    def entity_data(self) -> Dict[str, str]:
        if self._entity_data is None:
            self._entity_data = load_entity_data(self.entity_file)
        return self._entity_data

    def validate(self) -> None:
        """
        Check that the signer can be used at all.

        Raises:
            SignerError: If the entity file or signature image is unusable
        """
        missing_files = [f for f in (self.entity_file, self.signature_image) if not os.path.exists(f)]
        if missing_files:
            raise SignerError("Missing required files: " + ", ".join(missing_files))

        try:
            with Image.open(self.signature_image) as img:
                img.verify()
        except (OSError, SyntaxError) as e:
            raise SignerError(f"Signature image '{self.signature_image}' is not usable: {e}")

        self._entity_data = load_entity_data(self.entity_file)

    def __call__(self, input_path: str, output_path: str) -> bool:
        return self.sign(input_path, output_path)

    def find_matching_entity_value(self, field_name: str) -> Optional[str]:
        """
        Find the entity value for a form field name.

        Args:
            field_name: Name of the form field

        Returns:
            Matching value from entity data or None
        """
        field_name_lower = field_name.lower()

        for key, value in self.entity_data.items():
            if key.lower() == field_name_lower:
                return value

        for pattern in COMPANY_FIELD_PATTERNS:
            if pattern in field_name_lower:
                for key, value in self.entity_data.items():
                    if key.lower() in ['company', 'name', 'entity']:
                        return value

        for pattern in ADDRESS_FIELD_PATTERNS:
            if pattern in field_name_lower:
                for key, value in self.entity_data.items():
                    if key.lower() in ['address', 'location']:
                        return value

        for pattern, keys in FIELD_MAPPINGS.items():
            if pattern in field_name_lower:
                for key in keys:
                    for entity_key, entity_value in self.entity_data.items():
                        if key.lower() in entity_key.lower():
                            return entity_value

        return None

    def fill_form_fields(self, pdf_doc: fitz.Document) -> bool:
        """Fill text form fields with entity data, True if any was filled."""
        form_filled = False

        for page in pdf_doc:
            for widget in list(page.widgets()):
                if widget.field_type != fitz.PDF_WIDGET_TYPE_TEXT:
                    continue
                value = self.find_matching_entity_value(widget.field_name or '')
                if not value:
                    continue
                widget.field_value = value
                widget.update()
                form_filled = True
                print(f"Filled field '{widget.field_name}' with '{value}'")

        return form_filled

    def stamp(self, page: fitz.Page, rect: fitz.Rect) -> None:
        """Draw the signature stamp into ``rect`` of ``page``."""
        stamp_bytes = render_signature_stamp(self.signature_image, rect.width, rect.height)
        with fitz.open("pdf", stamp_bytes) as stamp_doc:
            page.show_pdf_page(rect, stamp_doc, 0)

    def place_signature(self, pdf_doc: fitz.Document) -> bool:
        """Place the signature in every signature field, True if any was found."""
        signature_placed = False

        for page in pdf_doc:
            rects = [w.rect for w in page.widgets() if w.field_type == fitz.PDF_WIDGET_TYPE_SIGNATURE]
            for rect in rects:
                self.stamp(page, rect)
                signature_placed = True
                print(f"Placed signature in signature field on page {page.number + 1}")

        return signature_placed

    def find_signature_location(self, pdf_doc: fitz.Document) -> Tuple[fitz.Page, fitz.Rect]:
        """
        Choose where the signature goes when the document has no fields.

        The signature goes below the last signature keyword found in the
        document, or at the bottom-left of the last page.
        """
        signature_locations: List[Tuple[int, fitz.Rect]] = []

        for page in pdf_doc:
            for keyword in SIGNATURE_KEYWORDS:
                for inst in page.search_for(keyword, flags=fitz.TEXT_DEHYPHENATE):
                    signature_locations.append((page.number, inst))

        if signature_locations:
            page_num, rect = signature_locations[-1]
            return pdf_doc[page_num], fitz.Rect(rect.x0, rect.y1 + 10, rect.x0 + 150, rect.y1 + 60)

        last_page = pdf_doc[-1]
        height = last_page.rect.height
        return last_page, fitz.Rect(50, height - 150, 200, height - 100)

    def fallback_placement(self, pdf_doc: fitz.Document) -> None:
        """Place signature and entity text when no form fields are available."""
        print("No form fields found. Using fallback placement...")

        target_page, sig_rect = self.find_signature_location(pdf_doc)
        self.stamp(target_page, sig_rect)
        print(f"Placed signature on page {target_page.number + 1}")

        self.add_entity_text(target_page, sig_rect)

    def add_entity_text(self, page: fitz.Page, sig_rect: fitz.Rect) -> None:
        """Write every entity ``key: value`` line below the signature."""
        y_position = sig_rect.y1 + 20

        for key, value in self.entity_data.items():
            page.insert_text(
                fitz.Point(sig_rect.x0, y_position),
                f"{key}: {value}",
                fontsize=10,
                color=(0, 0, 0)
            )
            y_position += 20

    def flatten_pdf(self, pdf_doc: fitz.Document) -> fitz.Document:
        """
        Flatten the PDF so form fields are no longer editable.

        Every page is rendered at 2x zoom and placed as an image into a new
        document.

        Args:
            pdf_doc: PyMuPDF document object

        Returns:
            The flattened document
        """
        flattened_doc = fitz.open()
        mat = fitz.Matrix(2.0, 2.0)

        for page in pdf_doc:
            pix = page.get_pixmap(matrix=mat)
            new_page = flattened_doc.new_page(width=page.rect.width, height=page.rect.height)
            new_page.insert_image(new_page.rect, pixmap=pix)

        print("PDF flattened successfully")
        return flattened_doc

    def sign(self, input_path: str, output_path: str) -> bool:
        """
        Sign one PDF file.

        Args:
            input_path: PDF to sign
            output_path: Path for the signed PDF

        Returns:
            True if the signed PDF was written, False otherwise
        """
        pdf_doc = None
        try:
            print(f"Signing {input_path}...")
            pdf_doc = fitz.open(input_path)
            if not pdf_doc.is_pdf:
                raise ValueError(f"'{input_path}' is not a PDF document")

            form_fields_filled = self.fill_form_fields(pdf_doc)
            signature_fields_filled = self.place_signature(pdf_doc)

            if not form_fields_filled and not signature_fields_filled:
                self.fallback_placement(pdf_doc)

            if self.flatten:
                flattened_doc = self.flatten_pdf(pdf_doc)
                pdf_doc.close()
                pdf_doc = flattened_doc

            pdf_doc.save(output_path)
            print(f"Successfully created signed PDF: {output_path}")
            return True

        except Exception as e:
            print(f"Error processing PDF: {e}")
            return False

        finally:
            if pdf_doc is not None:
                pdf_doc.close()
