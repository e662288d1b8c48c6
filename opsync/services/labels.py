"""Code-39 barcodes and printable asset labels.

Labels are 3in x 2in (216 x 144pt) PDFs: logo on top, barcode under it and
three lines of Courier text at the bottom left.
"""

import logging
import os
import re
from io import BytesIO

from barcode import Code39
from barcode.writer import ImageWriter, SVGWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

# To fit on the label at the printer's DPI a barcode cannot be longer than this.
BARCODE_LENGTH = 13

# sizes are in points (inches * 72)
LABEL_WIDTH = 3.0 * 72.0
LABEL_HEIGHT = 2.0 * 72.0
LABEL_MARGIN = 5.0
FONT_SIZE = 9.0

# python-barcode sizes are in mm. At 72 dpi one pixel is one point on the label;
# ImageWriter needs modules at least 2px wide. The label scales the image to fit.
PNG_OPTIONS = {
    'module_width': 0.72,
    'module_height': 15.9,
    'quiet_zone': 0.71,
    'dpi': 72,
    'write_text': False,
    'font_size': 0,
}
SVG_OPTIONS = {
    'module_width': 0.35,
    'module_height': 53.0,
    'quiet_zone': 1.0,
    'write_text': False,
    'font_size': 0,
}

DEFAULT_LOGO_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'static', 'label_logo.png')

_NON_ALNUM = re.compile(r'[^0-9A-Z]')


def barcode_for_name(name):
    """Derive the fixed-length barcode string of an asset from its name.

    Uppercased, everything but A-Z/0-9 removed, left-padded with zeros so all
    barcodes have the same width on the label.
    """
    barcode = _NON_ALNUM.sub('', (name or '').upper())
    if len(barcode) > BARCODE_LENGTH:
        logger.warning('barcode %s is %d chars, needs to be %d or under; truncating',
                       barcode, len(barcode), BARCODE_LENGTH)
        barcode = barcode[:BARCODE_LENGTH]
    return barcode.rjust(BARCODE_LENGTH, '0')


def _code39(barcode, writer):
    return Code39(barcode, writer=writer, add_checksum=False)


def barcode_png(barcode):
    img = _code39(barcode, ImageWriter()).render(PNG_OPTIONS)
    buf = BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()


def barcode_svg(barcode):
    svg = _code39(barcode, SVGWriter()).render(SVG_OPTIONS)
    if isinstance(svg, str):
        svg = svg.encode('utf-8')
    return svg


def load_logo(path=None):
    with open(path or DEFAULT_LOGO_PATH, 'rb') as f:
        return f.read()


def pdf_barcode_label(barcode, name, type_, png_bytes, logo_bytes):
    """Return the bytes of a one page PDF label for an asset."""
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=(LABEL_WIDTH, LABEL_HEIGHT), pageCompression=1)
    c.setTitle(f'{name} - Barcode Label')
    printable_width = LABEL_WIDTH - (LABEL_MARGIN * 2)

    # logo: fit the printable width, centred at the top
    logo = ImageReader(BytesIO(logo_bytes))
    lw, lh = logo.getSize()
    logo_width = printable_width
    logo_height = lh * (logo_width / lw)
    c.drawImage(logo, (LABEL_WIDTH - logo_width) / 2, LABEL_HEIGHT - logo_height - LABEL_MARGIN,
                width=logo_width, height=logo_height, mask='auto')

    # barcode: native size unless wider than the label, centred under the logo
    img = ImageReader(BytesIO(png_bytes))
    bw, bh = img.getSize()
    if bw > printable_width:
        bh = bh * (printable_width / bw)
        bw = printable_width
    c.drawImage(img, (LABEL_WIDTH - bw) / 2, LABEL_HEIGHT - bh - logo_height - (LABEL_MARGIN * 2),
                width=bw, height=bh)

    text = c.beginText()
    text.setTextOrigin(LABEL_MARGIN, FONT_SIZE * 0.9 * 3)
    text.setFont('Courier', FONT_SIZE / 1.25, leading=FONT_SIZE * 1.25)
    text.textLine(barcode)
    text.setFont('Courier', FONT_SIZE, leading=FONT_SIZE * 1.25)
    text.textLine(name)
    text.textLine(f'Type: {type_}')
    c.drawText(text)

    c.showPage()
    c.save()
    return buf.getvalue()
