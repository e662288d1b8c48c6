import requests
from flask import current_app

from ..errors import PrinterError


def print_label(item, company, quantity=1):
    """Send an asset's PDF label to the company's label printer.

    Returns False (nothing sent) when the item has no label yet or the company
    has no printer configured.
    """
    if not (item.barcode_pdf_label or '').strip():
        current_app.logger.info('[print] asset %s has no barcode label, skipping', item.name)
        return False

    if not (company.printer_url or '').strip():
        current_app.logger.info('[print] company %s has no printer url, skipping', company.name)
        return False

    printer_url = f"{company.printer_url.rstrip('/')}/zebra"
    r = requests.post(printer_url, json={'url': item.barcode_pdf_label, 'quantity': quantity},
                      timeout=current_app.config.get('HTTP_TIMEOUT', 60))
    if r.status_code != 202:
        raise PrinterError(r.status_code, r.text)
    current_app.logger.info('[print] sent label for asset %s to %s', item.name, printer_url)
    return True
