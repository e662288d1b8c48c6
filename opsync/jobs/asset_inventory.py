from coolname import generate_slug
from flask import current_app

from ..errors import OpsyncError
from ..extensions import db
from ..models.asset_item import AssetItem
from ..models.company import Company
from ..services import labels
from ..services.airtable_sync import airtable_for, update_airtable
from ..services.google import GoogleDrive
from ..services.printer import print_label
from ..services.tokens import authenticate_google
from . import app_context

DRIVE_DOWNLOAD_URL = 'https://drive.google.com/uc?export=download&id={}'
ASSETS_FOLDER = 'assets'


def generate_barcode_images(fields, drive, drive_id, parent_id, logo_bytes):
    """Render the PNG, SVG and PDF label for an item and store their Drive urls in ``fields``."""
    if not fields.get('name'):
        return fields

    name = fields['name'].replace('/', '')
    type_ = fields.get('type') or ''

    png = labels.barcode_png(fields['barcode'])
    f = drive.create_or_update_file(drive_id, parent_id, f"{type_} {name}.png", 'image/png', png)
    fields['barcode_png'] = DRIVE_DOWNLOAD_URL.format(f['id'])

    svg = labels.barcode_svg(fields['barcode'])
    f = drive.create_or_update_file(drive_id, parent_id, f"{type_}, {name}.svg", 'image/svg+xml', svg)
    fields['barcode_svg'] = DRIVE_DOWNLOAD_URL.format(f['id'])

    label = labels.pdf_barcode_label(fields['barcode'], fields['name'], type_, png, logo_bytes)
    f = drive.create_or_update_file(drive_id, parent_id, f"{type_} {name} - Barcode Label.pdf", 'application/pdf', label)
    fields['barcode_pdf_label'] = DRIVE_DOWNLOAD_URL.format(f['id'])
    return fields


def expand(fields, drive, drive_id, parent_id, logo_bytes):
    fields['barcode'] = labels.barcode_for_name(fields.get('name'))
    return generate_barcode_images(fields, drive, drive_id, parent_id, logo_bytes)


def refresh_asset_items(company, airtable=None, drive=None):
    """Sync asset items from Airtable, generating barcodes and labels on the way."""
    cfg = current_app.config
    drive = drive or GoogleDrive(authenticate_google(company))

    # Labels live in the shared drive: "Automated Documents"/"assets"
    shared_drive = drive.get_drive_by_name(cfg.get('DRIVE_SHARED_DRIVE_NAME', 'Automated Documents'))
    drive_id = shared_drive['id']
    folders = drive.get_files_by_name(drive_id, ASSETS_FOLDER)
    if not folders:
        raise OpsyncError(f"no '{ASSETS_FOLDER}' folder in shared drive {shared_drive.get('name')}")
    parent_id = folders[0]['id']

    logo_bytes = labels.load_logo(cfg.get('LABEL_LOGO_PATH'))
    airtable = airtable or airtable_for(company, AssetItem)
    records = airtable.list_records(AssetItem.airtable_table(cfg), view='Grid view')

    count = 0
    for rec in records:
        fields = AssetItem.fields_from_airtable(rec.get('fields') or {})
        if not fields['name']:
            # keep the name given on an earlier run
            existing = AssetItem.query.filter_by(cio_company_id=company.id, airtable_record_id=rec['id']).first()
            fields['name'] = existing.name if existing else generate_slug(2)
            current_app.logger.info('[assets] record %s had no name, using %s', rec['id'], fields['name'])
        expand(fields, drive, drive_id, parent_id, logo_bytes)
        fields['cio_company_id'] = company.id
        fields['airtable_record_id'] = rec['id']
        AssetItem.upsert(**fields)
        count += 1

    current_app.logger.info('[assets] refreshed %d asset items for company %s', count, company.name)
    return count


def refresh_asset_items_job(company_id: int):
    """RQ entrypoint: refresh the items then mirror them back to Airtable."""
    with app_context():
        company = db.session.get(Company, company_id)
        if company is None:
            raise OpsyncError(f"company {company_id} not found")
        try:
            refresh_asset_items(company)
            update_airtable(AssetItem, company)
        except Exception:
            current_app.logger.exception('[assets] refresh failed for company %s', company.name)
            # re-raise so RQ marks the job failed
            raise


def print_asset_label_job(asset_item_id: int):
    with app_context():
        item = db.session.get(AssetItem, asset_item_id)
        if item is None:
            raise OpsyncError(f"asset item {asset_item_id} not found")
        company = db.session.get(Company, item.cio_company_id)
        return print_label(item, company)
