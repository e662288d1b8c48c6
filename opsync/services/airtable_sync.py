from flask import current_app

from ..extensions import db
from .airtable import AirtableClient


def airtable_for(company, model):
    """Airtable client bound to the base that mirrors ``model`` for ``company``."""
    return AirtableClient(
        current_app.config.get('AIRTABLE_API_KEY'),
        model.airtable_base(company),
        timeout=current_app.config.get('HTTP_TIMEOUT', 60),
    )


def get_existing_airtable_record(row, airtable):
    """Return the Airtable record mirroring ``row`` or None."""
    table = row.airtable_table(current_app.config)
    if row.airtable_record_id:
        return airtable.get_record(table, row.airtable_record_id)
    return airtable.find_record(table, row.airtable_key, getattr(row, row.airtable_key))


def update_airtable(model, company, airtable=None):
    """Mirror every row of ``model`` owned by ``company`` into Airtable.

    Records are matched on the model's natural key. Matched records are
    updated after the model merged the existing Airtable fields into its own,
    missing ones are created. Returns ``(updated, created)`` counts.
    """
    airtable = airtable or airtable_for(company, model)
    table = model.airtable_table(current_app.config)
    rows = model.query.filter_by(cio_company_id=company.id).all()

    by_key = {}
    by_id = {}
    for rec in airtable.list_records(table):
        by_id[rec['id']] = rec
        key = (rec.get('fields') or {}).get(model.airtable_key)
        if key:
            by_key[key] = rec

    updates = []
    create_rows = []
    create_fields = []
    for row in rows:
        fields = row.to_airtable_fields()
        rec = by_id.get(row.airtable_record_id) or by_key.get(getattr(row, model.airtable_key))
        if rec:
            fields = row.update_airtable_record(fields, rec.get('fields'))
            updates.append((rec['id'], fields))
            row.airtable_record_id = rec['id']
        else:
            create_rows.append(row)
            create_fields.append(fields)

    if updates:
        airtable.update_records(table, updates)
    if create_fields:
        created = airtable.create_records(table, create_fields)
        for row, rec in zip(create_rows, created):
            row.airtable_record_id = rec['id']
    db.session.commit()

    current_app.logger.info('[airtable] %s: updated %d, created %d records for company %s',
                            table, len(updates), len(create_fields), company.name)
    return len(updates), len(create_fields)
