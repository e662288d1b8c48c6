from ..extensions import db
from ..services.airtable import (
    attachment_to_url, url_to_attachment, barcode_to_text, text_to_barcode,
    collaborator_to_email, email_to_collaborator,
)
from .base import CompanyScopedMixin, TimestampMixin, UpsertMixin

# columns mirrored 1:1 into the Airtable "Items" table
PLAIN_FIELDS = (
    'name', 'status', 'manufacturer', 'model_number', 'serial_number',
    'purchase_price', 'notes', 'qualities', 'conference_room_using',
)
ATTACHMENT_FIELDS = ('picture', 'barcode_png', 'barcode_svg', 'barcode_pdf_label')


class AssetItem(db.Model, CompanyScopedMixin, TimestampMixin, UpsertMixin):
    __tablename__ = "asset_items"
    __match_on__ = ('cio_company_id', 'name')

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    picture = db.Column(db.String(1024), default="")
    type = db.Column(db.String(120), default="")
    qualities = db.Column(db.JSON, default=list)
    status = db.Column(db.String(64), default="")
    manufacturer = db.Column(db.String(255), default="")
    model_number = db.Column(db.String(255), default="")
    serial_number = db.Column(db.String(255), default="")
    purchase_price = db.Column(db.Float, default=0.0)
    current_employee_borrowing = db.Column(db.String(255), default="")
    conference_room_using = db.Column(db.JSON, default=list)
    notes = db.Column(db.Text, default="")

    barcode = db.Column(db.String(32), default="")
    barcode_png = db.Column(db.String(1024), default="")
    barcode_svg = db.Column(db.String(1024), default="")
    barcode_pdf_label = db.Column(db.String(1024), default="")

    airtable_record_id = db.Column(db.String(64), default="", index=True)

    __table_args__ = (
        db.UniqueConstraint('cio_company_id', 'name', name='uq_asset_items_company_name'),
    )

    airtable_key = 'name'

    @staticmethod
    def airtable_table(config):
        return config['AIRTABLE_ASSET_ITEMS_TABLE']

    @staticmethod
    def airtable_base(company):
        return company.airtable_base_id_assets

    @classmethod
    def fields_from_airtable(cls, fields):
        """Map an Airtable record's ``fields`` to model column values."""
        out = {}
        for k in PLAIN_FIELDS:
            if k in fields:
                out[k] = fields[k]
        for k in ATTACHMENT_FIELDS:
            if k in fields:
                out[k] = attachment_to_url(fields[k])
        out['name'] = (fields.get('name') or '').strip()
        out['type'] = fields.get('type') or ''
        out['barcode'] = barcode_to_text(fields.get('barcode'))
        out['current_employee_borrowing'] = collaborator_to_email(fields.get('current_employee_borrowing'))
        out['purchase_price'] = float(fields.get('purchase_price') or 0.0)
        return out

    def to_airtable_fields(self):
        fields = {}
        for k in PLAIN_FIELDS:
            v = getattr(self, k)
            if v not in (None, '', []):
                fields[k] = v
        for k in ATTACHMENT_FIELDS:
            v = getattr(self, k)
            if v:
                fields[k] = url_to_attachment(v)
        if self.type:
            fields['type'] = self.type
        if self.barcode:
            fields['barcode'] = text_to_barcode(self.barcode)
        if self.current_employee_borrowing:
            fields['current_employee_borrowing'] = email_to_collaborator(self.current_employee_borrowing)
        return fields

    def update_airtable_record(self, fields, existing_fields):
        # Airtable owns nothing extra for asset items.
        return fields

    def __repr__(self) -> str:
        return f"<AssetItem id={self.id} name={self.name} barcode={self.barcode}>"
