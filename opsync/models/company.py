from ..extensions import db
from .base import TimestampMixin

class Company(db.Model, TimestampMixin):
    __tablename__ = "companies"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    gsuite_domain = db.Column(db.String(255), default="")
    # base url of the label printer service, e.g. https://printer.internal
    printer_url = db.Column(db.String(512), default="")
    airtable_base_id_assets = db.Column(db.String(64), default="")
    airtable_base_id_misc = db.Column(db.String(64), default="")
    # Slack workspace (team id) whose slash commands act on this company
    slack_team_id = db.Column(db.String(32), default="", index=True)

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name}>"
