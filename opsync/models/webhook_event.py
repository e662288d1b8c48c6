from datetime import datetime

from ..extensions import db

class WebhookEvent(db.Model):
    __tablename__ = "webhook_events"
    id = db.Column(db.Integer, primary_key=True)
    provider = db.Column(db.String(32), nullable=False, index=True)  # github/slack/docusign/hiring/airtable/cron
    event_type = db.Column(db.String(128), default="")
    delivery_id = db.Column(db.String(255), default="")
    payload = db.Column(db.JSON)
    received_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @classmethod
    def record(cls, provider, event_type="", delivery_id="", payload=None):
        ev = cls(provider=provider, event_type=event_type or "", delivery_id=delivery_id or "", payload=payload)
        db.session.add(ev)
        db.session.commit()
        return ev
