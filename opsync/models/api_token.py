from datetime import datetime, timedelta

from ..extensions import db
from .base import CompanyScopedMixin, TimestampMixin

class APIToken(db.Model, CompanyScopedMixin, TimestampMixin):
    __tablename__ = "api_tokens"
    id = db.Column(db.Integer, primary_key=True)
    product = db.Column(db.String(32), nullable=False)  # google/zoom
    access_token = db.Column(db.Text, default="")
    refresh_token = db.Column(db.Text, default="")
    expires_at = db.Column(db.DateTime)

    __table_args__ = (
        db.UniqueConstraint('cio_company_id', 'product', name='uq_api_tokens_company_product'),
    )

    def is_expired(self, leeway_sec=60):
        if not self.access_token or self.expires_at is None:
            return True
        return self.expires_at <= datetime.utcnow() + timedelta(seconds=leeway_sec)
