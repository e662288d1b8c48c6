from ..extensions import db
from .base import CompanyScopedMixin, TimestampMixin

class User(db.Model, CompanyScopedMixin, TimestampMixin):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(120), default="")
    last_name = db.Column(db.String(120), default="")
    zoom_id = db.Column(db.String(64), index=True)

    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
