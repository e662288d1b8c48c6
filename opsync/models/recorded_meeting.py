from flask import current_app

from ..extensions import db
from .base import CompanyScopedMixin, TimestampMixin, UpsertMixin

AIRTABLE_FIELDS = (
    'name', 'description', 'video', 'chat_log_link', 'chat_log', 'is_recurring',
    'attendees', 'transcript', 'transcript_id', 'google_event_id', 'event_link', 'location',
)


def truncate(s, max_chars):
    if s and len(s) > max_chars:
        return s[:max_chars]
    return s


def prefer_local(local, remote):
    """Merge rule for fields that can be edited in both places:
    keep the non-empty local value, otherwise fall back to the Airtable one."""
    if local:
        return local
    return remote or ''


class RecordedMeeting(db.Model, CompanyScopedMixin, TimestampMixin, UpsertMixin):
    __tablename__ = "recorded_meetings"
    __match_on__ = ('google_event_id',)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(512), default="")
    description = db.Column(db.Text, default="")
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    video = db.Column(db.String(1024), default="")
    chat_log_link = db.Column(db.String(1024), default="")
    chat_log = db.Column(db.Text, default="")
    is_recurring = db.Column(db.Boolean, default=False)
    attendees = db.Column(db.JSON, default=list)
    transcript = db.Column(db.Text, default="")
    # Rev.ai job id, or the Zoom recording file id for Zoom transcripts
    transcript_id = db.Column(db.String(255), default="")
    # Calendar event id; Zoom meeting uuid for Zoom recordings
    google_event_id = db.Column(db.String(255), nullable=False, unique=True)
    event_link = db.Column(db.String(1024), default="")
    location = db.Column(db.String(512), default="")
    airtable_record_id = db.Column(db.String(64), default="", index=True)

    airtable_key = 'google_event_id'

    @staticmethod
    def airtable_table(config):
        return config['AIRTABLE_RECORDED_MEETINGS_TABLE']

    @staticmethod
    def airtable_base(company):
        return company.airtable_base_id_misc

    def to_airtable_fields(self):
        fields = {}
        for k in AIRTABLE_FIELDS:
            v = getattr(self, k)
            if v not in (None, '', []):
                fields[k] = v
        fields['start_time'] = self.start_time.isoformat() + 'Z' if self.start_time else None
        fields['end_time'] = self.end_time.isoformat() + 'Z' if self.end_time else None
        return {k: v for k, v in fields.items() if v is not None}

    def update_airtable_record(self, fields, existing_fields):
        """Fold the existing Airtable record into the outgoing ``fields``.

        The row itself is left untouched: the database stays authoritative
        for the full transcript text.
        """
        existing_fields = existing_fields or {}
        transcript_id = prefer_local(self.transcript_id, existing_fields.get('transcript_id'))
        transcript = prefer_local(self.transcript, existing_fields.get('transcript'))
        transcript = truncate(transcript, current_app.config.get('TRANSCRIPT_MAX_CHARS', 100000))
        if transcript_id:
            fields['transcript_id'] = transcript_id
        if transcript:
            fields['transcript'] = transcript
        return fields

    def __repr__(self) -> str:
        return f"<RecordedMeeting id={self.id} event={self.google_event_id}>"
