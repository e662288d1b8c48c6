import re
from datetime import datetime, timedelta, timezone

from flask import current_app

from ..errors import ExternalAPIError, OpsyncError
from ..extensions import db
from ..models.company import Company
from ..models.recorded_meeting import RecordedMeeting, prefer_local
from ..models.user import User
from ..services.airtable_sync import airtable_for, get_existing_airtable_record, update_airtable
from ..services.google import GoogleCalendar, GoogleDrive, drive_file_id_from_link
from ..services.revai import RevAI
from ..services.tokens import authenticate_google, authenticate_zoom
from ..services.zoom import ZoomClient, file_extension, is_supported_file_type, mime_type
from . import app_context

DRIVE_OPEN_URL = 'https://drive.google.com/open?id={}'
ZOOM_RECORDINGS_FOLDER = 'zoom_recordings'


def parse_rfc3339(value):
    """RFC 3339 string -> naive UTC datetime (how we store times)."""
    dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if dt.tzinfo:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _event_time(t):
    t = t or {}
    if t.get('dateTime'):
        return parse_rfc3339(t['dateTime'])
    # all-day events only carry a date
    return datetime.fromisoformat(t['date'])


def kebab_case(s):
    s = re.sub(r'([a-z0-9])([A-Z])', r'\1-\2', s or '')
    return '-'.join(w for w in re.split(r'[^A-Za-z0-9]+', s.lower()) if w)


def _decode(content):
    return content.decode('utf-8', errors='replace') if content else ''


def refresh_zoom_recorded_meetings(company, zoom=None, drive=None):
    """Move Zoom cloud recordings to Drive and record the meetings."""
    cfg = current_app.config
    if zoom is None:
        token = authenticate_zoom(company)
        if not token:
            # this company does not use Zoom
            current_app.logger.info('[zoom] company %s has no zoom token, skipping', company.name)
            return 0
        zoom = ZoomClient(token)

    now = datetime.utcnow()
    # the max date range is a month
    since = now - timedelta(days=cfg.get('ZOOM_RECORDINGS_LOOKBACK_DAYS', 30))
    recordings = zoom.list_account_recordings(since.date(), now.date())
    if not recordings:
        return 0

    drive = drive or GoogleDrive(authenticate_google(company))
    shared_drive_id = drive.get_drive_by_name(cfg.get('DRIVE_SHARED_DRIVE_NAME', 'Automated Documents'))['id']
    recordings_folder_id = drive.create_folder(shared_drive_id, '', ZOOM_RECORDINGS_FOLDER)

    count = 0
    for meeting in recordings:
        topic = (meeting.get('topic') or '').strip()
        if not topic:
            current_app.logger.warning('[zoom] meeting must have a topic, skipping: %s', meeting.get('uuid'))
            continue

        # resolve the host first: files are trashed in Zoom once they are in Drive
        host = User.query.filter_by(zoom_id=str(meeting.get('host_id') or ''), cio_company_id=company.id).first()
        if host is None:
            raise OpsyncError(f"no user with zoom id {meeting.get('host_id')} in company {company.name}")

        start_folder_id = drive.create_folder(shared_drive_id, recordings_folder_id, meeting['start_time'])
        base_name = kebab_case(topic.replace("'s", '').strip())

        transcript = ''
        transcript_id = ''
        video = ''
        chat_log_link = ''
        chat_log = ''
        end_time = datetime.utcnow()

        for recording in meeting.get('recording_files') or []:
            file_type = (recording.get('file_type') or '').upper()
            if not is_supported_file_type(file_type):
                current_app.logger.warning('[zoom] got bad recording file type %r for meeting %s', file_type, topic)
                continue
            status = recording.get('status')
            if status and status != 'completed':
                current_app.logger.warning('[zoom] got bad recording status %r for meeting %s', status, topic)
                continue

            current_app.logger.info('[zoom] meeting %s -> downloading recording %s', topic, recording.get('download_url'))
            content = zoom.download(recording['download_url'])

            drive_file = drive.create_or_update_file(
                shared_drive_id, start_folder_id,
                f'{base_name}{file_extension(file_type)}', mime_type(file_type), content,
            )
            link = DRIVE_OPEN_URL.format(drive_file['id'])

            if file_type == 'MP4':
                video = link
                end_time = parse_rfc3339(recording['recording_end'])
            elif file_type == 'TRANSCRIPT':
                transcript = _decode(content)
                transcript_id = str(recording.get('id') or '')
            elif file_type == 'CHAT':
                chat_log_link = link
                chat_log = _decode(content)

            zoom.delete_recording(recording.get('meeting_id') or meeting['uuid'], recording['id'])
            current_app.logger.info('[zoom] deleted meeting %s recording in Zoom, it is now in Drive at %s', topic, link)

        existing = RecordedMeeting.query.filter_by(google_event_id=meeting['uuid']).first()
        if existing is not None:
            transcript = prefer_local(transcript, existing.transcript)
            transcript_id = prefer_local(transcript_id, existing.transcript_id)

        RecordedMeeting.upsert(
            name=topic,
            description='',
            start_time=parse_rfc3339(meeting['start_time']),
            end_time=end_time,
            video=video,
            chat_log_link=chat_log_link,
            chat_log=chat_log,
            is_recurring=False,
            attendees=[host.email],
            transcript=transcript,
            transcript_id=transcript_id,
            location=f'Meeting hosted by {host.full_name()}',
            # the Zoom meeting uuid stands in for the calendar event id
            google_event_id=meeting['uuid'],
            event_link=video,
            cio_company_id=company.id,
        )
        count += 1

    current_app.logger.info('[zoom] recorded %d meetings for company %s', count, company.name)
    return count


def classify_attachments(event):
    """Return ``(video, chat_log_link)`` urls from a calendar event's attachments."""
    summary = event.get('summary') or ''
    video = ''
    chat_log_link = ''
    for attachment in event.get('attachments') or []:
        title = attachment.get('title') or ''
        if not title.startswith(summary):
            continue
        if attachment.get('mimeType') == 'video/mp4':
            video = attachment.get('fileUrl') or ''
        elif attachment.get('mimeType') == 'text/plain':
            chat_log_link = attachment.get('fileUrl') or ''
    return video, chat_log_link


def _download(drive, link):
    # best effort: a missing or unreadable file is treated as empty
    try:
        return drive.download_file_by_id(drive_file_id_from_link(link))
    except ExternalAPIError as e:
        current_app.logger.warning('[drive] could not download %s: %s', link, e)
        return b''


def reconcile_transcript(meeting, video_contents, revai):
    """Decide what to do about a meeting's transcript.

    Returns one of ``no-video``, ``submitted``, ``polled`` or ``complete``.
    """
    if not video_contents:
        return 'no-video'

    if not meeting.transcript_id and not meeting.transcript:
        job = revai.create_job(video_contents)
        meeting.transcript_id = str(job['id'])
        meeting.save()
        current_app.logger.info('[revai] started transcript job %s for %s', meeting.transcript_id, meeting.name)
        return 'submitted'

    if not meeting.transcript:
        try:
            transcript = revai.get_transcript(meeting.transcript_id)
        except ExternalAPIError as e:
            current_app.logger.warning('[revai] transcript %s not available: %s', meeting.transcript_id, e)
            transcript = ''
        meeting.transcript = (transcript or '').strip()
        meeting.save()
        return 'polled'

    return 'complete'


def refresh_google_recorded_meetings(company, gcal=None, drive=None, revai=None, airtable=None):
    """Record calendar events that have a meeting recording attached and transcribe them."""
    cfg = current_app.config
    airtable = airtable or airtable_for(company, RecordedMeeting)
    update_airtable(RecordedMeeting, company, airtable)

    revai = revai or RevAI(cfg.get('REVAI_API_KEY'))
    calendar_client = gcal or GoogleCalendar(authenticate_google(company))
    time_max = datetime.now(timezone.utc).isoformat()

    count = 0
    for calendar in calendar_client.list_calendars():
        if not calendar['id'].endswith(company.gsuite_domain or ''):
            continue

        if gcal is None:
            # get a new token, the previous one has likely expired
            calendar_client = GoogleCalendar(authenticate_google(company))

        current_app.logger.info('[calendar] getting events for %s', calendar['id'])
        for event in calendar_client.list_events(calendar['id'], time_max):
            # we only care about events with attachments
            if not event.get('attachments'):
                continue

            video, chat_log_link = classify_attachments(event)
            if not video:
                continue

            attendees = [a['email'] for a in event.get('attendees') or [] if not a.get('resource') and a.get('email')]

            drive_client = drive or GoogleDrive(authenticate_google(company))
            chat_log = ''
            if chat_log_link:
                chat_log = _decode(_download(drive_client, chat_log_link)).strip()
            video_contents = _download(drive_client, video)

            fields = dict(
                name=(event.get('summary') or '').strip(),
                description=(event.get('description') or '').strip(),
                start_time=_event_time(event.get('start')),
                end_time=_event_time(event.get('end')),
                video=video,
                chat_log_link=chat_log_link,
                chat_log=chat_log,
                is_recurring=bool(event.get('recurringEventId')),
                attendees=attendees,
                transcript='',
                transcript_id='',
                location=event.get('location') or '',
                google_event_id=event['id'],
                event_link=event.get('htmlLink') or '',
                cio_company_id=company.id,
            )

            existing = RecordedMeeting.query.filter_by(google_event_id=event['id']).first()
            if existing is not None:
                fields['transcript'] = existing.transcript or ''
                fields['transcript_id'] = existing.transcript_id or ''
                if not fields['transcript'] or not fields['transcript_id']:
                    record = get_existing_airtable_record(existing, airtable)
                    if record:
                        at_fields = record.get('fields') or {}
                        fields['transcript'] = prefer_local(fields['transcript'], at_fields.get('transcript'))
                        fields['transcript_id'] = prefer_local(fields['transcript_id'], at_fields.get('transcript_id'))

            meeting = RecordedMeeting.upsert(**fields)
            reconcile_transcript(meeting, video_contents, revai)
            count += 1

    current_app.logger.info('[calendar] recorded %d meetings for company %s', count, company.name)
    return count


def _company(company_id):
    company = db.session.get(Company, company_id)
    if company is None:
        raise OpsyncError(f"company {company_id} not found")
    return company


def refresh_zoom_recorded_meetings_job(company_id: int):
    with app_context():
        company = _company(company_id)
        try:
            if refresh_zoom_recorded_meetings(company):
                update_airtable(RecordedMeeting, company)
        except Exception:
            current_app.logger.exception('[zoom] refresh failed for company %s', company.name)
            raise


def refresh_google_recorded_meetings_job(company_id: int):
    with app_context():
        company = _company(company_id)
        try:
            refresh_google_recorded_meetings(company)
        except Exception:
            current_app.logger.exception('[calendar] refresh failed for company %s', company.name)
            raise
