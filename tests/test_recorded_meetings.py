import os
import sys
from datetime import datetime

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fakes import FakeAirtable, FakeCalendar, FakeDrive, FakeRevAI, FakeZoom
from opsync.errors import ExternalAPIError, OpsyncError
from opsync.extensions import db
from opsync.jobs import recorded_meetings as rm
from opsync.models.recorded_meeting import RecordedMeeting, prefer_local, truncate
from opsync.models.user import User
from opsync.services.google import drive_file_id_from_link
from opsync.services.zoom import FILE_TYPES, _meeting_path_id, file_extension, is_supported_file_type, mime_type


def _meeting(company, **kw):
    fields = dict(
        cio_company_id=company.id,
        name='Weekly Sync',
        start_time=datetime(2026, 10, 1, 22, 0),
        end_time=datetime(2026, 10, 1, 23, 0),
        google_event_id='evt1',
        video='https://drive.google.com/open?id=vid1',
    )
    fields.update(kw)
    return RecordedMeeting.upsert(**fields)


def test_prefer_local():
    assert prefer_local('fresh', 'stale') == 'fresh'
    assert prefer_local('', 'stale') == 'stale'
    assert prefer_local(None, None) == ''


def test_truncate():
    assert truncate('abcdef', 3) == 'abc'
    assert truncate('ab', 3) == 'ab'
    assert truncate('', 3) == ''


def test_update_airtable_record_merges_transcript_fields(app, company):
    m = _meeting(company, transcript='from db', transcript_id='')
    fields = m.update_airtable_record(m.to_airtable_fields(), {'transcript': 'old', 'transcript_id': 'job-9'})
    assert fields['transcript'] == 'from db'
    assert fields['transcript_id'] == 'job-9'
    # the row is not touched
    assert m.transcript_id == ''


def test_update_airtable_record_truncates_transcript(app, company):
    app.config['TRANSCRIPT_MAX_CHARS'] = 5
    m = _meeting(company, transcript='0123456789')
    fields = m.update_airtable_record(m.to_airtable_fields(), {})
    assert fields['transcript'] == '01234'
    assert m.transcript == '0123456789'


def test_to_airtable_fields_formats_times(app, company):
    fields = _meeting(company).to_airtable_fields()
    assert fields['start_time'] == '2026-10-01T22:00:00Z'
    assert fields['end_time'] == '2026-10-01T23:00:00Z'
    assert fields['google_event_id'] == 'evt1'


@pytest.mark.parametrize('link,expected', [
    ('https://drive.google.com/open?id=abc123', 'abc123'),
    ('https://drive.google.com/file/d/abc123/view?usp=drive_web', 'abc123'),
    ('https://drive.google.com/file/d/abc123/view', 'abc123'),
    ('abc123', 'abc123'),
])
def test_drive_file_id_from_link(link, expected):
    assert drive_file_id_from_link(link) == expected


def test_classify_attachments():
    event = {
        'summary': 'Weekly Sync',
        'attachments': [
            {'title': 'Weekly Sync - Recording', 'mimeType': 'video/mp4', 'fileUrl': 'https://v'},
            {'title': 'Weekly Sync - Chat', 'mimeType': 'text/plain', 'fileUrl': 'https://c'},
            {'title': 'Slides', 'mimeType': 'video/mp4', 'fileUrl': 'https://other'},
        ],
    }
    assert rm.classify_attachments(event) == ('https://v', 'https://c')
    assert rm.classify_attachments({'summary': 'x', 'attachments': []}) == ('', '')


def test_kebab_case():
    assert rm.kebab_case('Weekly Sync') == 'weekly-sync'
    assert rm.kebab_case('AllHands Q3') == 'all-hands-q3'
    assert rm.kebab_case('Pat Design  Review!') == 'pat-design-review'


def test_parse_rfc3339_is_naive_utc():
    assert rm.parse_rfc3339('2026-10-01T15:00:00-07:00') == datetime(2026, 10, 1, 22, 0)
    assert rm.parse_rfc3339('2026-10-01T15:00:00Z') == datetime(2026, 10, 1, 15, 0)


def test_zoom_file_types():
    assert file_extension('mp4') == '-video.mp4'
    assert mime_type('TRANSCRIPT') == 'text/vtt'
    assert mime_type('CHAT') == 'text/plain'
    assert is_supported_file_type('CSV')
    assert not is_supported_file_type('SUMMARY')
    assert set(FILE_TYPES) == {'MP4', 'M4A', 'TIMELINE', 'TRANSCRIPT', 'CHAT', 'CC', 'CSV'}


def test_meeting_path_id_double_encodes():
    assert _meeting_path_id('abc==') == 'abc%3D%3D'
    assert _meeting_path_id('/ab//c') == '%252Fab%252F%252Fc'


def test_reconcile_without_video(app, company):
    revai = FakeRevAI()
    assert rm.reconcile_transcript(_meeting(company), b'', revai) == 'no-video'
    assert revai.jobs == []


def test_reconcile_submits_job(app, company):
    revai = FakeRevAI()
    m = _meeting(company)
    assert rm.reconcile_transcript(m, b'video', revai) == 'submitted'
    assert revai.jobs == [b'video']
    assert db.session.get(RecordedMeeting, m.id).transcript_id == 'job-1'


def test_reconcile_polls_job(app, company):
    revai = FakeRevAI(transcript='  hello world \n')
    m = _meeting(company, transcript_id='job-5')
    assert rm.reconcile_transcript(m, b'video', revai) == 'polled'
    assert revai.polled == ['job-5']
    assert m.transcript == 'hello world'


def test_reconcile_poll_error_is_empty(app, company):
    class FailingRevAI(FakeRevAI):
        def get_transcript(self, job_id):
            raise ExternalAPIError('revai', 404, 'job not found')

    m = _meeting(company, transcript_id='job-5')
    assert rm.reconcile_transcript(m, b'video', FailingRevAI()) == 'polled'
    assert m.transcript == ''


def test_reconcile_complete(app, company):
    revai = FakeRevAI()
    m = _meeting(company, transcript='done', transcript_id='job-5')
    assert rm.reconcile_transcript(m, b'video', revai) == 'complete'
    assert revai.jobs == [] and revai.polled == []


def _calendar():
    events = {'team@acme.com': [
        {
            'id': 'evt1',
            'summary': 'Weekly Sync',
            'description': ' notes ',
            'htmlLink': 'https://calendar.google.com/event?eid=evt1',
            'location': 'Room 1',
            'recurringEventId': 'series1',
            'start': {'dateTime': '2026-10-01T15:00:00-07:00'},
            'end': {'dateTime': '2026-10-01T16:00:00-07:00'},
            'attendees': [
                {'email': 'pat@acme.com'},
                {'email': 'room1@resource.calendar.google.com', 'resource': True},
            ],
            'attachments': [
                {'title': 'Weekly Sync - Recording', 'mimeType': 'video/mp4',
                 'fileUrl': 'https://drive.google.com/open?id=vid1'},
                {'title': 'Weekly Sync - Chat', 'mimeType': 'text/plain',
                 'fileUrl': 'https://drive.google.com/file/d/chat1/view?usp=drive_web'},
            ],
        },
        {'id': 'evt2', 'summary': 'Lunch', 'start': {'date': '2026-10-02'}, 'end': {'date': '2026-10-03'}},
        {'id': 'evt3', 'summary': 'Standup',
         'start': {'dateTime': '2026-10-02T09:00:00Z'}, 'end': {'dateTime': '2026-10-02T09:15:00Z'},
         'attachments': [{'title': 'Agenda', 'mimeType': 'application/pdf', 'fileUrl': 'https://x'}]},
    ]}
    calendars = [{'id': 'team@acme.com'}, {'id': 'someone@gmail.com'}]
    return FakeCalendar(calendars, events)


def _drive():
    return FakeDrive(files={'vid1': b'video-bytes', 'chat1': b'10:00 hi\n'})


def test_refresh_google_recorded_meetings_records_and_submits(app, company):
    revai = FakeRevAI()
    count = rm.refresh_google_recorded_meetings(company, gcal=_calendar(), drive=_drive(),
                                                revai=revai, airtable=FakeAirtable())
    assert count == 1

    m = RecordedMeeting.query.filter_by(google_event_id='evt1').one()
    assert m.name == 'Weekly Sync'
    assert m.description == 'notes'
    assert m.start_time == datetime(2026, 10, 1, 22, 0)
    assert m.end_time == datetime(2026, 10, 1, 23, 0)
    assert m.is_recurring is True
    assert m.attendees == ['pat@acme.com']
    assert m.chat_log == '10:00 hi'
    assert m.chat_log_link == 'https://drive.google.com/file/d/chat1/view?usp=drive_web'
    assert m.transcript_id == 'job-1'
    assert revai.jobs == [b'video-bytes']


def test_refresh_google_recorded_meetings_polls_on_next_run(app, company):
    airtable = FakeAirtable()
    rm.refresh_google_recorded_meetings(company, gcal=_calendar(), drive=_drive(),
                                        revai=FakeRevAI(), airtable=airtable)
    revai = FakeRevAI(transcript='hello world')
    rm.refresh_google_recorded_meetings(company, gcal=_calendar(), drive=_drive(),
                                        revai=revai, airtable=airtable)

    m = RecordedMeeting.query.filter_by(google_event_id='evt1').one()
    assert revai.jobs == []
    assert revai.polled == ['job-1']
    assert m.transcript == 'hello world'
    # the first run's row was mirrored to Airtable at the start of the second
    assert airtable.created[0]['fields']['google_event_id'] == 'evt1'


def test_refresh_google_recorded_meetings_keeps_airtable_transcript(app, company):
    _meeting(company)
    airtable = FakeAirtable([{'id': 'recM', 'fields': {
        'google_event_id': 'evt1', 'transcript': 'typed in airtable', 'transcript_id': 'job-77',
    }}])
    revai = FakeRevAI()
    rm.refresh_google_recorded_meetings(company, gcal=_calendar(), drive=_drive(), revai=revai, airtable=airtable)

    m = RecordedMeeting.query.filter_by(google_event_id='evt1').one()
    assert m.transcript == 'typed in airtable'
    assert m.transcript_id == 'job-77'
    assert m.airtable_record_id == 'recM'
    assert revai.jobs == [] and revai.polled == []


def test_refresh_google_skips_other_domains(app, company):
    company.gsuite_domain = 'example.org'
    db.session.commit()
    count = rm.refresh_google_recorded_meetings(company, gcal=_calendar(), drive=_drive(),
                                                revai=FakeRevAI(), airtable=FakeAirtable())
    assert count == 0


def _zoom_meetings():
    return [
        {
            'uuid': 'abc==',
            'topic': "Pat's Design Review",
            'start_time': '2026-10-02T17:00:00Z',
            'host_id': 'zhost',
            'recording_files': [
                {'id': 'f1', 'meeting_id': 'abc==', 'file_type': 'MP4', 'status': 'completed',
                 'download_url': 'https://zoom.test/f1', 'recording_end': '2026-10-02T18:00:00Z'},
                {'id': 'f2', 'meeting_id': 'abc==', 'file_type': 'TRANSCRIPT', 'status': 'completed',
                 'download_url': 'https://zoom.test/f2'},
                {'id': 'f3', 'meeting_id': 'abc==', 'file_type': 'CHAT', 'status': 'completed',
                 'download_url': 'https://zoom.test/f3'},
                {'id': 'f4', 'meeting_id': 'abc==', 'file_type': 'SUMMARY', 'status': 'completed',
                 'download_url': 'https://zoom.test/f4'},
                {'id': 'f5', 'meeting_id': 'abc==', 'file_type': 'M4A', 'status': 'processing',
                 'download_url': 'https://zoom.test/f5'},
            ],
        },
        {'uuid': 'notopic==', 'topic': '  ', 'start_time': '2026-10-03T17:00:00Z', 'host_id': 'zhost'},
    ]


def _zoom():
    return FakeZoom(_zoom_meetings(), contents={
        'https://zoom.test/f1': b'mp4-bytes',
        'https://zoom.test/f2': b'WEBVTT\n\nhello',
        'https://zoom.test/f3': b'10:00 hi',
    })


@pytest.fixture
def host(app, company):
    u = User(cio_company_id=company.id, email='pat@acme.com', first_name='Pat', last_name='Lee', zoom_id='zhost')
    db.session.add(u)
    db.session.commit()
    return u


def test_refresh_zoom_moves_recordings_to_drive(app, company, host):
    zoom = _zoom()
    drive = FakeDrive()
    assert rm.refresh_zoom_recorded_meetings(company, zoom=zoom, drive=drive) == 1

    assert drive.folders == [('', 'zoom_recordings'), ('folder-zoom_recordings', '2026-10-02T17:00:00Z')]
    assert [u['name'] for u in drive.uploads] == [
        'pat-design-review-video.mp4',
        'pat-design-review-transcript.vtt',
        'pat-design-review-chat.txt',
    ]
    assert [u['mime_type'] for u in drive.uploads] == ['video/mp4', 'text/vtt', 'text/plain']
    assert zoom.deleted == [('abc==', 'f1', 'trash'), ('abc==', 'f2', 'trash'), ('abc==', 'f3', 'trash')]

    m = RecordedMeeting.query.filter_by(google_event_id='abc==').one()
    assert m.name == "Pat's Design Review"
    assert m.video == 'https://drive.google.com/open?id=file-1'
    assert m.event_link == m.video
    assert m.chat_log_link == 'https://drive.google.com/open?id=file-3'
    assert m.chat_log == '10:00 hi'
    assert m.transcript == 'WEBVTT\n\nhello'
    assert m.transcript_id == 'f2'
    assert m.start_time == datetime(2026, 10, 2, 17, 0)
    assert m.end_time == datetime(2026, 10, 2, 18, 0)
    assert m.attendees == ['pat@acme.com']
    assert m.location == 'Meeting hosted by Pat Lee'


def test_refresh_zoom_keeps_existing_transcript(app, company, host):
    _meeting(company, google_event_id='abc==', transcript='edited', transcript_id='f2')
    meetings = _zoom_meetings()
    meetings[0]['recording_files'] = meetings[0]['recording_files'][:1]
    rm.refresh_zoom_recorded_meetings(company, zoom=FakeZoom(meetings), drive=FakeDrive())

    m = RecordedMeeting.query.filter_by(google_event_id='abc==').one()
    assert m.transcript == 'edited'
    assert m.transcript_id == 'f2'


def test_refresh_zoom_requires_known_host(app, company):
    zoom = _zoom()
    drive = FakeDrive()
    with pytest.raises(OpsyncError):
        rm.refresh_zoom_recorded_meetings(company, zoom=zoom, drive=drive)
    # nothing left Zoom, so the next run still sees the recordings
    assert zoom.deleted == []
    assert drive.uploads == []


def test_refresh_zoom_skips_companies_without_zoom(app, company):
    assert rm.refresh_zoom_recorded_meetings(company) == 0


def test_refresh_zoom_job_mirrors_only_when_something_was_recorded(app, company, monkeypatch):
    mirrored = []
    monkeypatch.setattr(rm, 'update_airtable', lambda model, c: mirrored.append(c.id))

    monkeypatch.setattr(rm, 'refresh_zoom_recorded_meetings', lambda c: 0)
    rm.refresh_zoom_recorded_meetings_job(company.id)
    assert mirrored == []

    monkeypatch.setattr(rm, 'refresh_zoom_recorded_meetings', lambda c: 2)
    rm.refresh_zoom_recorded_meetings_job(company.id)
    assert mirrored == [company.id]
