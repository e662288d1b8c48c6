import json
import os
import sys
from urllib.parse import parse_qs, urlparse

import pytest
from googleapiclient.discovery import build
from googleapiclient.http import HttpMockSequence

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from opsync.errors import ExternalAPIError
from opsync.services.google import FOLDER_MIME_TYPE, GoogleCalendar, GoogleDrive


def _http(*responses):
    return HttpMockSequence([
        ({'status': str(status)}, body if isinstance(body, (bytes, str)) else json.dumps(body))
        for status, body in responses
    ])


def _drive(*responses):
    http = _http(*responses)
    return GoogleDrive(service=build('drive', 'v3', http=http, static_discovery=True)), http


def _calendar(*responses):
    http = _http(*responses)
    return GoogleCalendar(service=build('calendar', 'v3', http=http, static_discovery=True)), http


def _query(uri):
    return parse_qs(urlparse(uri).query)


def test_needs_credentials_or_service():
    with pytest.raises(ValueError):
        GoogleDrive()


def test_drive_create_folder_reuses_existing():
    drive, http = _drive((200, {'files': [{'id': 'f-existing'}]}))
    assert drive.create_folder('drive-1', '', 'zoom_recordings') == 'f-existing'
    q = _query(http.request_sequence[0][0])['q'][0]
    assert "name = 'zoom_recordings'" in q
    assert "'drive-1' in parents" in q
    assert f"mimeType = '{FOLDER_MIME_TYPE}'" in q


def test_drive_create_folder_creates_missing():
    drive, http = _drive((200, {'files': []}), (200, {'id': 'f-new'}))
    assert drive.create_folder('drive-1', 'parent-1', '2026-10-02') == 'f-new'
    uri, method, body, _ = http.request_sequence[1]
    assert method == 'POST'
    assert json.loads(body)['parents'] == ['parent-1']


def test_drive_upload_new_file():
    drive, http = _drive((200, {'files': []}), (200, {'id': 'file-9', 'name': 'a.png'}))
    f = drive.create_or_update_file('drive-1', 'assets', 'a.png', 'image/png', b'PNGDATA')
    assert f['id'] == 'file-9'
    uri, method, body, _ = http.request_sequence[1]
    assert method == 'POST'
    assert '/upload/drive/v3/files' in uri
    assert b'PNGDATA' in (body if isinstance(body, bytes) else body.encode())


def test_drive_upload_existing_file_replaces_media():
    drive, http = _drive((200, {'files': [{'id': 'file-1'}]}), (200, {'id': 'file-1', 'name': 'a.png'}))
    f = drive.create_or_update_file('drive-1', 'assets', 'a.png', 'image/png', b'PNGDATA')
    assert f['id'] == 'file-1'
    uri, method, _, _ = http.request_sequence[1]
    assert method == 'PATCH'
    assert '/upload/drive/v3/files/file-1' in uri


def test_drive_files_paginate():
    drive, http = _drive(
        (200, {'files': [{'id': 'a'}], 'nextPageToken': 'p2'}),
        (200, {'files': [{'id': 'b'}]}),
    )
    assert [f['id'] for f in drive.get_files_by_name('drive-1', 'assets')] == ['a', 'b']
    assert _query(http.request_sequence[1][0])['pageToken'] == ['p2']


def test_drive_missing_shared_drive():
    drive, _ = _drive((200, {'drives': []}))
    with pytest.raises(ExternalAPIError) as e:
        drive.get_drive_by_name('Automated Documents')
    assert e.value.status_code == 404


def test_drive_download_returns_bytes():
    drive, http = _drive((200, b'\x00\x01video'))
    assert drive.download_file_by_id('vid1') == b'\x00\x01video'
    assert 'alt=media' in http.request_sequence[0][0]


def test_drive_download_error():
    drive, _ = _drive((404, {'error': {'code': 404, 'message': 'File not found: vid1.'}}))
    with pytest.raises(ExternalAPIError) as e:
        drive.download_file_by_id('vid1')
    assert e.value.status_code == 404


def test_calendar_events_paginate():
    calendar, http = _calendar(
        (200, {'items': [{'id': 'e1'}], 'nextPageToken': 'p2'}),
        (200, {'items': [{'id': 'e2'}]}),
    )
    events = calendar.list_events('team@acme.com', '2026-10-19T00:00:00+00:00')
    assert [e['id'] for e in events] == ['e1', 'e2']
    first = http.request_sequence[0][0]
    assert '/calendars/team%40acme.com/events' in first
    assert _query(first)['showDeleted'] == ['true']
    assert _query(first)['singleEvents'] == ['true']
    assert _query(http.request_sequence[1][0])['pageToken'] == ['p2']


def test_google_errors_carry_the_service():
    calendar, _ = _calendar((403, {'error': {'code': 403, 'message': 'forbidden'}}))
    with pytest.raises(ExternalAPIError) as e:
        calendar.list_calendars()
    assert e.value.service == 'calendar'
    assert e.value.status_code == 403
    assert 'forbidden' in str(e.value)
