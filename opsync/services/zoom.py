from datetime import date

import requests

from ..errors import ExternalAPIError

ZOOM_API_URL = 'https://api.zoom.us/v2'

# Zoom cloud recording file_type -> (file name suffix, mime type)
FILE_TYPES = {
    'MP4': ('-video.mp4', 'video/mp4'),
    'M4A': ('-audio.m4a', 'audio/m4a'),
    'TIMELINE': ('.json', 'application/json'),
    'TRANSCRIPT': ('-transcript.vtt', 'text/vtt'),
    'CHAT': ('-chat.txt', 'text/plain'),
    'CC': ('-closed-captions.vtt', 'text/vtt'),
    'CSV': ('.csv', 'text/csv'),
}


def file_extension(file_type):
    return FILE_TYPES.get((file_type or '').upper(), ('', ''))[0]


def mime_type(file_type):
    return FILE_TYPES.get((file_type or '').upper(), ('', ''))[1]


def is_supported_file_type(file_type):
    return (file_type or '').upper() in FILE_TYPES


def _meeting_path_id(meeting_id):
    # uuids starting with "/" or containing "//" must be double encoded
    s = str(meeting_id)
    quoted = requests.utils.quote(s, safe='')
    if s.startswith('/') or '//' in s:
        quoted = requests.utils.quote(quoted, safe='')
    return quoted


class ZoomClient:
    def __init__(self, token, session=None, timeout=300):
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method, path, params=None):
        r = self.session.request(method, f'{ZOOM_API_URL}{path}', params=params,
                                 headers={'Authorization': f'Bearer {self.token}'}, timeout=self.timeout)
        if not 200 <= r.status_code < 300:
            raise ExternalAPIError('zoom', r.status_code, r.text)
        return r.json() if r.content else {}

    def list_account_recordings(self, from_date, to_date, account_id='me'):
        """All cloud recordings of the account between two dates (the API caps the range at a month)."""
        params = {
            'from': from_date.isoformat() if isinstance(from_date, date) else from_date,
            'to': to_date.isoformat() if isinstance(to_date, date) else to_date,
            'page_size': 300,
        }
        meetings = []
        while True:
            payload = self._request('GET', f'/accounts/{account_id}/recordings', params=params)
            meetings.extend(payload.get('meetings') or [])
            token = payload.get('next_page_token')
            if not token:
                return meetings
            params['next_page_token'] = token

    def download(self, download_url):
        r = self.session.get(download_url, params={'access_token': self.token}, timeout=self.timeout)
        if r.status_code != 200:
            raise ExternalAPIError('zoom', r.status_code, r.text)
        return r.content

    def delete_recording(self, meeting_id, recording_id, action='trash'):
        return self._request('DELETE', f'/meetings/{_meeting_path_id(meeting_id)}/recordings/{recording_id}',
                             params={'action': action})
