"""Google Drive v3 and Calendar v3 through the Google API client.

Both clients take ``google.oauth2.credentials.Credentials`` (see
``tokens.authenticate_google``) or an already built service, and raise
``ExternalAPIError`` when an API call fails.
"""

from io import BytesIO

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

from ..errors import ExternalAPIError

FOLDER_MIME_TYPE = 'application/vnd.google-apps.folder'


def _q(value):
    return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"


def drive_file_id_from_link(link):
    """Extract the file id from the Drive links Calendar and we produce."""
    link = (link or '').strip()
    for prefix in ('https://drive.google.com/open?id=', 'https://drive.google.com/file/d/'):
        if link.startswith(prefix):
            link = link[len(prefix):]
    for suffix in ('/view?usp=drive_web', '/view'):
        if link.endswith(suffix):
            link = link[:-len(suffix)]
    return link


class _GoogleClient:
    api = None
    version = 'v3'

    def __init__(self, credentials=None, service=None):
        if service is None:
            if credentials is None:
                raise ValueError("Either credentials or service must be provided")
            service = build(self.api, self.version, credentials=credentials, cache_discovery=False)
        self.service = service

    def _execute(self, request):
        try:
            return request.execute()
        except HttpError as e:
            raise ExternalAPIError(self.api, e.resp.status, _error_body(e)) from e

    def _list_all(self, collection, key, **params):
        items = []
        request = collection.list(**params)
        while request is not None:
            response = self._execute(request)
            items.extend(response.get(key) or [])
            request = collection.list_next(request, response)
        return items


def _error_body(e):
    content = e.content or b''
    return content.decode('utf-8', errors='replace') if isinstance(content, bytes) else str(content)


class GoogleDrive(_GoogleClient):
    api = 'drive'

    def get_drive_by_name(self, name):
        drives = self._list_all(self.service.drives(), 'drives', q=f'name = {_q(name)}', pageSize=100)
        if not drives:
            raise ExternalAPIError(self.api, 404, f'shared drive {name!r} not found')
        return drives[0]

    def get_files_by_name(self, drive_id, name, parent_id=None, mime_type=None):
        q = [f'name = {_q(name)}', 'trashed = false']
        if parent_id:
            q.append(f'{_q(parent_id)} in parents')
        if mime_type:
            q.append(f'mimeType = {_q(mime_type)}')
        return self._list_all(
            self.service.files(), 'files',
            q=' and '.join(q),
            corpora='drive',
            driveId=drive_id,
            includeItemsFromAllDrives=True,
            supportsAllDrives=True,
            fields='nextPageToken, files(id, name, mimeType, parents)',
        )

    def create_folder(self, drive_id, parent_id, name):
        """Return the id of folder ``name`` under ``parent_id`` (the drive root when empty), creating it if needed."""
        parent = parent_id or drive_id
        existing = self.get_files_by_name(drive_id, name, parent_id=parent, mime_type=FOLDER_MIME_TYPE)
        if existing:
            return existing[0]['id']
        created = self._execute(self.service.files().create(
            body={'name': name, 'mimeType': FOLDER_MIME_TYPE, 'parents': [parent]},
            supportsAllDrives=True,
            fields='id',
        ))
        return created['id']

    def create_or_update_file(self, drive_id, parent_id, name, mime_type, content):
        """Upload ``content`` as ``name`` in ``parent_id``; replaces the contents of an existing file of that name."""
        if isinstance(content, str):
            content = content.encode()
        media = MediaIoBaseUpload(BytesIO(content), mimetype=mime_type, resumable=False)

        existing = self.get_files_by_name(drive_id, name, parent_id=parent_id)
        if existing:
            return self._execute(self.service.files().update(
                fileId=existing[0]['id'], media_body=media, supportsAllDrives=True, fields='id, name',
            ))
        return self._execute(self.service.files().create(
            body={'name': name, 'mimeType': mime_type, 'parents': [parent_id or drive_id]},
            media_body=media,
            supportsAllDrives=True,
            fields='id, name',
        ))

    def download_file_by_id(self, file_id):
        buf = BytesIO()
        downloader = MediaIoBaseDownload(buf, self.service.files().get_media(fileId=file_id, supportsAllDrives=True))
        done = False
        try:
            while not done:
                _, done = downloader.next_chunk()
        except HttpError as e:
            raise ExternalAPIError(self.api, e.resp.status, _error_body(e)) from e
        return buf.getvalue()


class GoogleCalendar(_GoogleClient):
    api = 'calendar'

    def list_calendars(self):
        return self._list_all(self.service.calendarList(), 'items', maxResults=250)

    def list_events(self, calendar_id, time_max, single_events=True, show_deleted=True, show_hidden_invitations=True):
        params = dict(
            calendarId=calendar_id,
            timeMax=time_max,
            singleEvents=single_events,
            showDeleted=show_deleted,
            showHiddenInvitations=show_hidden_invitations,
            maxResults=2500,
        )
        if single_events:
            params['orderBy'] = 'startTime'
        return self._list_all(self.service.events(), 'items', **params)
