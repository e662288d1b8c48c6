"""Rev.ai asynchronous speech-to-text."""

import requests

from ..errors import ExternalAPIError

REVAI_API_URL = 'https://api.rev.ai/speechtotext/v1'


class RevAI:
    def __init__(self, api_key, session=None, timeout=600):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, accept='application/json'):
        return {'Authorization': f'Bearer {self.api_key}', 'Accept': accept}

    def create_job(self, media, filename='recording.mp4', mime='video/mp4'):
        """Upload ``media`` bytes and start a transcription job. Returns the job dict."""
        r = self.session.post(f'{REVAI_API_URL}/jobs', headers=self._headers(),
                              files={'media': (filename, media, mime)}, timeout=self.timeout)
        if r.status_code not in (200, 201):
            raise ExternalAPIError('revai', r.status_code, r.text)
        return r.json()

    def get_job(self, job_id):
        r = self.session.get(f'{REVAI_API_URL}/jobs/{job_id}', headers=self._headers(), timeout=self.timeout)
        if r.status_code != 200:
            raise ExternalAPIError('revai', r.status_code, r.text)
        return r.json()

    def get_transcript(self, job_id):
        """Plain-text transcript, or '' while the job is still in progress."""
        job = self.get_job(job_id)
        if job.get('status') != 'transcribed':
            return ''
        r = self.session.get(f'{REVAI_API_URL}/jobs/{job_id}/transcript',
                             headers=self._headers('text/plain'), timeout=self.timeout)
        if r.status_code != 200:
            raise ExternalAPIError('revai', r.status_code, r.text)
        return r.text
