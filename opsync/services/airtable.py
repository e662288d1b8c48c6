"""Minimal Airtable REST client plus the field adapters our tables need.

- requests
- pagination by ``offset``
- backoff on 429/5xx (Retry-After honoured)
"""

import time

import requests

from ..errors import ExternalAPIError

AIRTABLE_API_URL = "https://api.airtable.com/v0"
# Airtable rejects writes of more than 10 records per request
BATCH_SIZE = 10


def attachment_to_url(value):
    """Attachment field (list of dicts) -> url of the first attachment."""
    if not value:
        return ""
    if isinstance(value, str):
        return value
    first = value[0] if isinstance(value, list) else value
    return (first or {}).get("url", "") if isinstance(first, dict) else ""


def url_to_attachment(url):
    return [{"url": url}] if url else []


def barcode_to_text(value):
    if not value:
        return ""
    if isinstance(value, dict):
        return value.get("text", "") or ""
    return str(value)


def text_to_barcode(text):
    return {"text": text, "type": "code39"} if text else None


def collaborator_to_email(value):
    if not value:
        return ""
    if isinstance(value, dict):
        return value.get("email", "") or ""
    return str(value)


def email_to_collaborator(email):
    return {"email": email} if email else None


def _formula_literal(value):
    return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"


class AirtableClient:
    def __init__(self, api_key, base_id, *, session=None, base_url=AIRTABLE_API_URL,
                 timeout=30, max_retries=6, min_backoff=0.8, max_backoff=20.0):
        self.api_key = api_key
        self.base_id = base_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.min_backoff = min_backoff
        self.max_backoff = max_backoff
        self.session = session or requests.Session()

    def _url(self, table, record_id=None):
        url = f"{self.base_url}/{self.base_id}/{requests.utils.quote(table, safe='')}"
        if record_id:
            url += f"/{record_id}"
        return url

    def _request(self, method, url, *, params=None, json=None):
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        for attempt in range(self.max_retries + 1):
            resp = self.session.request(method, url, params=params, json=json,
                                        headers=headers, timeout=self.timeout)
            if 200 <= resp.status_code < 300:
                return resp.json()

            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self.max_retries:
                    raise ExternalAPIError("airtable", resp.status_code, resp.text)
                retry_after = resp.headers.get("Retry-After")
                if retry_after:
                    try:
                        wait = float(retry_after)
                    except ValueError:
                        wait = self.min_backoff
                else:
                    wait = min(self.max_backoff, self.min_backoff * (2 ** attempt))
                time.sleep(wait)
                continue

            raise ExternalAPIError("airtable", resp.status_code, resp.text)

    def list_records(self, table, view=None, fields=None, formula=None):
        """Return every record of ``table`` as ``{"id": ..., "fields": {...}}`` dicts."""
        records = []
        offset = None
        while True:
            params = [("pageSize", 100)]
            if view:
                params.append(("view", view))
            if formula:
                params.append(("filterByFormula", formula))
            for f in fields or []:
                params.append(("fields[]", f))
            if offset:
                params.append(("offset", offset))
            payload = self._request("GET", self._url(table), params=params)
            records.extend(payload.get("records") or [])
            offset = payload.get("offset")
            if not offset:
                return records

    def get_record(self, table, record_id):
        return self._request("GET", self._url(table, record_id))

    def find_record(self, table, field, value):
        formula = "{" + field + "} = " + _formula_literal(value)
        found = self.list_records(table, formula=formula)
        return found[0] if found else None

    def create_records(self, table, fields_list):
        created = []
        for i in range(0, len(fields_list), BATCH_SIZE):
            batch = [{"fields": f} for f in fields_list[i:i + BATCH_SIZE]]
            payload = self._request("POST", self._url(table), json={"records": batch, "typecast": True})
            created.extend(payload.get("records") or [])
        return created

    def update_records(self, table, updates):
        """``updates`` is a list of ``(record_id, fields)`` pairs."""
        updated = []
        for i in range(0, len(updates), BATCH_SIZE):
            batch = [{"id": rid, "fields": f} for rid, f in updates[i:i + BATCH_SIZE]]
            payload = self._request("PATCH", self._url(table), json={"records": batch, "typecast": True})
            updated.extend(payload.get("records") or [])
        return updated
