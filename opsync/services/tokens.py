"""OAuth access tokens for the Google and Zoom APIs.

Tokens are stored per company in ``api_tokens`` and refreshed with the
refresh-token grant when they are about to expire. Google refreshes go
through ``google.oauth2.credentials.Credentials``.
"""

from datetime import datetime, timedelta

import requests
from flask import current_app
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2.credentials import Credentials

from ..extensions import db
from ..errors import ConfigError, ExternalAPIError
from ..models.api_token import APIToken

GOOGLE_TOKEN_URL = 'https://oauth2.googleapis.com/token'
ZOOM_TOKEN_URL = 'https://zoom.us/oauth/token'


def _store(token, payload):
    token.access_token = payload['access_token']
    if payload.get('refresh_token'):
        token.refresh_token = payload['refresh_token']
    token.expires_at = datetime.utcnow() + timedelta(seconds=int(payload.get('expires_in') or 3600))
    db.session.add(token)
    db.session.commit()
    return token.access_token


def google_credentials(token):
    """Credentials for a stored Google token; they can refresh themselves mid-job."""
    return Credentials(
        token=token.access_token or None,
        refresh_token=token.refresh_token or None,
        token_uri=GOOGLE_TOKEN_URL,
        client_id=current_app.config.get('GOOGLE_CLIENT_ID'),
        client_secret=current_app.config.get('GOOGLE_CLIENT_SECRET'),
        expiry=token.expires_at,
    )


def refresh_google_token(token):
    creds = google_credentials(token)
    try:
        creds.refresh(GoogleAuthRequest())
    except RefreshError as e:
        raise ExternalAPIError('google-oauth', 400, str(e)) from e
    token.access_token = creds.token
    if creds.refresh_token:
        token.refresh_token = creds.refresh_token
    # google-auth keeps expiry as naive UTC, like we do
    token.expires_at = creds.expiry or datetime.utcnow() + timedelta(hours=1)
    db.session.add(token)
    db.session.commit()
    return token.access_token


def refresh_zoom_token(token):
    r = requests.post(
        ZOOM_TOKEN_URL,
        params={'grant_type': 'refresh_token', 'refresh_token': token.refresh_token},
        auth=(current_app.config.get('ZOOM_CLIENT_ID') or '', current_app.config.get('ZOOM_CLIENT_SECRET') or ''),
        timeout=current_app.config.get('HTTP_TIMEOUT', 60),
    )
    if r.status_code != 200:
        raise ExternalAPIError('zoom-oauth', r.status_code, r.text)
    return _store(token, r.json())


REFRESHERS = {
    'google': refresh_google_token,
    'zoom': refresh_zoom_token,
}


def _token(company, product):
    token = APIToken.query.filter_by(cio_company_id=company.id, product=product).first()
    if token is None or not (token.access_token or token.refresh_token):
        return None
    return token


def access_token_for(company, product, force_refresh=False):
    """Return a usable access token or None when the company never connected ``product``."""
    token = _token(company, product)
    if token is None:
        return None
    if force_refresh or token.is_expired():
        if not token.refresh_token:
            return token.access_token or None
        current_app.logger.info('[%s] refreshing access token for company %s', product, company.name)
        return REFRESHERS[product](token)
    return token.access_token


def authenticate_google(company):
    """Google ``Credentials`` for ``company``, refreshed first when they are about to expire."""
    if not access_token_for(company, 'google'):
        raise ConfigError(f"company {company.name} has no Google token")
    return google_credentials(_token(company, 'google'))


def authenticate_zoom(company):
    # None: this company does not use Zoom.
    return access_token_for(company, 'zoom')
