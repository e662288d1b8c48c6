"""Webhook signature checks. Every function raises ``SignatureError`` on mismatch."""

import base64
import hashlib
import hmac
import time

from ..errors import SignatureError

SLACK_MAX_AGE_SEC = 60 * 5


def _hmac_sha256(secret, body):
    return hmac.new(secret.encode(), body, hashlib.sha256)


def _require(secret, provider):
    if not secret:
        raise SignatureError(f"{provider} webhook secret is not configured")


def verify_github(secret, body, signature_header):
    _require(secret, 'github')
    expected = 'sha256=' + _hmac_sha256(secret, body).hexdigest()
    if not hmac.compare_digest(expected, signature_header or ''):
        raise SignatureError('github signature mismatch')


def verify_slack(secret, body, timestamp, signature_header, now=None):
    _require(secret, 'slack')
    try:
        ts = int(timestamp)
    except (TypeError, ValueError):
        raise SignatureError('slack timestamp missing')
    # replay protection
    if abs((now or time.time()) - ts) > SLACK_MAX_AGE_SEC:
        raise SignatureError('slack request is too old')
    basestring = b'v0:' + str(ts).encode() + b':' + body
    expected = 'v0=' + _hmac_sha256(secret, basestring).hexdigest()
    if not hmac.compare_digest(expected, signature_header or ''):
        raise SignatureError('slack signature mismatch')


def verify_docusign(secret, body, signature_header):
    _require(secret, 'docusign')
    expected = base64.b64encode(_hmac_sha256(secret, body).digest()).decode()
    if not hmac.compare_digest(expected, signature_header or ''):
        raise SignatureError('docusign signature mismatch')


def verify_bearer(provider, secret, authorization_header):
    _require(secret, provider)
    if not hmac.compare_digest(f'Bearer {secret}', authorization_header or ''):
        raise SignatureError(f'{provider} bearer token mismatch')
