from flask import current_app, jsonify, request

from . import bp
from ...errors import ExternalAPIError, OpsyncError, SignatureError
from ...extensions import db, rq
from ...jobs.asset_inventory import refresh_asset_items_job
from ...jobs.recorded_meetings import refresh_google_recorded_meetings_job, refresh_zoom_recorded_meetings_job
from ...models.asset_item import AssetItem
from ...models.company import Company
from ...models.recorded_meeting import RecordedMeeting
from ...models.webhook_event import WebhookEvent
from ...services.printer import print_label
from ...services.signatures import verify_bearer, verify_docusign, verify_github, verify_slack

CRON_JOBS = {
    'asset-items': refresh_asset_items_job,
    'recorded-meetings-zoom': refresh_zoom_recorded_meetings_job,
    'recorded-meetings-google': refresh_google_recorded_meetings_job,
}

MEETING_SEARCH_LIMIT = 5


@bp.errorhandler(SignatureError)
def signature_error(e):
    current_app.logger.warning('[webhooks] rejected %s: %s', request.path, e)
    return jsonify({"error": "unauthorized"}), 401


@bp.errorhandler(OpsyncError)
def opsync_error(e):
    current_app.logger.exception('[webhooks] %s failed', request.path)
    status = 502 if isinstance(e, ExternalAPIError) else 500
    return jsonify({"error": str(e)}), status


@bp.post("/github")
def github():
    body = request.get_data()
    verify_github(current_app.config.get('GITHUB_WEBHOOK_SECRET'), body, request.headers.get('X-Hub-Signature-256'))
    event = request.headers.get('X-GitHub-Event', '')
    payload = request.get_json(silent=True) or {}
    WebhookEvent.record('github', event, request.headers.get('X-GitHub-Delivery'), payload)

    if event == 'ping':
        return jsonify({"msg": "pong"})

    repo = (payload.get('repository') or {}).get('full_name')
    current_app.logger.info('[github] %s event for %s', event, repo)
    return jsonify({"ok": True}), 202


@bp.post("/slack/events")
def slack_events():
    body = request.get_data()
    verify_slack(current_app.config.get('SLACK_SIGNING_SECRET'), body,
                 request.headers.get('X-Slack-Request-Timestamp'), request.headers.get('X-Slack-Signature'))
    payload = request.get_json(silent=True) or {}

    if payload.get('type') == 'url_verification':
        return jsonify({"challenge": payload.get('challenge')})

    event = payload.get('event') or {}
    WebhookEvent.record('slack', event.get('type') or payload.get('type'), payload.get('event_id'), payload)
    return jsonify({"ok": True})


def _like_escape(s):
    return s.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _meeting_search(company, text):
    q = RecordedMeeting.query.filter_by(cio_company_id=company.id)
    if text:
        q = q.filter(RecordedMeeting.name.ilike(f'%{_like_escape(text)}%', escape='\\'))
    return q.order_by(RecordedMeeting.start_time.desc()).limit(MEETING_SEARCH_LIMIT).all()


@bp.post("/slack/commands")
def slack_commands():
    body = request.get_data()
    verify_slack(current_app.config.get('SLACK_SIGNING_SECRET'), body,
                 request.headers.get('X-Slack-Request-Timestamp'), request.headers.get('X-Slack-Signature'))
    command = request.form.get('command', '')
    text = (request.form.get('text') or '').strip()
    WebhookEvent.record('slack', 'command', request.form.get('trigger_id'), {"command": command, "text": text})

    if command != '/meeting':
        return jsonify({"response_type": "ephemeral", "text": f"Unknown command {command}"})

    team_id = request.form.get('team_id') or ''
    company = Company.query.filter_by(slack_team_id=team_id).first() if team_id else None
    if company is None:
        return jsonify({"response_type": "ephemeral", "text": "This Slack workspace is not linked to a company"})

    meetings = _meeting_search(company, text)
    if not meetings:
        return jsonify({"response_type": "ephemeral", "text": f"No recorded meetings matching '{text}'"})
    lines = [f"• {m.name} ({m.start_time:%Y-%m-%d %H:%M} UTC): {m.video}" for m in meetings]
    return jsonify({"response_type": "ephemeral", "text": "\n".join(lines)})


@bp.post("/docusign")
def docusign():
    body = request.get_data()
    verify_docusign(current_app.config.get('DOCUSIGN_HMAC_KEY'), body, request.headers.get('X-DocuSign-Signature-1'))
    payload = request.get_json(silent=True) or {}
    envelope_id = (payload.get('data') or {}).get('envelopeId', '')
    event = payload.get('event', '')
    WebhookEvent.record('docusign', event, envelope_id, payload)
    current_app.logger.info('[docusign] envelope %s: %s', envelope_id, event)
    return jsonify({"ok": True})


@bp.post("/hiring/applicants")
def hiring_applicants():
    verify_bearer('hiring', current_app.config.get('HIRING_WEBHOOK_SECRET'), request.headers.get('Authorization'))
    payload = request.get_json(silent=True) or {}
    WebhookEvent.record('hiring', payload.get('event', 'applicant'), payload.get('email', ''), payload)
    return jsonify({"ok": True}), 202


@bp.post("/airtable/assets/print")
def airtable_print_asset_label():
    verify_bearer('airtable', current_app.config.get('AIRTABLE_WEBHOOK_SECRET'), request.headers.get('Authorization'))
    payload = request.get_json(silent=True) or {}
    record_id = payload.get('record_id') or ''
    WebhookEvent.record('airtable', 'print_label', record_id, payload)

    item = AssetItem.query.filter_by(airtable_record_id=record_id).first() if record_id else None
    if item is None:
        return jsonify({"error": f"no asset item for record {record_id!r}"}), 404
    company = db.session.get(Company, item.cio_company_id)
    printed = print_label(item, company)
    return jsonify({"printed": printed})


@bp.post("/cron/<job>")
def cron(job):
    verify_bearer('cron', current_app.config.get('CRON_SECRET'), request.headers.get('Authorization'))
    func = CRON_JOBS.get(job)
    if func is None:
        return jsonify({"error": f"unknown job {job}"}), 404

    companies = Company.query.order_by(Company.id).all()
    for company in companies:
        rq.enqueue(func, company.id, job_timeout=60 * 60)
    WebhookEvent.record('cron', job, '', {"companies": [c.id for c in companies]})
    current_app.logger.info('[cron] enqueued %s for %d companies', job, len(companies))
    return jsonify({"job": job, "companies": len(companies)}), 202
