class OpsyncError(Exception):
    """Base class for errors raised by the sync jobs and webhook handlers."""


class ConfigError(OpsyncError):
    pass


class ExternalAPIError(OpsyncError):
    """A third-party API answered with an unexpected status."""

    def __init__(self, service, status_code, body=""):
        self.service = service
        self.status_code = status_code
        self.body = body
        super().__init__(f"[{service}] status_code: {status_code}, body: {body[:1000] if body else ''}")


class PrinterError(ExternalAPIError):
    def __init__(self, status_code, body=""):
        super().__init__("print", status_code, body)


class SignatureError(OpsyncError):
    """Webhook payload failed signature verification."""
