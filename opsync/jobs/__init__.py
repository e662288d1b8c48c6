from contextlib import contextmanager

from flask import has_app_context


@contextmanager
def app_context():
    """Run a job inside a Flask app context.

    RQ workers call job entrypoints without one; inline execution (tests,
    sync fallback) already has it.
    """
    if has_app_context():
        yield
        return
    # lazy import to avoid circular imports at module import time
    from opsync import create_app
    app = create_app()
    with app.app_context():
        yield
