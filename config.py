import os
from dotenv import load_dotenv
load_dotenv()

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///opsync.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", "60"))

    AIRTABLE_API_KEY = os.getenv("AIRTABLE_API_KEY")
    AIRTABLE_ASSET_ITEMS_TABLE = os.getenv("AIRTABLE_ASSET_ITEMS_TABLE", "Items")
    AIRTABLE_RECORDED_MEETINGS_TABLE = os.getenv("AIRTABLE_RECORDED_MEETINGS_TABLE", "Recorded Meetings")

    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    DRIVE_SHARED_DRIVE_NAME = os.getenv("DRIVE_SHARED_DRIVE_NAME", "Automated Documents")

    ZOOM_CLIENT_ID = os.getenv("ZOOM_CLIENT_ID")
    ZOOM_CLIENT_SECRET = os.getenv("ZOOM_CLIENT_SECRET")
    ZOOM_RECORDINGS_LOOKBACK_DAYS = int(os.getenv("ZOOM_RECORDINGS_LOOKBACK_DAYS", "30"))

    REVAI_API_KEY = os.getenv("REVAI_API_KEY")
    TRANSCRIPT_MAX_CHARS = int(os.getenv("TRANSCRIPT_MAX_CHARS", "100000"))

    # empty -> packaged logo
    LABEL_LOGO_PATH = os.getenv("LABEL_LOGO_PATH")

    GITHUB_WEBHOOK_SECRET = os.getenv("GITHUB_WEBHOOK_SECRET")
    SLACK_SIGNING_SECRET = os.getenv("SLACK_SIGNING_SECRET")
    DOCUSIGN_HMAC_KEY = os.getenv("DOCUSIGN_HMAC_KEY")
    CRON_SECRET = os.getenv("CRON_SECRET")
    HIRING_WEBHOOK_SECRET = os.getenv("HIRING_WEBHOOK_SECRET")
    AIRTABLE_WEBHOOK_SECRET = os.getenv("AIRTABLE_WEBHOOK_SECRET")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    REDIS_URL = None
    AIRTABLE_API_KEY = "key-test"
    REVAI_API_KEY = "revai-test"
    GITHUB_WEBHOOK_SECRET = "github-secret"
    SLACK_SIGNING_SECRET = "slack-secret"
    DOCUSIGN_HMAC_KEY = "docusign-secret"
    CRON_SECRET = "cron-secret"
    HIRING_WEBHOOK_SECRET = "hiring-secret"
    AIRTABLE_WEBHOOK_SECRET = "airtable-secret"
