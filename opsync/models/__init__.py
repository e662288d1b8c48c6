from .company import Company
from .api_token import APIToken
from .user import User
from .asset_item import AssetItem
from .recorded_meeting import RecordedMeeting
from .webhook_event import WebhookEvent
# base and mixins are imported by the above as needed
