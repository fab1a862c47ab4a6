from gmb_studio.models.account import GmbAccount
from gmb_studio.models.ai import AIRequestLog, AISetting
from gmb_studio.models.insight import GmbInsight, MetricType
from gmb_studio.models.location import GmbLocation
from gmb_studio.models.oauth_state import OAuthState
from gmb_studio.models.post import GmbPost, PostStatus, PostType
from gmb_studio.models.presence import GmbCitation, GmbMedia, GmbRanking
from gmb_studio.models.review import GmbReview

__all__ = [
    "AIRequestLog",
    "AISetting",
    "GmbAccount",
    "GmbCitation",
    "GmbInsight",
    "GmbLocation",
    "GmbMedia",
    "GmbPost",
    "GmbRanking",
    "GmbReview",
    "MetricType",
    "OAuthState",
    "PostStatus",
    "PostType",
]
