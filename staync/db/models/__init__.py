from staync.db.models.engagement import Bookmark, BookmarkCollection, Like, Retweet
from staync.db.models.follow import Follow
from staync.db.models.message import DirectMessage, DMConversation, DMParticipant
from staync.db.models.notification import Notification
from staync.db.models.oauth_account import OAuthAccount
from staync.db.models.travel import TravelPlan, TravelPlanItem, TravelTag, TweetTravelTag
from staync.db.models.tweet import Media, Tweet, TweetEmbedding
from staync.db.models.user import User

__all__ = [
    "Bookmark",
    "BookmarkCollection",
    "DMConversation",
    "DMParticipant",
    "DirectMessage",
    "Follow",
    "Like",
    "Media",
    "Notification",
    "OAuthAccount",
    "Retweet",
    "TravelPlan",
    "TravelPlanItem",
    "TravelTag",
    "Tweet",
    "TweetEmbedding",
    "TweetTravelTag",
    "User",
]
