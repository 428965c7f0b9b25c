"""GitHub resource clients."""

from renovate_merger.clients.checks import ChecksClient
from renovate_merger.clients.issues import IssuesClient
from renovate_merger.clients.pulls import PullsClient
from renovate_merger.clients.reviews import ReviewsClient
from renovate_merger.clients.users import UsersClient

__all__ = [
    "ChecksClient",
    "IssuesClient",
    "PullsClient",
    "ReviewsClient",
    "UsersClient",
]
