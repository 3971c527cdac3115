from .artifacts import GitHubArtifactStore
from .auth import select_auth_token
from .client import GitHubResponse, GitHubRestClient
from .results import ActionsResultsClient

__all__ = [
    "ActionsResultsClient",
    "GitHubArtifactStore",
    "GitHubResponse",
    "GitHubRestClient",
    "select_auth_token",
]
