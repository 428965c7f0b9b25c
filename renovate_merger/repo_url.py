"""GitHub repository reference parsing."""

import re
from dataclasses import dataclass

from renovate_merger.exceptions import ErrorCode, validation_error

_REPO_PATTERNS = [
    # https://github.com/owner/repo(.git)(/)
    re.compile(r"^https?://github\.com/([^/]+)/([^/]+?)(\.git)?/?$"),
    # git@github.com:owner/repo(.git)
    re.compile(r"^git@github\.com:([^/]+)/([^/]+?)(\.git)?$"),
    # owner/repo
    re.compile(r"^([^/]+)/([^/]+)$"),
]


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_repo_url(url: str) -> RepoInfo:
    """
    Parse a repository reference into owner and name.

    Accepts HTTPS URLs, SSH remotes and the short ``owner/repo`` form.

    Raises:
        MergerError: VALIDATION/INVALID_REPO_URL for anything else
    """
    trimmed = url.strip()
    for pattern in _REPO_PATTERNS:
        match = pattern.match(trimmed)
        if match:
            repo = match.group(2)
            if repo.endswith(".git"):
                repo = repo[: -len(".git")]
            return RepoInfo(owner=match.group(1), repo=repo)

    raise validation_error(
        ErrorCode.INVALID_REPO_URL,
        f'Invalid GitHub repository URL: "{url}". '
        "Expected format: https://github.com/owner/repo or owner/repo",
    )


def build_repo_url(owner: str, repo: str) -> str:
    return f"https://github.com/{owner}/{repo}"


def build_pr_url(owner: str, repo: str, number: int) -> str:
    return f"https://github.com/{owner}/{repo}/pull/{number}"
