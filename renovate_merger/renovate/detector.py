"""Recognising Renovate pull requests and reading what they update."""

import re
from dataclasses import dataclass
from typing import Iterable

from renovate_merger.types.pulls import PullRequest

RENOVATE_IDENTIFIERS = ("renovate[bot]", "renovate-bot", "renovatebot", "renovate")

_BRANCH_PATTERNS = [
    re.compile(r"^renovate/", re.IGNORECASE),
    re.compile(r"^renovatebot/", re.IGNORECASE),
]

_TITLE_PATTERNS = [
    # "chore(deps): update foo from 1.0.0 to 1.2.3"
    re.compile(
        r"update\s+(.+?)\s+from\s+v?(\d+\.\d+\.\d+)\s+to\s+v?(\d+\.\d+\.\d+)",
        re.IGNORECASE,
    ),
    # "fix(deps): bump foo from 1.0.0 to 1.2.3"
    re.compile(
        r"bump\s+(.+?)\s+from\s+v?(\d+\.\d+\.\d+)\s+to\s+v?(\d+\.\d+\.\d+)",
        re.IGNORECASE,
    ),
    # "Update foo to v1.2.3"
    re.compile(r"^Update\s+(.+?)\s+to\s+v?(\d+\.\d+\.\d+)", re.IGNORECASE),
]


@dataclass(frozen=True)
class DependencyInfo:
    """Best-effort description of a dependency update.

    ``update_type`` is one of "major", "minor", "patch", "digest" or "unknown".
    """

    package_name: str | None = None
    from_version: str | None = None
    to_version: str | None = None
    update_type: str = "unknown"


def is_renovate_pr(pr: PullRequest) -> bool:
    """True if ``pr`` was opened by Renovate."""
    author = (pr.author or "").lower()
    if any(identifier in author for identifier in RENOVATE_IDENTIFIERS):
        return True

    if any(pattern.search(pr.head_ref) for pattern in _BRANCH_PATTERNS):
        return True

    # a "dependencies" label alone is too common to count on its own
    labels = {label.lower() for label in pr.labels}
    if labels & {"renovate", "dependencies"}:
        return "renovate" in pr.head_ref.lower()

    return False


def filter_renovate_prs(prs: Iterable[PullRequest]) -> list[PullRequest]:
    """Keep the Renovate PRs, preserving order."""
    return [pr for pr in prs if is_renovate_pr(pr)]


def _classify(from_version: str, to_version: str) -> str:
    from_major, from_minor = (int(part) for part in from_version.split(".")[:2])
    to_major, to_minor = (int(part) for part in to_version.split(".")[:2])
    if to_major > from_major:
        return "major"
    if to_minor > from_minor:
        return "minor"
    return "patch"


def extract_dependency_info(title: str) -> DependencyInfo:
    """Parse the package and versions out of a Renovate PR title."""
    for pattern in _TITLE_PATTERNS:
        match = pattern.search(title)
        if not match:
            continue
        groups = match.groups()
        package_name = groups[0]
        if len(groups) == 3:
            from_version, to_version = groups[1], groups[2]
            update_type = _classify(from_version, to_version)
        else:
            # the title only names the target version
            from_version = to_version = groups[1]
            update_type = "patch"
        return DependencyInfo(
            package_name=package_name,
            from_version=from_version,
            to_version=to_version,
            update_type=update_type,
        )

    if "digest" in title.lower():
        return DependencyInfo(update_type="digest")

    return DependencyInfo()
