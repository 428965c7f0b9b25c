"""CI check data models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CheckDetail:
    """One CI signal for a commit."""

    name: str
    status: str  # "queued", "in_progress", "completed"
    conclusion: str | None  # None until completed

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


@dataclass(frozen=True)
class ChecksStatus:
    """Combined view of check runs and commit statuses for one sha."""

    state: str  # "pending", "success", "failure", "error"
    total: int
    completed: int
    successful: int
    failed: int
    pending: int
    details: tuple[CheckDetail, ...] = field(default_factory=tuple)
