"""
Violation model - the failure value returned by gateway operations.
"""
from dataclasses import dataclass, field
from typing import Iterator, List

DEFAULT_PATH = "common"


@dataclass(frozen=True)
class Violation:
    """A single failure: human readable message bound to a field path."""
    message: str
    path: str = DEFAULT_PATH

    def to_dict(self) -> dict:
        return {"path": self.path, "message": self.message}


@dataclass
class ViolationList:
    """Collected violations from a batch operation."""
    violations: List[Violation] = field(default_factory=list)

    def add(self, violation: Violation) -> None:
        self.violations.append(violation)

    def messages(self) -> List[str]:
        return [v.message for v in self.violations]

    def to_list(self) -> List[dict]:
        return [v.to_dict() for v in self.violations]

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.violations)

    def __len__(self) -> int:
        return len(self.violations)

    def __bool__(self) -> bool:
        return bool(self.violations)


def is_violation(value) -> bool:
    """True for a Violation or ViolationList result."""
    return isinstance(value, (Violation, ViolationList))
