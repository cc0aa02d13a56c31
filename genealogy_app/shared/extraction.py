"""
Result type for optional-field extraction during parsing
"""

from dataclasses import dataclass
from typing import Any


FOUND = 'found'
ABSENT = 'absent'
MALFORMED = 'malformed'


@dataclass(frozen=True)
class Extraction:
    """
    Outcome of extracting one optional field from a source record.

    Keeps "tag absent" apart from "tag present but unparsable" so only the
    latter produces a warning. A malformed extraction may still carry a
    best-effort value (e.g. a date that kept only its raw text).
    """
    status: str
    value: Any = None
    reason: str = ""

    @classmethod
    def found(cls, value: Any) -> 'Extraction':
        return cls(FOUND, value)

    @classmethod
    def absent(cls) -> 'Extraction':
        return cls(ABSENT)

    @classmethod
    def malformed(cls, reason: str, value: Any = None) -> 'Extraction':
        return cls(MALFORMED, value, reason)

    @property
    def is_found(self) -> bool:
        return self.status == FOUND

    @property
    def is_absent(self) -> bool:
        return self.status == ABSENT

    @property
    def is_malformed(self) -> bool:
        return self.status == MALFORMED

    def value_or(self, default: Any = None) -> Any:
        """Return the carried value, or default when there is none"""
        return default if self.value is None else self.value
