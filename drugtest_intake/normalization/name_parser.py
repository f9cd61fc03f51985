"""
Free-text full name parsing.

Splits a donor or client display name into first / middle / last parts
the same way for both sides of a comparison.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Name:
    """
    A parsed person name.

    Attributes:
        first: First name ('' when the source had a single token)
        last: Last name
        middle: Everything between first and last, joined by single spaces
    """
    first: str
    last: str
    middle: Optional[str] = None

    @property
    def has_middle(self) -> bool:
        return bool(self.middle)

    def __str__(self) -> str:
        parts = [self.first, self.middle or '', self.last]
        return ' '.join(p for p in parts if p)


def parse_name(full_name: Optional[str]) -> Name:
    """
    Parse a full name into first, middle and last components.

    1 token  -> first '', last token
    2 tokens -> first, last
    3+       -> first token, middle tokens joined, last token

    Args:
        full_name: Free-text name, e.g. "John M Doe"

    Returns:
        Name; blank or missing input yields Name('', '')
    """
    if not full_name or not isinstance(full_name, str):
        return Name(first='', last='')

    parts = full_name.split()

    if not parts:
        return Name(first='', last='')

    if len(parts) == 1:
        return Name(first='', last=parts[0])

    if len(parts) == 2:
        return Name(first=parts[0], last=parts[1])

    return Name(
        first=parts[0],
        middle=' '.join(parts[1:-1]),
        last=parts[-1],
    )
