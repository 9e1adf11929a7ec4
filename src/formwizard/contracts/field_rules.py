"""
Field Rule Definitions - Declarative per-field validation rules.

Rules are a tagged union discriminated on ``kind`` so step schemas can be
declared in code or loaded from YAML without special-casing. Every rule is
pure: the only outside input is the reference time passed to ``check``.
"""

import re
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# dot-separated local-part atoms "@" domain, domain with at least one dot
_EMAIL_ATOM = r"[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+"
EMAIL_PATTERN = (
    _EMAIL_ATOM + r"(?:\." + _EMAIL_ATOM + r")*"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)+"
)
MONTH_YEAR_PATTERN = r"(0[1-9]|1[0-2])/([0-9]{2})"

_EMAIL_RE = re.compile(EMAIL_PATTERN)
_MONTH_YEAR_RE = re.compile(MONTH_YEAR_PATTERN)


class _RuleBase(BaseModel):
    message: str = Field(..., description="Error message shown when the rule fails")

    model_config = ConfigDict(frozen=True)


class RequiredRule(_RuleBase):
    """Value must be a non-empty string."""

    kind: Literal["required"] = "required"

    def check(self, value: str, now: datetime) -> bool:
        return value != ""


class PatternRule(_RuleBase):
    """Whole value must match a regular expression."""

    kind: Literal["pattern"] = "pattern"
    regex: str = Field(..., description="Regular expression the whole value must match")

    @field_validator("regex")
    @classmethod
    def validate_regex(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regex {v!r}: {e}")
        return v

    def check(self, value: str, now: datetime) -> bool:
        return re.fullmatch(self.regex, value) is not None


class EmailRule(_RuleBase):
    """Value must look like an email address."""

    kind: Literal["email"] = "email"

    def check(self, value: str, now: datetime) -> bool:
        return _EMAIL_RE.fullmatch(value) is not None


class NotExpiredRule(_RuleBase):
    """
    MM/YY value whose first day of month is strictly after the reference time.

    Two-digit years always map to 2000-2099.
    """

    kind: Literal["not_expired"] = "not_expired"

    def check(self, value: str, now: datetime) -> bool:
        expiry = parse_month_year(value)
        if expiry is None:
            return False
        # Expiry month is read in the reference time's zone
        if now.tzinfo is not None:
            expiry = expiry.replace(tzinfo=now.tzinfo)
        return expiry > now


FieldRule = Annotated[
    Union[RequiredRule, PatternRule, EmailRule, NotExpiredRule],
    Field(discriminator="kind"),
]


def parse_month_year(value: str) -> Optional[datetime]:
    """Parse ``MM/YY`` into the first day of that month, or None."""
    match = _MONTH_YEAR_RE.fullmatch(value)
    if match is None:
        return None
    month, year = match.groups()
    return datetime(2000 + int(year), int(month), 1)
