from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

DEFAULT_LANGUAGE = "nl"

REQUIRED_FIELDS = ("full_name", "email", "budget", "website")


class SubmissionPayload(BaseModel):
    """Lead form submission, trimmed and defaulted."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore", frozen=True)

    full_name: str = ""
    email: str = ""
    budget: str = ""
    website: str = ""
    language: str = DEFAULT_LANGUAGE

    # Tracking, any JSON value passed through untouched
    utm_source: Any | None = None
    utm_medium: Any | None = None
    utm_campaign: Any | None = None
    page_path: Any | None = None

    @field_validator(*REQUIRED_FIELDS, mode="before")
    @classmethod
    def falsy_to_empty(cls, v: Any) -> Any:
        # null, 0 and false count as not filled in
        return v or ""

    @field_validator(*REQUIRED_FIELDS, mode="after")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("language", mode="before")
    @classmethod
    def language_default(cls, v: Any) -> Any:
        return v or DEFAULT_LANGUAGE

    @field_validator("language", mode="after")
    @classmethod
    def normalize_language(cls, v: str) -> str:
        """Trim and lower-case; a whitespace-only tag also falls back to the default."""
        return v.strip().lower() or DEFAULT_LANGUAGE

    @field_validator("utm_source", "utm_medium", "utm_campaign", "page_path", mode="before")
    @classmethod
    def empty_to_none(cls, v: Any) -> Any:
        return v or None

    @property
    def first_name(self) -> str:
        return split_full_name(self.full_name)[0]

    @property
    def last_name(self) -> str:
        return split_full_name(self.full_name)[1]

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    def profile_properties(self, source: str) -> dict[str, Any]:
        """Custom properties stored on the Klaviyo profile."""
        return {
            "budget": self.budget,
            "website": self.website,
            "source": source,
            "language": self.language,
            "page_path": self.page_path,
            "utm_source": self.utm_source,
            "utm_medium": self.utm_medium,
            "utm_campaign": self.utm_campaign,
        }


@dataclass(frozen=True)
class ValidationFailure:
    """Why a submission was rejected; becomes a 400 response."""
    error: str
    fields: tuple[str, ...] = ()


def split_full_name(full_name: str) -> tuple[str, str]:
    """First whitespace-separated token, then the rest joined by single spaces."""
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def validate_submission(payload: Any) -> SubmissionPayload | ValidationFailure:
    """Turn a decoded JSON body into a SubmissionPayload or a ValidationFailure."""
    if not isinstance(payload, dict):
        return ValidationFailure("Missing required fields", REQUIRED_FIELDS)

    try:
        submission = SubmissionPayload.model_validate(payload)
    except ValidationError as e:
        fields = tuple(str(err["loc"][0]) for err in e.errors() if err["loc"])
        return ValidationFailure("Invalid field values", fields)

    missing = submission.missing_fields()
    if missing:
        return ValidationFailure("Missing required fields", tuple(missing))
    return submission
