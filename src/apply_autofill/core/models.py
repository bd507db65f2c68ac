"""Core data models for the application form auto-filler."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from apply_autofill.utils.logging import get_logger

logger = get_logger(__name__)


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


_DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%B %d, %Y", "%b %d, %Y", "%d %B %Y", "%Y/%m/%d")


def parse_date(value: Any) -> Optional[date]:
    """Parse the date formats a profile is likely to carry."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {value!r}")


class FieldKind(str, Enum):
    """Input kinds the executor knows how to drive."""
    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    URL = "url"
    NUMBER = "number"
    DATE = "date"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"

    @classmethod
    def from_element(cls, tag: str, input_type: Optional[str]) -> Optional["FieldKind"]:
        """Normalize a tag name and input type, or None for unsupported elements."""
        tag = (tag or "").lower()
        if tag == "select":
            return cls.SELECT
        if tag == "textarea":
            return cls.TEXTAREA
        if tag != "input":
            return None
        input_type = (input_type or "text").lower()
        if input_type in ("select-one", "select-multiple"):
            return cls.SELECT
        if input_type in ("hidden", "submit", "reset", "button", "image"):
            return None
        try:
            return cls(input_type)
        except ValueError:
            return cls.TEXT

    @property
    def is_text_like(self) -> bool:
        return self in _TEXT_LIKE_KINDS


_TEXT_LIKE_KINDS = frozenset(
    {FieldKind.TEXT, FieldKind.EMAIL, FieldKind.TEL, FieldKind.URL, FieldKind.NUMBER, FieldKind.DATE}
)


# Detection results hold live page handles, so they stay plain dataclasses.

@dataclass(frozen=True)
class SelectOption:
    """One option of a select element."""
    value: str
    text: str


@dataclass
class FieldDescriptor:
    """One detected input inside a form."""
    canonical_name: str
    element: Any  # playwright ElementHandle, owned by the page
    kind: FieldKind
    required: bool = False
    label: str = "Unknown"
    name: str = ""
    options: List[SelectOption] = field(default_factory=list)

    def signature(self) -> tuple:
        """Structural identity, independent of the handle object."""
        return (
            self.canonical_name,
            self.kind,
            self.required,
            self.label,
            self.name,
            tuple(self.options),
        )


@dataclass
class FormDescriptor:
    """One classified form container."""
    fields: Dict[str, FieldDescriptor]
    score: int
    is_application_form: bool
    element: Any = None
    action_url: str = ""
    method: str = "post"

    @property
    def field_count(self) -> int:
        return len(self.fields)

    def summary(self) -> "FieldSummary":
        """Count fields by requirement and type for confirmation screens."""
        by_type = {"text": 0, "email": 0, "tel": 0, "select": 0, "textarea": 0, "file": 0, "other": 0}
        required = 0
        for descriptor in self.fields.values():
            if descriptor.required:
                required += 1
            key = descriptor.kind.value
            by_type[key if key in by_type else "other"] += 1
        return FieldSummary(
            total=len(self.fields),
            required=required,
            optional=len(self.fields) - required,
            by_type=by_type,
        )


class ProfileModel(BaseModel):
    """Base for profile records exchanged with the backend in camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class EducationEntry(ProfileModel):
    """Represents educational background."""
    institution: str = Field(..., description="Educational institution")
    degree: Optional[str] = Field(None, description="Degree type")
    field_of_study: Optional[str] = Field(None, description="Field of study")
    graduation_year: Optional[int] = Field(None, description="Graduation year")


class ExperienceEntry(ProfileModel):
    """Represents work experience."""
    company: str = Field(..., description="Company name")
    title: str = Field(..., description="Job title")
    current: bool = Field(False, description="Whether this is the current position")


class UserProfile(ProfileModel):
    """Read-only profile snapshot borrowed for one fill session."""

    # Identity and contact
    first_name: Optional[str] = Field(None, description="Given name")
    last_name: Optional[str] = Field(None, description="Family name")
    email: Optional[str] = Field(None, description="Email address")
    phone: Optional[str] = Field(None, description="Phone number, any format")

    # Links
    linkedin: Optional[str] = Field(None, description="LinkedIn profile URL")
    portfolio: Optional[str] = Field(None, description="Portfolio website URL")
    github: Optional[str] = Field(None, description="GitHub profile URL")

    # Address
    address: Optional[str] = Field(None, description="Street address")
    city: Optional[str] = Field(None, description="City")
    state: Optional[str] = Field(None, description="State or region")
    zip_code: Optional[str] = Field(None, description="Postal code")
    country: Optional[str] = Field(None, description="Country")

    # Work authorization
    work_authorization: Optional[str] = Field(None, description="Free-text authorization status")
    requires_sponsorship: Optional[bool] = Field(None, description="Needs visa sponsorship")

    # Demographics, only used when explicitly supplied
    veteran_status: Optional[str] = Field(None, description="Veteran status")
    disability: Optional[str] = Field(None, description="Disability status")
    gender: Optional[str] = Field(None, description="Gender")
    race: Optional[str] = Field(None, description="Race or ethnicity")

    # Education and employment
    education_level: Optional[str] = Field(None, description="Highest education level")
    university: Optional[str] = Field(None, description="University or school")
    major: Optional[str] = Field(None, description="Primary field of study")
    graduation_year: Optional[int] = Field(None, description="Graduation year")
    education: List[EducationEntry] = Field(default_factory=list, description="Education history")
    current_company: Optional[str] = Field(None, description="Current employer")
    current_title: Optional[str] = Field(None, description="Current job title")
    experience: List[ExperienceEntry] = Field(default_factory=list, description="Employment history")
    years_of_experience: Optional[int] = Field(None, description="Years of professional experience")
    skills: List[str] = Field(default_factory=list, description="Skills, most relevant first")

    # Preferences
    desired_salary: Optional[float] = Field(None, description="Desired yearly salary in USD")
    available_start_date: Optional[date] = Field(None, description="Earliest start date")
    cover_letter: Optional[str] = Field(None, description="Custom cover letter text")
    additional_info: Optional[str] = Field(None, description="Free-text additional information")
    target_job_title: Optional[str] = Field(None, description="Job title being applied for")
    target_company: Optional[str] = Field(None, description="Company being applied to")

    @field_validator("available_start_date", mode="before")
    @classmethod
    def _parse_start_date(cls, value: Any) -> Optional[date]:
        # Free text such as "ASAP" leaves the date unset.
        try:
            return parse_date(value)
        except ValueError:
            logger.warning("Ignoring unparseable start date", value=value)
            return None

    @field_validator("skills", mode="before")
    @classmethod
    def _split_skills(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class FillOptions(BaseModel):
    """Options for one fill execution."""
    skip_optional: bool = Field(False, description="Leave non-required fields untouched")
    skip_demographics: bool = Field(True, description="Leave demographic fields untouched")
    focus_first: bool = Field(True, description="Scroll to the first field before filling")


class FilledField(BaseModel):
    """A field the executor filled."""
    model_config = ConfigDict(frozen=True)

    canonical_name: str
    label: str
    value: Union[str, bool]
    timestamp: datetime = Field(default_factory=utc_now)


class FieldError(BaseModel):
    """A field the executor failed to fill."""
    model_config = ConfigDict(frozen=True)

    canonical_name: str
    label: str
    message: str


class SkippedField(BaseModel):
    """A field deliberately left untouched."""
    model_config = ConfigDict(frozen=True)

    canonical_name: str
    label: str
    reason: str


class FillResult(BaseModel):
    """Outcome of one fill execution."""
    model_config = ConfigDict(frozen=True)

    filled_fields: List[FilledField] = Field(default_factory=list)
    errors: List[FieldError] = Field(default_factory=list)
    skipped_fields: List[SkippedField] = Field(default_factory=list)
    stopped: bool = Field(False, description="Execution ended early through stop()")

    @computed_field
    @property
    def filled_count(self) -> int:
        return len(self.filled_fields)

    @computed_field
    @property
    def error_count(self) -> int:
        return len(self.errors)

    @computed_field
    @property
    def success(self) -> bool:
        return self.error_count == 0


class FillLogEntry(BaseModel):
    """Persisted audit record of one fill execution."""
    timestamp: datetime = Field(default_factory=utc_now)
    url: str
    domain: str
    form_action: str = ""
    filled_count: int
    error_count: int
    success: bool
    filled_fields: List[Dict[str, str]] = Field(default_factory=list)
    errors: List[FieldError] = Field(default_factory=list)
    options: FillOptions = Field(default_factory=FillOptions)

    @classmethod
    def from_result(cls, result: FillResult, url: str, domain: str, form_action: str,
                    options: FillOptions) -> "FillLogEntry":
        return cls(
            url=url,
            domain=domain,
            form_action=form_action,
            filled_count=result.filled_count,
            error_count=result.error_count,
            success=result.success,
            filled_fields=[
                {"canonical_name": item.canonical_name, "label": item.label}
                for item in result.filled_fields
            ],
            errors=list(result.errors),
            options=options,
        )


class FieldSummary(BaseModel):
    """Field counts for a detected form."""
    total: int
    required: int
    optional: int
    by_type: Dict[str, int]


class FormSummary(BaseModel):
    """What the caller sees of the currently selected form."""
    action: str
    method: str
    field_count: int
    score: int
    fields: List[str]
    summary: FieldSummary


class FieldPreview(BaseModel):
    """Non-destructive preview of one field."""
    canonical_name: str
    label: str
    kind: FieldKind
    required: bool
    value: Optional[Union[str, bool]] = None
    will_fill: bool


class MissingField(BaseModel):
    """A required field with no profile value."""
    name: str
    label: str


class FailureReason(str, Enum):
    """Why an auto-fill operation did not run."""
    NO_FORM_SELECTED = "no_form_selected"
    MISSING_PROFILE = "missing_profile"
    PROFILE_FETCH_FAILED = "profile_fetch_failed"
    MISSING_REQUIRED_FIELDS = "missing_required_fields"


class AutoFillFailure(BaseModel):
    """Structured failure returned before any page mutation."""
    success: bool = False
    reason: FailureReason
    message: str
    missing_fields: List[MissingField] = Field(default_factory=list)


class InitializeResult(BaseModel):
    """Result of scanning a page for application forms."""
    success: bool
    forms_found: int
    current_form: Optional[FormSummary] = None
    message: Optional[str] = None
