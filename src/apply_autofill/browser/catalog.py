"""Field pattern catalog for locating application form inputs in unknown markup.

The catalog maps canonical field names to ordered CSS selectors. Order matters
twice: selectors for one field are tried first to last, and canonical names are
evaluated in table order, so an element that several names could match belongs
to whichever name comes first.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple


FORM_SELECTORS: Tuple[str, ...] = (
    'form[action*="apply"]',
    'form[action*="application"]',
    'form[id*="apply"]',
    'form[id*="application"]',
    'form[class*="apply"]',
    'form[class*="application"]',
    'form[data-testid*="apply"]',
    '[role="form"][aria-label*="application"]',
)

APPLICATION_PHRASES: Tuple[str, ...] = ("apply", "application", "submit resume", "join our team")

FIELD_PATTERNS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "firstName": (
        'input[name*="first" i][name*="name" i]',
        'input[id*="first" i][id*="name" i]',
        'input[placeholder*="first name" i]',
        'input[aria-label*="first name" i]',
        'input[autocomplete="given-name"]',
    ),
    "lastName": (
        'input[name*="last" i][name*="name" i]',
        'input[id*="last" i][id*="name" i]',
        'input[placeholder*="last name" i]',
        'input[aria-label*="last name" i]',
        'input[autocomplete="family-name"]',
    ),
    "fullName": (
        'input[name*="fullname" i]',
        'input[name*="full_name" i]',
        'input[id*="fullname" i]',
        'input[placeholder*="full name" i]',
        'input[autocomplete="name"]',
    ),
    "email": (
        'input[type="email"]',
        'input[name*="email" i]',
        'input[id*="email" i]',
        'input[placeholder*="email" i]',
        'input[autocomplete="email"]',
    ),
    "phone": (
        'input[type="tel"]',
        'input[name*="phone" i]',
        'input[id*="phone" i]',
        'input[placeholder*="phone" i]',
        'input[autocomplete="tel"]',
    ),
    "linkedin": (
        'input[name*="linkedin" i]',
        'input[id*="linkedin" i]',
        'input[placeholder*="linkedin" i]',
        'input[aria-label*="linkedin" i]',
    ),
    "portfolio": (
        'input[name*="website" i]',
        'input[name*="portfolio" i]',
        'input[id*="website" i]',
        'input[id*="portfolio" i]',
        'input[placeholder*="website" i]',
        'input[placeholder*="portfolio" i]',
    ),
    "github": (
        'input[name*="github" i]',
        'input[id*="github" i]',
        'input[placeholder*="github" i]',
    ),
    "address": (
        'input[name*="address" i]',
        'input[id*="address" i]',
        'input[autocomplete="street-address"]',
    ),
    "city": (
        'input[name*="city" i]',
        'input[id*="city" i]',
        'input[autocomplete="address-level2"]',
    ),
    "state": (
        'input[name*="state" i]',
        'select[name*="state" i]',
        'input[id*="state" i]',
        'select[id*="state" i]',
    ),
    "zipCode": (
        'input[name*="zip" i]',
        'input[name*="postal" i]',
        'input[id*="zip" i]',
        'input[autocomplete="postal-code"]',
    ),
    "country": (
        'select[name*="country" i]',
        'select[id*="country" i]',
        'input[name*="country" i]',
    ),
    "workAuthorization": (
        'select[name*="authorization" i]',
        'select[name*="work_auth" i]',
        'select[id*="authorization" i]',
        'input[name*="authorized" i]',
    ),
    "sponsorship": (
        'select[name*="sponsor" i]',
        'input[name*="sponsor" i]',
        'input[id*="sponsor" i]',
    ),
    "veteranStatus": (
        'select[name*="veteran" i]',
        'select[id*="veteran" i]',
        'input[name*="veteran" i]',
    ),
    "disability": (
        'select[name*="disability" i]',
        'select[id*="disability" i]',
        'input[name*="disability" i]',
    ),
    "gender": (
        'select[name*="gender" i]',
        'select[id*="gender" i]',
        'input[name*="gender" i]',
    ),
    "race": (
        'select[name*="race" i]',
        'select[name*="ethnicity" i]',
        'select[id*="race" i]',
    ),
    "yearsOfExperience": (
        'input[name*="experience" i][name*="year" i]',
        'select[name*="experience" i][name*="year" i]',
        'input[id*="experience" i][id*="year" i]',
    ),
    "educationLevel": (
        'select[name*="education" i]',
        'select[name*="degree" i]',
        'select[id*="education" i]',
        'select[id*="degree" i]',
    ),
    "university": (
        'input[name*="university" i]',
        'input[name*="school" i]',
        'input[id*="university" i]',
        'input[id*="school" i]',
    ),
    "major": (
        'input[name*="major" i]',
        'input[name*="field" i]',
        'input[id*="major" i]',
    ),
    "graduationYear": (
        'input[name*="graduation" i]',
        'select[name*="graduation" i]',
        'input[id*="graduation" i]',
    ),
    "currentCompany": (
        'input[name*="company" i][name*="current" i]',
        'input[name*="employer" i]',
        'input[id*="company" i]',
    ),
    "currentTitle": (
        'input[name*="title" i][name*="current" i]',
        'input[name*="position" i]',
        'input[id*="title" i]',
    ),
    "salary": (
        'input[name*="salary" i]',
        'input[name*="compensation" i]',
        'input[id*="salary" i]',
    ),
    "startDate": (
        'input[name*="start" i][name*="date" i]',
        'input[name*="available" i]',
        'input[id*="start_date" i]',
        'input[type="date"]',
    ),
    "coverLetter": (
        'textarea[name*="cover" i]',
        'textarea[name*="letter" i]',
        'textarea[id*="cover" i]',
        'textarea[placeholder*="cover letter" i]',
    ),
    "additionalInfo": (
        'textarea[name*="additional" i]',
        'textarea[name*="comments" i]',
        'textarea[id*="additional" i]',
    ),
    "resume": (
        'input[type="file"][name*="resume" i]',
        'input[type="file"][id*="resume" i]',
        'input[type="file"][name*="cv" i]',
        'input[type="file"][accept*="pdf"]',
    ),
    "coverLetterFile": (
        'input[type="file"][name*="cover" i]',
        'input[type="file"][id*="cover" i]',
    ),
})

DEMOGRAPHIC_FIELDS = frozenset({"veteranStatus", "disability", "gender", "race"})
SENSITIVE_FIELDS = frozenset({"phone", "email", "address", "zipCode"})
FILE_FIELDS = frozenset({"resume", "coverLetterFile"})


@dataclass(frozen=True)
class FieldCatalog:
    """Immutable pattern table used by the form detector."""
    field_patterns: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: FIELD_PATTERNS)
    form_selectors: Tuple[str, ...] = FORM_SELECTORS
    application_phrases: Tuple[str, ...] = APPLICATION_PHRASES

    def __post_init__(self):
        if not isinstance(self.field_patterns, MappingProxyType):
            frozen = {name: tuple(selectors) for name, selectors in self.field_patterns.items()}
            object.__setattr__(self, "field_patterns", MappingProxyType(frozen))

    @property
    def canonical_names(self) -> Tuple[str, ...]:
        return tuple(self.field_patterns)

    def matchers_for(self, canonical_name: str) -> Tuple[str, ...]:
        return self.field_patterns.get(canonical_name, ())


DEFAULT_CATALOG = FieldCatalog()


def is_demographic_field(canonical_name: str) -> bool:
    return canonical_name in DEMOGRAPHIC_FIELDS


def is_sensitive_field(canonical_name: str) -> bool:
    return canonical_name in SENSITIVE_FIELDS
