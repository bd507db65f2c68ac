"""Maps user profile data onto detected form fields."""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlparse

from apply_autofill.browser.catalog import FILE_FIELDS
from apply_autofill.core.models import FieldDescriptor, FieldKind, SelectOption, UserProfile
from apply_autofill.utils.logging import get_logger

logger = get_logger(__name__)

FieldValue = Optional[Union[str, bool]]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NEGATION_PATTERN = re.compile(r"(?<!\w)(?:not|no|don[’']t|never|without)(?!\w)", re.IGNORECASE)

# Fields whose option texts read as yes/no answers, where "not" flips the meaning.
NEGATION_SENSITIVE_FIELDS = frozenset({"workAuthorization", "sponsorship", "veteranStatus", "disability"})

START_DATE_LEAD = timedelta(days=14)

# Phrases that also occur inside words of a different meaning.
WHOLE_WORD_PHRASES = frozenset({"male", "asian", "graduate", "authorized"})

SHORT_PHRASE_LENGTH = 3


@dataclass(frozen=True)
class SynonymGroup:
    """Option phrases for one category of profile answer."""
    triggers: Tuple[str, ...]
    phrases: Tuple[str, ...]
    negative: bool = False


def contains_phrase(text: str, phrase: str) -> bool:
    """
    Case-insensitive containment of a phrase in option or profile text.

    "bachelor" matches "Bachelors Degree". Short tokens such as "ms" or "no",
    and the phrases in WHOLE_WORD_PHRASES, only match as whole words so that
    "male" stays out of "Female" and "no" out of "None".
    """
    if len(phrase) <= SHORT_PHRASE_LENGTH or phrase.lower() in WHOLE_WORD_PHRASES:
        pattern = r"(?<!\w)" + re.escape(phrase) + r"(?!\w)"
        return re.search(pattern, text, re.IGNORECASE) is not None
    return phrase.lower() in text.lower()


def format_phone(phone: Optional[str]) -> str:
    """Format 10 and 11 digit North American numbers, pass anything else through."""
    if not phone:
        return ""

    digits = re.sub(r"\D", "", phone)

    if len(digits) == 10:
        return f"({digits[0:3]}) {digits[3:6]}-{digits[6:10]}"

    if len(digits) == 11 and digits[0] == "1":
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:11]}"

    return phone


def format_salary(salary: Optional[float]) -> str:
    """Render a yearly salary as whole US dollars, e.g. $120,000."""
    if not salary:
        return ""
    return f"${salary:,.0f}"


def format_start_date(start: Optional[date], today: Optional[date] = None) -> str:
    """ISO date, two weeks out when no availability date is set."""
    if start is None:
        start = (today or date.today()) + START_DATE_LEAD
    return start.isoformat()


def validate_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def validate_phone(phone: Optional[str]) -> bool:
    if not phone:
        return False
    return len(re.sub(r"\D", "", phone)) >= 10


def validate_url(url: Optional[str]) -> bool:
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


class FieldValueMapper:
    """
    Computes the value to place in each detected field.

    A value of None means there is nothing to fill. File inputs always map to
    None since attachments need the user. Demographic answers are only mapped
    when the profile states them.
    """

    def __init__(
        self,
        user_profile: UserProfile,
        job_title: Optional[str] = None,
        company: Optional[str] = None,
        today: Optional[date] = None,
    ):
        """
        Initialize the mapper.

        Args:
            user_profile: Profile snapshot for this fill session
            job_title: Title of the job being applied for, used by the cover letter
            company: Company being applied to, used by the cover letter
            today: Reference date for defaults, today when omitted
        """
        self.profile = user_profile
        self.job_title = job_title
        self.company = company
        self.today = today
        self.logger = logger.bind(component="field_value_mapper")
        self.synonyms = self._load_synonyms()
        self._resolvers = self._build_resolvers()

    def _load_synonyms(self) -> Dict[str, List[SynonymGroup]]:
        """Load option phrases for enumerated fields, keyed by canonical name."""
        decline = SynonymGroup(
            triggers=("decline", "prefer not", "don't wish", "do not wish"),
            phrases=("decline", "prefer not", "don't wish", "do not wish", "not wish"),
            negative=True,
        )
        return {
            "workAuthorization": [
                SynonymGroup(
                    triggers=("requires sponsorship", "require sponsorship", "need sponsorship",
                              "needs sponsorship", "not authorized"),
                    phrases=("require sponsorship", "no", "not authorized", "needs sponsorship"),
                    negative=True,
                ),
                SynonymGroup(
                    triggers=("us citizen", "u.s. citizen", "citizen"),
                    phrases=("citizen", "us citizen", "u.s. citizen", "yes"),
                ),
                SynonymGroup(
                    triggers=("green card", "permanent resident", "lpr"),
                    phrases=("green card", "permanent resident", "lawful permanent resident", "lpr"),
                ),
                SynonymGroup(
                    triggers=("work visa", "h1b", "h-1b", "visa"),
                    phrases=("work visa", "h1b", "h-1b", "visa holder", "authorized", "yes"),
                ),
            ],
            "sponsorship": [
                SynonymGroup(
                    triggers=("yes",),
                    phrases=("yes", "require", "will need", "need sponsorship"),
                ),
                SynonymGroup(
                    triggers=("no",),
                    phrases=("no", "do not require", "don't require", "not require", "will not"),
                    negative=True,
                ),
            ],
            "veteranStatus": [
                decline,
                SynonymGroup(
                    triggers=("not a veteran", "not a protected veteran", "no", "not"),
                    phrases=("not a protected veteran", "not a veteran", "am not", "no"),
                    negative=True,
                ),
                SynonymGroup(
                    triggers=("protected veteran", "veteran", "yes"),
                    phrases=("identify as one or more", "protected veteran", "veteran", "yes"),
                ),
            ],
            "disability": [
                decline,
                SynonymGroup(
                    triggers=("no", "not", "don't have", "do not have"),
                    phrases=("do not have a disability", "don't have a disability", "no"),
                    negative=True,
                ),
                SynonymGroup(
                    triggers=("yes", "have a disability", "disabled"),
                    phrases=("have a disability", "have had one", "yes"),
                ),
            ],
            "gender": [
                decline,
                SynonymGroup(
                    triggers=("non-binary", "nonbinary", "non binary"),
                    phrases=("non-binary", "nonbinary", "non binary", "gender non-conforming"),
                ),
                SynonymGroup(triggers=("female", "woman"), phrases=("female", "woman")),
                SynonymGroup(triggers=("male", "man"), phrases=("male", "man")),
            ],
            "race": [
                decline,
                SynonymGroup(
                    triggers=("two or more", "multiracial", "mixed"),
                    phrases=("two or more", "multiracial", "mixed"),
                ),
                SynonymGroup(
                    triggers=("hispanic", "latino", "latina", "latinx"),
                    phrases=("hispanic", "latino", "latina", "latinx"),
                ),
                SynonymGroup(
                    triggers=("black", "african american"),
                    phrases=("black", "african american"),
                ),
                SynonymGroup(triggers=("asian",), phrases=("asian",)),
                SynonymGroup(
                    triggers=("native hawaiian", "pacific islander"),
                    phrases=("native hawaiian", "pacific islander"),
                ),
                SynonymGroup(
                    triggers=("american indian", "alaska native", "native american"),
                    phrases=("american indian", "alaska native", "native american"),
                ),
                SynonymGroup(triggers=("white", "caucasian"), phrases=("white", "caucasian")),
            ],
            "educationLevel": [
                SynonymGroup(
                    triggers=("high school", "ged", "secondary"),
                    phrases=("high school", "hs diploma", "secondary", "ged"),
                ),
                SynonymGroup(triggers=("associate",), phrases=("associate", "aa", "as")),
                SynonymGroup(
                    triggers=("bachelor", "undergraduate", "b.s.", "b.a."),
                    phrases=("bachelor", "ba", "bs", "undergraduate"),
                ),
                SynonymGroup(
                    triggers=("master", "mba", "m.s.", "m.a."),
                    phrases=("master", "ma", "ms", "mba", "graduate"),
                ),
                SynonymGroup(
                    triggers=("doctorate", "phd", "ph.d", "doctoral"),
                    phrases=("doctorate", "phd", "ph.d", "doctoral"),
                ),
                SynonymGroup(
                    triggers=("professional", "jd", "md"),
                    phrases=("professional", "jd", "md"),
                ),
            ],
        }

    def _build_resolvers(self) -> Dict[str, Callable[[FieldDescriptor], FieldValue]]:
        profile = self.profile
        return {
            "firstName": lambda d: profile.first_name,
            "lastName": lambda d: profile.last_name,
            "fullName": lambda d: profile.full_name or None,
            "email": lambda d: profile.email,
            "phone": lambda d: format_phone(profile.phone),
            "linkedin": lambda d: profile.linkedin,
            "portfolio": lambda d: profile.portfolio,
            "github": lambda d: profile.github,
            "address": lambda d: profile.address,
            "city": lambda d: profile.city,
            "state": lambda d: profile.state,
            "zipCode": lambda d: profile.zip_code,
            "country": lambda d: profile.country or "United States",
            "workAuthorization": lambda d: self._map_enumerated(d, profile.work_authorization),
            "sponsorship": self._map_sponsorship,
            "veteranStatus": lambda d: self._map_demographic(d, profile.veteran_status),
            "disability": lambda d: self._map_demographic(d, profile.disability),
            "gender": lambda d: self._map_demographic(d, profile.gender),
            "race": lambda d: self._map_demographic(d, profile.race),
            "yearsOfExperience": lambda d: _as_text(profile.years_of_experience),
            "educationLevel": lambda d: self._map_enumerated(d, self._education_level()),
            "university": lambda d: profile.university or self._first_education("institution"),
            "major": lambda d: self._primary_field_of_study(),
            "graduationYear": lambda d: _as_text(
                profile.graduation_year or self._first_education("graduation_year")
            ),
            "currentCompany": lambda d: profile.current_company or self._current_experience("company"),
            "currentTitle": lambda d: profile.current_title or self._current_experience("title"),
            "salary": lambda d: format_salary(profile.desired_salary),
            "startDate": lambda d: format_start_date(profile.available_start_date, self.today),
            "coverLetter": lambda d: self.generate_cover_letter(),
            "additionalInfo": lambda d: profile.additional_info or "",
        }

    def get_field_value(self, canonical_name: str, descriptor: FieldDescriptor) -> FieldValue:
        """
        Get the value for one field.

        Args:
            canonical_name: Catalog name of the field
            descriptor: Detected field, used for options and kind

        Returns:
            The value to fill, or None when there is nothing to fill
        """
        if canonical_name in FILE_FIELDS:
            return None

        resolver = self._resolvers.get(canonical_name)
        if resolver is None:
            self.logger.debug("No mapping for field", field=canonical_name)
            return None

        return resolver(descriptor)

    def map_fields(self, fields: Mapping[str, FieldDescriptor]) -> Dict[str, FieldValue]:
        """Values for every field, None included, in field order."""
        return {name: self.get_field_value(name, descriptor) for name, descriptor in fields.items()}

    def get_all_field_values(self, fields: Mapping[str, FieldDescriptor]) -> Dict[str, Union[str, bool]]:
        """Values for the fields that have one."""
        return {name: value for name, value in self.map_fields(fields).items() if value is not None}

    def match_option(
        self,
        canonical_name: str,
        options: Sequence[SelectOption],
        profile_value: Optional[str],
    ) -> Optional[str]:
        """
        Pick the option matching a free-text profile answer.

        The first synonym group triggered by the profile value decides the
        phrases; the first option containing one of them wins.
        """
        if not profile_value or not options:
            return None

        negation_sensitive = canonical_name in NEGATION_SENSITIVE_FIELDS
        for group in self.synonyms.get(canonical_name, []):
            if not any(contains_phrase(profile_value, trigger) for trigger in group.triggers):
                continue
            for option in options:
                text = option.text
                if negation_sensitive and not group.negative and NEGATION_PATTERN.search(text):
                    continue
                if any(contains_phrase(text, phrase) for phrase in group.phrases):
                    return option.value
        return None

    def _map_enumerated(self, descriptor: FieldDescriptor, profile_value: Optional[str]) -> Optional[str]:
        if descriptor.kind != FieldKind.SELECT:
            return None
        return self.match_option(descriptor.canonical_name, descriptor.options, profile_value)

    def _map_demographic(self, descriptor: FieldDescriptor, profile_value: Optional[str]) -> Optional[str]:
        # Silence in the profile is never turned into an answer.
        if not profile_value:
            return None
        return self._map_enumerated(descriptor, profile_value)

    def _map_sponsorship(self, descriptor: FieldDescriptor) -> FieldValue:
        requires = self.profile.requires_sponsorship
        if requires is None:
            return None
        if descriptor.kind == FieldKind.CHECKBOX:
            return requires
        return self._map_enumerated(descriptor, "yes" if requires else "no")

    def _education_level(self) -> Optional[str]:
        return self.profile.education_level or self._first_education("degree")

    def _first_education(self, attribute: str):
        if not self.profile.education:
            return None
        return getattr(self.profile.education[0], attribute)

    def _primary_field_of_study(self) -> Optional[str]:
        return self.profile.major or self._first_education("field_of_study")

    def _current_experience(self, attribute: str) -> Optional[str]:
        entries = self.profile.experience
        if not entries:
            return None
        current = next((entry for entry in entries if entry.current), entries[0])
        return getattr(current, attribute)

    def generate_cover_letter(self) -> str:
        """Use the profile's own letter, or fill in a plain template."""
        profile = self.profile
        if profile.cover_letter:
            return profile.cover_letter

        job_title = self.job_title or profile.target_job_title or "this position"
        company = self.company or profile.target_company or "your company"
        years = profile.years_of_experience if profile.years_of_experience is not None else "several"
        field_of_study = self._primary_field_of_study() or "my field"
        current_title = profile.current_title or self._current_experience("title") or "relevant experience"
        current_company = (
            profile.current_company or self._current_experience("company") or "previous companies"
        )
        skills = ", ".join(profile.skills[:3]) or "my area of expertise"

        return (
            "Dear Hiring Manager,\n\n"
            f"I am writing to express my interest in {job_title} at {company}. "
            f"With {years} years of experience in {field_of_study}, I am confident "
            "I would be a valuable addition to your team.\n\n"
            f"My background includes {current_title} at {current_company}, where I have "
            f"developed strong skills in {skills}.\n\n"
            "I am particularly excited about this opportunity because it aligns with my "
            f"career goals and allows me to contribute to {company}'s success.\n\n"
            "Thank you for considering my application. I look forward to discussing how "
            "my skills and experience can benefit your team.\n\n"
            f"Best regards,\n{profile.full_name}"
        )

    def validate_field_value(self, descriptor: FieldDescriptor, value: FieldValue) -> bool:
        """Advisory check of a computed value against the field kind."""
        if descriptor.required and (value is None or (isinstance(value, str) and not value.strip())):
            return False
        if not isinstance(value, str):
            return True
        if descriptor.kind == FieldKind.EMAIL:
            return validate_email(value)
        if descriptor.kind == FieldKind.TEL:
            return validate_phone(value)
        if descriptor.kind == FieldKind.URL:
            return validate_url(value)
        return True


def _as_text(value) -> Optional[str]:
    return None if value is None else str(value)
