"""Tests for profile-to-field value mapping."""

from datetime import date

import pytest
from hypothesis import given, settings, strategies as st

from apply_autofill.browser.mapper import (
    FieldValueMapper,
    contains_phrase,
    format_phone,
    format_salary,
    format_start_date,
    validate_email,
    validate_phone,
    validate_url,
)
from apply_autofill.core.models import FieldKind, SelectOption, UserProfile

from fakes import descriptor

TODAY = date(2026, 10, 18)


def select(canonical_name, *options):
    return descriptor(
        canonical_name,
        kind=FieldKind.SELECT,
        options=[SelectOption(value, text) for value, text in options],
    )


def mapper_for(**profile):
    return FieldValueMapper(UserProfile(**profile), today=TODAY)


class TestFormatting:
    """Phone, salary and date formatting."""

    def test_ten_digit_phone(self):
        assert format_phone("5551234567") == "(555) 123-4567"
        assert format_phone("555.123.4567") == "(555) 123-4567"

    def test_eleven_digit_phone_with_country_code(self):
        assert format_phone("15551234567") == "+1 (555) 123-4567"
        assert format_phone("+1 555 123 4567") == "+1 (555) 123-4567"

    def test_eleven_digits_without_country_code_pass_through(self):
        assert format_phone("25551234567") == "25551234567"

    def test_empty_phone(self):
        assert format_phone(None) == ""
        assert format_phone("") == ""

    @given(digits=st.text(alphabet="0123456789", min_size=1, max_size=20).filter(lambda d: len(d) not in (10, 11)))
    @settings(max_examples=100)
    def test_other_digit_counts_pass_through(self, digits):
        assert format_phone(digits) == digits

    def test_salary(self):
        assert format_salary(120000) == "$120,000"
        assert format_salary(95500.4) == "$95,500"
        assert format_salary(None) == ""
        assert format_salary(0) == ""

    def test_start_date(self):
        assert format_start_date(date(2027, 3, 1)) == "2027-03-01"
        assert format_start_date(None, today=TODAY) == "2026-11-01"


class TestValidators:
    """Advisory validation helpers."""

    def test_validate_email(self):
        assert validate_email("jane@example.com")
        assert not validate_email("jane@example")
        assert not validate_email("jane doe@example.com")
        assert not validate_email(None)

    def test_validate_phone(self):
        assert validate_phone("(555) 123-4567")
        assert not validate_phone("555-1234")
        assert not validate_phone("")

    def test_validate_url(self):
        assert validate_url("https://github.com/jane")
        assert not validate_url("github.com/jane")
        assert not validate_url(None)

    def test_validate_field_value(self):
        mapper = mapper_for()
        email = descriptor("email", kind=FieldKind.EMAIL, required=True)

        assert mapper.validate_field_value(email, "jane@example.com")
        assert not mapper.validate_field_value(email, "not-an-email")
        assert not mapper.validate_field_value(email, "")
        assert not mapper.validate_field_value(email, None)
        assert mapper.validate_field_value(descriptor("city"), None)
        assert mapper.validate_field_value(descriptor("linkedin", kind=FieldKind.URL), "https://x.com/j")


class TestDirectFields:
    """Fields copied or derived directly from the profile."""

    def test_direct_values(self, sample_profile):
        mapper = FieldValueMapper(sample_profile, today=TODAY)

        assert mapper.get_field_value("firstName", descriptor("firstName")) == "Jane"
        assert mapper.get_field_value("fullName", descriptor("fullName")) == "Jane Doe"
        assert mapper.get_field_value("phone", descriptor("phone")) == "(555) 123-4567"
        assert mapper.get_field_value("zipCode", descriptor("zipCode")) == "78701"
        assert mapper.get_field_value("salary", descriptor("salary")) == "$120,000"
        assert mapper.get_field_value("startDate", descriptor("startDate")) == "2027-03-01"
        assert mapper.get_field_value("yearsOfExperience", descriptor("yearsOfExperience")) == "6"

    def test_education_and_experience_fallbacks(self, sample_profile):
        mapper = FieldValueMapper(sample_profile)

        assert mapper.get_field_value("university", descriptor("university")) == "UT Austin"
        assert mapper.get_field_value("major", descriptor("major")) == "Computer Science"
        assert mapper.get_field_value("graduationYear", descriptor("graduationYear")) == "2018"
        assert mapper.get_field_value("currentCompany", descriptor("currentCompany")) == "Globex"
        assert mapper.get_field_value("currentTitle", descriptor("currentTitle")) == "Senior Engineer"

    def test_defaults_for_missing_data(self):
        mapper = mapper_for()

        assert mapper.get_field_value("country", descriptor("country")) == "United States"
        assert mapper.get_field_value("additionalInfo", descriptor("additionalInfo")) == ""
        assert mapper.get_field_value("startDate", descriptor("startDate")) == "2026-11-01"
        assert mapper.get_field_value("firstName", descriptor("firstName")) is None
        assert mapper.get_field_value("fullName", descriptor("fullName")) is None
        assert mapper.get_field_value("university", descriptor("university")) is None

    def test_free_text_start_date_falls_back_to_default(self):
        profile = UserProfile.model_validate({"firstName": "Jane", "availableStartDate": "ASAP"})
        mapper = FieldValueMapper(profile, today=TODAY)

        assert profile.first_name == "Jane"
        assert profile.available_start_date is None
        assert mapper.get_field_value("startDate", descriptor("startDate")) == "2026-11-01"
        assert mapper_for(available_start_date="03/01/2027").get_field_value(
            "startDate", descriptor("startDate")
        ) == "2027-03-01"

    def test_file_fields_never_have_values(self, sample_profile):
        mapper = FieldValueMapper(sample_profile)

        assert mapper.get_field_value("resume", descriptor("resume", kind=FieldKind.FILE)) is None
        assert mapper.get_field_value("coverLetterFile", descriptor("coverLetterFile", kind=FieldKind.FILE)) is None

    def test_unknown_field(self, sample_profile):
        assert FieldValueMapper(sample_profile).get_field_value("shoeSize", descriptor("shoeSize")) is None

    def test_map_fields_keeps_every_name(self, sample_profile):
        fields = {
            "firstName": descriptor("firstName"),
            "github": descriptor("github"),
            "resume": descriptor("resume", kind=FieldKind.FILE),
        }
        mapper = FieldValueMapper(sample_profile)

        assert mapper.map_fields(fields) == {"firstName": "Jane", "github": None, "resume": None}
        assert mapper.get_all_field_values(fields) == {"firstName": "Jane"}


class TestEnumeratedFields:
    """Synonym matching against select options."""

    def test_work_authorization_citizen(self):
        field = select(
            "workAuthorization",
            ("", "Select..."),
            ("visa", "I need a visa"),
            ("citizen", "I am a U.S. citizen"),
        )
        mapper = mapper_for(work_authorization="US Citizen")

        assert mapper.get_field_value("workAuthorization", field) == "citizen"

    def test_work_authorization_green_card(self):
        field = select("workAuthorization", ("1", "Yes"), ("2", "Permanent Resident"))
        mapper = mapper_for(work_authorization="Green card holder")

        assert mapper.get_field_value("workAuthorization", field) == "2"

    def test_no_synonym_group_matches(self):
        field = select("workAuthorization", ("1", "Yes"), ("2", "No"))
        mapper = mapper_for(work_authorization="It's complicated")

        assert mapper.get_field_value("workAuthorization", field) is None

    def test_no_option_matches(self):
        field = select("workAuthorization", ("1", "Option A"), ("2", "Option B"))
        mapper = mapper_for(work_authorization="US Citizen")

        assert mapper.get_field_value("workAuthorization", field) is None

    def test_enumerated_text_input_has_no_value(self):
        mapper = mapper_for(work_authorization="US Citizen")

        assert mapper.get_field_value("workAuthorization", descriptor("workAuthorization")) is None

    @pytest.mark.parametrize("requires, expected", [(True, "y"), (False, "n")])
    def test_sponsorship_select(self, requires, expected):
        field = select(
            "sponsorship",
            ("y", "Yes, I will require sponsorship"),
            ("n", "No, I do not require sponsorship"),
        )
        mapper = mapper_for(requires_sponsorship=requires)

        assert mapper.get_field_value("sponsorship", field) == expected

    def test_sponsorship_checkbox_and_silence(self):
        checkbox = descriptor("sponsorship", kind=FieldKind.CHECKBOX)

        assert mapper_for(requires_sponsorship=True).get_field_value("sponsorship", checkbox) is True
        assert mapper_for().get_field_value("sponsorship", checkbox) is None

    def test_veteran_status(self):
        field = select(
            "veteranStatus",
            ("a", "I identify as one or more of the classifications of protected veteran"),
            ("b", "I am not a protected veteran"),
            ("c", "I don't wish to answer"),
        )

        assert mapper_for(veteran_status="I am not a protected veteran").get_field_value("veteranStatus", field) == "b"
        assert mapper_for(veteran_status="Protected veteran").get_field_value("veteranStatus", field) == "a"
        assert mapper_for(veteran_status="Prefer not to say").get_field_value("veteranStatus", field) == "c"

    def test_negated_option_is_not_taken_for_affirmative_answer(self):
        field = select("veteranStatus", ("b", "I am not a protected veteran"), ("a", "Protected veteran"))

        assert mapper_for(veteran_status="Yes").get_field_value("veteranStatus", field) == "a"

    def test_disability(self):
        field = select(
            "disability",
            ("yes", "Yes, I have a disability (or previously had a disability)"),
            ("no", "No, I do not have a disability"),
            ("decline", "I do not want to answer"),
        )

        assert mapper_for(disability="No").get_field_value("disability", field) == "no"
        assert mapper_for(disability="Yes").get_field_value("disability", field) == "yes"

    def test_gender_matches_whole_words(self):
        field = select("gender", ("m", "Male"), ("f", "Female"), ("x", "Decline to self-identify"))

        assert mapper_for(gender="Female").get_field_value("gender", field) == "f"
        assert mapper_for(gender="Male").get_field_value("gender", field) == "m"
        assert mapper_for(gender="Decline").get_field_value("gender", field) == "x"

    def test_race_option_with_parenthetical(self):
        field = select(
            "race",
            ("1", "Hispanic or Latino"),
            ("2", "Asian (Not Hispanic or Latino)"),
            ("3", "White (Not Hispanic or Latino)"),
        )

        assert mapper_for(race="Asian").get_field_value("race", field) == "2"

    def test_demographics_require_profile_value(self):
        field = select("gender", ("m", "Male"), ("f", "Female"), ("x", "Decline to self-identify"))

        assert mapper_for().get_field_value("gender", field) is None

    def test_education_level(self, sample_profile):
        field = select(
            "educationLevel",
            ("hs", "High School"),
            ("bs", "Bachelor's Degree"),
            ("ms", "Master's Degree"),
        )

        assert mapper_for(education_level="Master's Degree").get_field_value("educationLevel", field) == "ms"
        assert FieldValueMapper(sample_profile).get_field_value("educationLevel", field) == "bs"

    def test_education_level_plural_options(self):
        field = select(
            "educationLevel",
            ("hs", "High School"),
            ("bs", "Bachelors Degree"),
            ("ms", "Masters Degree"),
        )

        assert mapper_for(education_level="Bachelor's degree").get_field_value("educationLevel", field) == "bs"
        assert mapper_for(education_level="Masters degree").get_field_value("educationLevel", field) == "ms"

    def test_masters_does_not_pick_undergraduate(self):
        field = select("educationLevel", ("u", "Undergraduate"), ("g", "Graduate"))

        assert mapper_for(education_level="Master of Science").get_field_value("educationLevel", field) == "g"

    def test_contains_phrase(self):
        assert contains_phrase("I am a U.S. citizen", "u.s. citizen")
        assert contains_phrase("Bachelors Degree", "bachelor")
        assert contains_phrase("MS in Computer Science", "ms")
        assert not contains_phrase("Female", "male")
        assert not contains_phrase("Woman", "man")
        assert not contains_phrase("Caucasian", "asian")
        assert not contains_phrase("Forms", "ms")


class TestCoverLetter:
    """Custom and generated cover letters."""

    def test_custom_letter_is_used_verbatim(self):
        mapper = mapper_for(first_name="Jane", cover_letter="To whom it may concern...")

        assert mapper.generate_cover_letter() == "To whom it may concern..."

    def test_generated_letter(self, sample_profile):
        mapper = FieldValueMapper(sample_profile, job_title="Backend Engineer", company="Acme")
        letter = mapper.get_field_value("coverLetter", descriptor("coverLetter", kind=FieldKind.TEXTAREA))

        assert letter.startswith("Dear Hiring Manager,")
        assert "Backend Engineer at Acme" in letter
        assert "With 6 years of experience in Computer Science" in letter
        assert "Senior Engineer at Globex" in letter
        assert "Python, Playwright, SQL." in letter
        assert "Docker" not in letter
        assert "contribute to Acme's success" in letter
        assert letter.endswith("Best regards,\nJane Doe")
        assert len(letter.split("\n\n")) == 6

    def test_generated_letter_placeholders(self):
        letter = mapper_for(first_name="Sam").generate_cover_letter()

        assert "this position at your company" in letter
        assert "With several years of experience in my field" in letter
        assert letter.endswith("Best regards,\nSam")

    def test_job_context_falls_back_to_profile_targets(self):
        letter = mapper_for(target_job_title="Data Analyst", target_company="Initech").generate_cover_letter()

        assert "Data Analyst at Initech" in letter
