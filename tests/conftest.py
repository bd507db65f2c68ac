"""Shared fixtures."""

import pytest

from apply_autofill.browser.forms import FormFiller
from apply_autofill.browser.stealth import StealthConfig, StealthManager
from apply_autofill.core.models import UserProfile


@pytest.fixture
def instant_stealth():
    """Pacing with every delay at zero."""
    return StealthManager(StealthConfig.instant())


@pytest.fixture
def form_filler(instant_stealth):
    return FormFiller(stealth_manager=instant_stealth)


@pytest.fixture
def sample_profile():
    """A reasonably complete profile."""
    return UserProfile.model_validate({
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane@example.com",
        "phone": "555-123-4567",
        "linkedin": "https://www.linkedin.com/in/janedoe",
        "city": "Austin",
        "state": "TX",
        "zipCode": "78701",
        "workAuthorization": "US Citizen",
        "requiresSponsorship": False,
        "education": [
            {"institution": "UT Austin", "degree": "Bachelor of Science",
             "fieldOfStudy": "Computer Science", "graduationYear": 2018}
        ],
        "experience": [
            {"company": "Initech", "title": "Engineer", "current": False},
            {"company": "Globex", "title": "Senior Engineer", "current": True},
        ],
        "yearsOfExperience": 6,
        "skills": "Python, Playwright, SQL, Docker",
        "desiredSalary": 120000,
        "availableStartDate": "03/01/2027",
    })
