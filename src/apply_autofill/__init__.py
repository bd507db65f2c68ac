"""
apply-autofill: fills job application forms on third-party sites.

Forms are located in a live Playwright page, each input is matched to a
canonical field, the user's profile is mapped onto those fields and the
values are typed in with human-like pacing.
"""

__version__ = "0.1.0"

from apply_autofill.browser.detector import FormDetector
from apply_autofill.browser.forms import FormFiller
from apply_autofill.browser.mapper import FieldValueMapper
from apply_autofill.core.manager import AutoFillManager
from apply_autofill.core.models import FillOptions, FillResult, UserProfile

__all__ = [
    "AutoFillManager",
    "FieldValueMapper",
    "FillOptions",
    "FillResult",
    "FormDetector",
    "FormFiller",
    "UserProfile",
]
