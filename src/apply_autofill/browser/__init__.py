"""Browser-side components: detection, value mapping and form filling."""

from apply_autofill.browser.agent import BrowserAgent
from apply_autofill.browser.catalog import DEFAULT_CATALOG, FieldCatalog
from apply_autofill.browser.detector import FormDetector, ScoringRules
from apply_autofill.browser.forms import FillState, FormFiller, create_form_filler
from apply_autofill.browser.mapper import FieldValueMapper
from apply_autofill.browser.stealth import StealthConfig, StealthManager

__all__ = [
    "BrowserAgent",
    "DEFAULT_CATALOG", "FieldCatalog",
    "FormDetector", "ScoringRules",
    "FillState", "FormFiller", "create_form_filler",
    "FieldValueMapper",
    "StealthConfig", "StealthManager",
]
