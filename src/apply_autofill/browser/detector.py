"""Application form detection and classification."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from apply_autofill.browser.catalog import DEFAULT_CATALOG, FieldCatalog
from apply_autofill.config import settings
from apply_autofill.core.models import FieldDescriptor, FieldKind, FormDescriptor, SelectOption
from apply_autofill.utils.logging import get_logger

logger = get_logger(__name__)


FIELD_PROBE_SCRIPT = """
(el) => {
  const labelFor = (element) => {
    const aria = element.getAttribute('aria-label');
    if (aria) return aria;
    if (element.id) {
      const label = element.ownerDocument.querySelector(`label[for="${CSS.escape(element.id)}"]`);
      if (label) return label.textContent.trim();
    }
    const parentLabel = element.closest('label');
    if (parentLabel) return parentLabel.textContent.trim();
    if (element.placeholder) return element.placeholder;
    let sibling = element.previousElementSibling;
    while (sibling) {
      if (sibling.tagName === 'LABEL') return sibling.textContent.trim();
      sibling = sibling.previousElementSibling;
    }
    return element.name || element.id || 'Unknown';
  };
  const tag = el.tagName.toLowerCase();
  const options = tag === 'select'
    ? Array.from(el.options).map((opt) => ({ value: opt.value, text: (opt.textContent || '').trim() }))
    : [];
  const ariaRequired = el.getAttribute('aria-required');
  return {
    tag,
    type: tag === 'input' ? (el.getAttribute('type') || 'text').toLowerCase() : tag,
    required: Boolean(el.required) || (ariaRequired !== null && ariaRequired !== 'false'),
    name: el.name || el.id || '',
    label: labelFor(el),
    options,
  };
}
"""

FORM_META_SCRIPT = """
(el) => ({
  action: (typeof el.action === 'string' ? el.action : el.getAttribute('action')) || '',
  method: ((typeof el.method === 'string' ? el.method : el.getAttribute('method')) || 'post').toLowerCase(),
})
"""

SAME_ELEMENT_SCRIPT = "(el, others) => others.some((other) => other === el)"


@dataclass(frozen=True)
class ScoringRules:
    """Weights and threshold for classifying a container as an application form."""
    required_field: str = "email"
    required_weight: int = 10
    common_fields: frozenset = frozenset({"firstName", "lastName", "fullName", "phone", "resume"})
    common_weight: int = 5
    job_fields: frozenset = frozenset(
        {"workAuthorization", "yearsOfExperience", "educationLevel", "coverLetter", "resume"}
    )
    job_weight: int = 10
    threshold: int = 20

    def is_application_form(self, score: int) -> bool:
        return score >= self.threshold


DEFAULT_SCORING = ScoringRules()


def score_fields(field_names: Iterable[str], rules: ScoringRules = DEFAULT_SCORING) -> int:
    """Score a set of detected canonical names. Without the required field the score is 0."""
    names = set(field_names)
    if rules.required_field not in names:
        return 0
    score = rules.required_weight
    score += rules.common_weight * len(names & rules.common_fields)
    score += rules.job_weight * len(names & rules.job_fields)
    return score


async def _is_same_as_any(element: Any, others: Sequence[Any]) -> bool:
    if not others:
        return False
    return bool(await element.evaluate(SAME_ELEMENT_SCRIPT, list(others)))


class FormDetector:
    """
    Finds application forms on a page and the canonical fields inside them.

    Detection is a pure read of the page: nothing is clicked, typed or
    modified. Each call builds fresh descriptors, so results must be
    discarded whenever the page navigates or re-renders.
    """

    def __init__(
        self,
        page: Any,
        catalog: FieldCatalog = DEFAULT_CATALOG,
        scoring: ScoringRules = DEFAULT_SCORING,
        wait_timeout_ms: Optional[int] = None,
    ):
        """
        Initialize the form detector.

        Args:
            page: Playwright page (or frame) to scan
            catalog: Field pattern catalog, evaluated in order
            scoring: Classification weights and threshold
            wait_timeout_ms: Ceiling for element waits, defaults to settings
        """
        self.page = page
        self.catalog = catalog
        self.scoring = scoring
        self.wait_timeout_ms = wait_timeout_ms or settings.wait_for_element_timeout_ms
        self.logger = logger.bind(component="form_detector")

    async def detect_forms(
        self,
        include_rejected: bool = False,
        wait_for_forms: bool = False,
    ) -> List[FormDescriptor]:
        """
        Detect application forms on the page.

        Args:
            include_rejected: Also return containers scored below the threshold
            wait_for_forms: Wait (bounded) for a form element to appear first

        Returns:
            Form descriptors in candidate order
        """
        self.logger.debug("Scanning page for application forms")

        if wait_for_forms:
            await self.wait_for_element("form")

        forms = []
        for container in await self.find_candidate_containers():
            descriptor = await self.analyze_form(container)
            if descriptor.is_application_form or include_rejected:
                forms.append(descriptor)

        self.logger.info(
            "Form detection completed",
            forms_found=sum(1 for form in forms if form.is_application_form),
        )
        return forms

    async def find_candidate_containers(self) -> List[Any]:
        """Collect containers that look like application forms, without duplicates."""
        containers: List[Any] = []

        for selector in self.catalog.form_selectors:
            try:
                elements = await self.page.query_selector_all(selector)
            except PlaywrightError as e:
                self.logger.warning("Invalid form selector", selector=selector, error=str(e))
                continue
            for element in elements:
                if not await _is_same_as_any(element, containers):
                    containers.append(element)

        for form in await self.page.query_selector_all("form"):
            if await _is_same_as_any(form, containers):
                continue
            markup = (await form.inner_html() or "").lower()
            if any(phrase in markup for phrase in self.catalog.application_phrases):
                containers.append(form)

        return containers

    async def analyze_form(self, container: Any) -> FormDescriptor:
        """Detect fields in a container and classify it."""
        fields = await self.detect_fields(container)
        score = score_fields(fields, self.scoring)

        if score == 0:
            self.logger.debug("Container rejected, no required field", required=self.scoring.required_field)
            return FormDescriptor(fields={}, score=0, is_application_form=False, element=container)

        meta = await self._form_meta(container)
        return FormDescriptor(
            fields=fields,
            score=score,
            is_application_form=self.scoring.is_application_form(score),
            element=container,
            action_url=meta.get("action", ""),
            method=meta.get("method", "post"),
        )

    async def detect_fields(self, container: Any) -> Dict[str, FieldDescriptor]:
        """Map canonical field names to the first matching input in the container."""
        fields: Dict[str, FieldDescriptor] = {}
        claimed: List[Any] = []

        for canonical_name in self.catalog.canonical_names:
            descriptor = await self._first_match(container, canonical_name, claimed)
            if descriptor is not None:
                fields[canonical_name] = descriptor
                claimed.append(descriptor.element)

        return fields

    async def _first_match(
        self,
        container: Any,
        canonical_name: str,
        claimed: Sequence[Any],
    ) -> Optional[FieldDescriptor]:
        for selector in self.catalog.matchers_for(canonical_name):
            try:
                candidates = await container.query_selector_all(selector)
            except PlaywrightError as e:
                # A broken matcher only costs this field.
                self.logger.debug(
                    "Field matcher failed",
                    field=canonical_name,
                    selector=selector,
                    error=str(e),
                )
                continue

            for candidate in candidates:
                try:
                    descriptor = await self._candidate(canonical_name, candidate, claimed)
                except PlaywrightError as e:
                    # Detached or re-rendered element, try the next one.
                    self.logger.debug("Skipping field candidate", field=canonical_name, error=str(e))
                    continue
                if descriptor is not None:
                    return descriptor
        return None

    async def _candidate(
        self,
        canonical_name: str,
        candidate: Any,
        claimed: Sequence[Any],
    ) -> Optional[FieldDescriptor]:
        if not await candidate.is_visible() or await candidate.is_disabled():
            return None
        if await _is_same_as_any(candidate, claimed):
            return None
        return await self._describe(canonical_name, candidate)

    async def _describe(self, canonical_name: str, element: Any) -> Optional[FieldDescriptor]:
        probe = await element.evaluate(FIELD_PROBE_SCRIPT)
        kind = FieldKind.from_element(probe.get("tag", ""), probe.get("type"))
        if kind is None:
            return None

        options = []
        if kind == FieldKind.SELECT:
            options = [
                SelectOption(value=str(option.get("value", "")), text=str(option.get("text", "")))
                for option in probe.get("options", [])
            ]

        return FieldDescriptor(
            canonical_name=canonical_name,
            element=element,
            kind=kind,
            required=bool(probe.get("required")),
            label=probe.get("label") or "Unknown",
            name=probe.get("name") or "",
            options=options,
        )

    async def _form_meta(self, container: Any) -> Dict[str, str]:
        try:
            return await container.evaluate(FORM_META_SCRIPT) or {}
        except PlaywrightError as e:
            self.logger.debug("Could not read form metadata", error=str(e))
            return {}

    async def wait_for_element(self, selector: str, timeout_ms: Optional[int] = None) -> Optional[Any]:
        """
        Wait for an element to be attached, bounded by the configured ceiling.

        Returns:
            The element handle, or None when nothing appeared in time
        """
        timeout = min(timeout_ms or self.wait_timeout_ms, self.wait_timeout_ms)
        try:
            return await self.page.wait_for_selector(selector, timeout=timeout, state="attached")
        except PlaywrightTimeoutError:
            self.logger.debug("Element wait timed out", selector=selector, timeout_ms=timeout)
            return None
        except PlaywrightError as e:
            self.logger.warning("Element wait failed", selector=selector, error=str(e))
            return None
