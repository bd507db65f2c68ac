"""Form filling automation with human-paced input simulation."""

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from apply_autofill.browser.catalog import DEMOGRAPHIC_FIELDS, FILE_FIELDS
from apply_autofill.browser.stealth import StealthManager
from apply_autofill.core.models import (
    FieldDescriptor,
    FieldError,
    FieldKind,
    FillOptions,
    FillResult,
    FilledField,
    FormDescriptor,
    SkippedField,
)
from apply_autofill.errors import ElementInteractionError, FillInProgressError
from apply_autofill.utils.logging import get_logger

logger = get_logger(__name__)


# Values go through the prototype setter so React-style value trackers see the change.
SET_VALUE_SCRIPT = """
(el, value) => {
  const proto = el instanceof HTMLTextAreaElement ? HTMLTextAreaElement.prototype
    : el instanceof HTMLSelectElement ? HTMLSelectElement.prototype
    : HTMLInputElement.prototype;
  Object.getOwnPropertyDescriptor(proto, 'value').set.call(el, value);
}
"""

APPEND_VALUE_SCRIPT = """
(el, text) => {
  const proto = el instanceof HTMLTextAreaElement ? HTMLTextAreaElement.prototype
    : HTMLInputElement.prototype;
  Object.getOwnPropertyDescriptor(proto, 'value').set.call(el, el.value + text);
}
"""

READ_VALUE_SCRIPT = "(el) => el.value"

BLUR_SCRIPT = "(el) => el.blur()"


class FillState(str, Enum):
    """Lifecycle of one executor instance."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"


class FormFiller:
    """
    Fills one detected form field by field.

    Fields are processed strictly in detection order. A failure on one
    field is recorded and the run moves on; stop() is honoured before the
    next field starts, never in the middle of one.
    """

    def __init__(self, stealth_manager: Optional[StealthManager] = None):
        """
        Initialize the form filler.

        Args:
            stealth_manager: Pacing source, configured from settings when omitted
        """
        self.stealth = stealth_manager or StealthManager()
        self.state = FillState.IDLE
        self.logger = logger.bind(component="form_filler")

        self._stop_requested = False
        self._total = 0
        self._filled: List[FilledField] = []
        self._errors: List[FieldError] = []
        self._skipped: List[SkippedField] = []

    @property
    def is_running(self) -> bool:
        return self.state == FillState.RUNNING

    async def fill_form(
        self,
        form: FormDescriptor,
        values: Mapping[str, Optional[Union[str, bool]]],
        options: Optional[FillOptions] = None,
    ) -> FillResult:
        """
        Fill a form with precomputed values.

        Args:
            form: Detected form whose fields are driven
            values: Value per canonical name, None meaning nothing to fill
            options: Skip and focus behaviour

        Returns:
            FillResult with filled, errored and skipped fields

        Raises:
            FillInProgressError: If this filler is already running
        """
        if self.is_running:
            raise FillInProgressError("A fill is already in progress on this executor")

        options = options or FillOptions()
        self._start(form)

        self.logger.info(
            "Starting form fill",
            fields=form.field_count,
            skip_optional=options.skip_optional,
            skip_demographics=options.skip_demographics,
        )

        try:
            await self._run(form, values, options)
            return self._finish()
        finally:
            if self.is_running:
                # Cancelled, or failed outside a field.
                self.logger.warning("Form fill interrupted", filled=len(self._filled))
                self.state = FillState.STOPPED
                self._stop_requested = False

    async def _run(
        self,
        form: FormDescriptor,
        values: Mapping[str, Optional[Union[str, bool]]],
        options: FillOptions,
    ) -> None:
        fields = list(form.fields.values())
        if options.focus_first and fields:
            await self._focus_first(fields[0])

        first = True
        for descriptor in fields:
            if self._stop_requested:
                self.logger.info("Form fill stopped", filled=len(self._filled))
                break

            value = values.get(descriptor.canonical_name)
            reason = self._skip_reason(descriptor, value, options)
            if reason is not None:
                self._skipped.append(
                    SkippedField(canonical_name=descriptor.canonical_name, label=descriptor.label, reason=reason)
                )
                self.logger.debug("Skipping field", field=descriptor.canonical_name, reason=reason)
                continue

            if not first:
                await self.stealth.human_like_delay("field")
            first = False

            try:
                await self.fill_field(descriptor, value, form.element)
            except Exception as e:
                self.logger.warning("Failed to fill field", field=descriptor.canonical_name, error=str(e))
                self._errors.append(
                    FieldError(canonical_name=descriptor.canonical_name, label=descriptor.label, message=str(e))
                )
                continue

            self._filled.append(
                FilledField(canonical_name=descriptor.canonical_name, label=descriptor.label, value=value)
            )
            self.logger.debug(
                "Filled field",
                field=descriptor.canonical_name,
                value_length=len(value) if isinstance(value, str) else None,
            )

    def stop(self) -> None:
        """Request the running fill to end before its next field."""
        if self.is_running:
            self._stop_requested = True
            self.logger.info("Stop requested")

    def get_progress(self) -> Dict[str, Any]:
        """Get state and counts of the current or last run."""
        return {
            "state": self.state.value,
            "is_filling": self.is_running,
            "total": self._total,
            "filled": len(self._filled),
            "errors": len(self._errors),
            "skipped": len(self._skipped),
        }

    def _start(self, form: FormDescriptor) -> None:
        self.state = FillState.RUNNING
        self._stop_requested = False
        self._total = form.field_count
        self._filled = []
        self._errors = []
        self._skipped = []

    def _finish(self) -> FillResult:
        stopped = self._stop_requested
        self.state = FillState.STOPPED if stopped else FillState.COMPLETED
        self._stop_requested = False

        result = FillResult(
            filled_fields=list(self._filled),
            errors=list(self._errors),
            skipped_fields=list(self._skipped),
            stopped=stopped,
        )
        self.logger.info(
            "Form fill finished",
            state=self.state.value,
            filled=result.filled_count,
            errors=result.error_count,
            skipped=len(result.skipped_fields),
        )
        return result

    @staticmethod
    def _skip_reason(descriptor: FieldDescriptor, value: Any, options: FillOptions) -> Optional[str]:
        name = descriptor.canonical_name
        if descriptor.kind == FieldKind.FILE or name in FILE_FIELDS:
            return "file upload requires manual interaction"
        if value is None or value == "":
            return "no value"
        if options.skip_optional and not descriptor.required:
            return "optional"
        if options.skip_demographics and name in DEMOGRAPHIC_FIELDS:
            return "demographic"
        return None

    async def _focus_first(self, descriptor: FieldDescriptor) -> None:
        try:
            await descriptor.element.scroll_into_view_if_needed()
        except Exception as e:
            # The field itself will report the failure when it is filled.
            self.logger.debug("Could not scroll to first field", error=str(e))
        await self.stealth.human_like_delay("first_field")

    async def fill_field(
        self,
        descriptor: FieldDescriptor,
        value: Union[str, bool],
        container: Any = None,
    ) -> None:
        """
        Drive one field through focus, input and blur.

        Args:
            descriptor: Field to fill
            value: Value to enter, a bool for checkboxes
            container: Form element bounding radio group lookups
        """
        element = descriptor.element

        await element.scroll_into_view_if_needed()
        await self.stealth.human_like_delay("pre_focus")
        await element.focus()
        await self.stealth.human_like_delay("post_focus")

        kind = descriptor.kind
        if kind == FieldKind.SELECT:
            await self._fill_select(descriptor, str(value))
        elif kind == FieldKind.CHECKBOX:
            await self._fill_checkbox(element, value)
        elif kind == FieldKind.RADIO:
            await self._fill_radio(descriptor, str(value), container)
        elif kind == FieldKind.TEXTAREA:
            await self._type_chunks(element, str(value))
        elif kind == FieldKind.DATE:
            await self._set_whole_value(element, str(value))
        else:
            await self._type_characters(element, str(value))

        await element.evaluate(BLUR_SCRIPT)

    async def _type_characters(self, element: Any, text: str) -> None:
        await element.evaluate(SET_VALUE_SCRIPT, "")
        await element.dispatch_event("focus")

        for char in text:
            await element.evaluate(APPEND_VALUE_SCRIPT, char)
            await element.dispatch_event("input")
            await element.dispatch_event("keydown", {"key": char})
            await element.dispatch_event("keyup", {"key": char})
            await self.stealth.human_like_delay("keystroke")

        await element.dispatch_event("change")

    async def _type_chunks(self, element: Any, text: str) -> None:
        await element.evaluate(SET_VALUE_SCRIPT, "")
        await element.dispatch_event("focus")

        size = self.stealth.config.chunk_size
        for start in range(0, len(text), size):
            await element.evaluate(APPEND_VALUE_SCRIPT, text[start:start + size])
            await element.dispatch_event("input")
            await self.stealth.human_like_delay("chunk")

        await element.dispatch_event("change")

    async def _set_whole_value(self, element: Any, text: str) -> None:
        # Date inputs reject partial values, so they are assigned in one step.
        await element.evaluate(SET_VALUE_SCRIPT, text)
        await element.dispatch_event("input")
        await element.dispatch_event("change")

    async def _fill_select(self, descriptor: FieldDescriptor, value: str) -> None:
        element = descriptor.element

        await element.evaluate(SET_VALUE_SCRIPT, value)
        if await element.evaluate(READ_VALUE_SCRIPT) != value:
            wanted = value.lower()
            match = next(
                (
                    option for option in descriptor.options
                    if option.value == value or option.text.lower() == wanted
                ),
                None,
            )
            if match is None:
                raise ElementInteractionError(
                    descriptor.canonical_name, f"No option matches {value!r}"
                )
            await element.evaluate(SET_VALUE_SCRIPT, match.value)

        await element.dispatch_event("change")

    async def _fill_checkbox(self, element: Any, value: Union[str, bool]) -> None:
        desired = value if isinstance(value, bool) else str(value).strip().lower() in ("true", "yes", "on", "1")
        if await element.is_checked() != desired:
            await element.click()

    async def _fill_radio(self, descriptor: FieldDescriptor, value: str, container: Any = None) -> None:
        element = descriptor.element
        group = await element.get_attribute("name")
        if not group:
            raise ElementInteractionError(descriptor.canonical_name, "Radio input has no group name")

        scope = container
        if scope is None:
            frame = await element.owner_frame()
            scope = frame if frame is not None else element

        # Names are compared as attributes, never interpolated into a selector.
        for candidate in await scope.query_selector_all('input[type="radio"]'):
            if await candidate.get_attribute("name") != group:
                continue
            if await candidate.get_attribute("value") == value:
                await candidate.focus()
                await candidate.click()
                await self.stealth.human_like_delay("settle")
                await candidate.evaluate(BLUR_SCRIPT)
                return

        raise ElementInteractionError(
            descriptor.canonical_name, f"No radio in group {group!r} has value {value!r}"
        )


def create_form_filler(stealth_manager: Optional[StealthManager] = None) -> FormFiller:
    return FormFiller(stealth_manager)
