"""Coordinates form detection, value mapping and filling for one page."""

from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from apply_autofill.browser.catalog import is_sensitive_field
from apply_autofill.browser.detector import FormDetector
from apply_autofill.browser.forms import FormFiller
from apply_autofill.browser.mapper import FieldValueMapper
from apply_autofill.config import Settings, settings as default_settings
from apply_autofill.core.models import (
    AutoFillFailure,
    FailureReason,
    FieldPreview,
    FillLogEntry,
    FillOptions,
    FillResult,
    FormDescriptor,
    FormSummary,
    InitializeResult,
    MissingField,
    UserProfile,
)
from apply_autofill.errors import ProfileUnavailableError
from apply_autofill.services.notifier import LogNotifier, Notifier
from apply_autofill.services.profile import ProfileClient
from apply_autofill.storage.audit import FillLog
from apply_autofill.storage.store import KeyValueStore
from apply_autofill.utils.logging import get_logger, log_fill_context

logger = get_logger(__name__)

PROFILE_CACHE_KEY = "userData"
SETTINGS_KEY = "settings"
COMPLETE_EVENT = "autofill-complete"


def mask_sensitive_data(canonical_name: str, value: Any) -> Any:
    """Show only the first 3 and last 2 characters of sensitive values longer than 5."""
    if is_sensitive_field(canonical_name) and isinstance(value, str) and len(value) > 5:
        return f"{value[:3]}...{value[-2:]}"
    return value


def validate_required_fields(
    form: FormDescriptor,
    values: Dict[str, Any],
) -> List[MissingField]:
    """Required fields without a usable value, in field order."""
    missing = []
    for name, descriptor in form.fields.items():
        if not descriptor.required:
            continue
        value = values.get(name)
        if value is None or value == "":
            missing.append(MissingField(name=name, label=descriptor.label))
    return missing


class AutoFillManager:
    """
    Entry point for auto-filling application forms on a page.

    The manager owns the cached profile and the audit log. Detection results
    are rebuilt by refresh() and never outlive a page change.
    """

    def __init__(
        self,
        page: Any,
        profile_client: ProfileClient,
        store: KeyValueStore,
        notifier: Optional[Notifier] = None,
        detector: Optional[FormDetector] = None,
        filler: Optional[FormFiller] = None,
        fill_log: Optional[FillLog] = None,
        job_title: Optional[str] = None,
        company: Optional[str] = None,
        config: Optional[Settings] = None,
    ):
        """
        Initialize the manager.

        Args:
            page: Playwright page hosting the application form
            profile_client: Source of the user profile on cache miss
            store: Key-value store for the profile cache and settings
            notifier: Receiver of outcome events, logs them when omitted
            detector: Form detector, built for the page when omitted
            filler: Fill executor, built with configured pacing when omitted
            fill_log: Audit log, stored in `store` when omitted
            job_title: Job being applied for, used for cover letters
            company: Company being applied to, used for cover letters
            config: Settings, the process-wide settings when omitted
        """
        self.page = page
        self.profile_client = profile_client
        self.store = store
        self.notifier = notifier or LogNotifier()
        self.config = config or default_settings
        self.detector = detector or FormDetector(page, wait_timeout_ms=self.config.wait_for_element_timeout_ms)
        self.filler = filler or FormFiller()
        self.fill_log = fill_log or FillLog(store, capacity=self.config.audit_log_capacity)
        self.job_title = job_title
        self.company = company
        self.logger = logger.bind(component="autofill_manager")

        self.detected_forms: List[FormDescriptor] = []
        self.current_form: Optional[FormDescriptor] = None

    async def initialize(self) -> InitializeResult:
        """Detect application forms and select the first one."""
        self.logger.info("Initializing auto-fill")
        count = await self.refresh()

        if count == 0:
            self.logger.info("No application forms found")
            return InitializeResult(
                success=False,
                forms_found=0,
                message="No application forms detected on this page",
            )

        self.logger.info("Application forms found", forms_found=count)
        return InitializeResult(
            success=True,
            forms_found=count,
            current_form=self.get_current_form_summary(),
        )

    async def refresh(self) -> int:
        """Re-run detection after the page changed; returns the number of forms."""
        self.detected_forms = await self.detector.detect_forms(wait_for_forms=True)
        self.current_form = self.detected_forms[0] if self.detected_forms else None
        return len(self.detected_forms)

    def select_form(self, index: int) -> bool:
        if 0 <= index < len(self.detected_forms):
            self.current_form = self.detected_forms[index]
            self.logger.info("Form selected", index=index)
            return True
        return False

    async def start_auto_fill(
        self,
        options: Optional[FillOptions] = None,
    ) -> Union[FillResult, AutoFillFailure]:
        """
        Fill the selected form from the user profile.

        Nothing on the page is touched unless the profile is available and
        every required field has a value.

        Args:
            options: Skip and focus behaviour

        Returns:
            FillResult after execution, or AutoFillFailure when the fill did not start
        """
        if options is None:
            options = FillOptions(skip_demographics=self.config.skip_demographics_default)

        form = self.current_form
        if form is None:
            return AutoFillFailure(
                reason=FailureReason.NO_FORM_SELECTED,
                message="No form selected for auto-fill",
            )

        self.logger.info("Starting auto-fill", **log_fill_context(self.page.url, form, options))

        try:
            profile = await self.get_profile()
        except httpx.HTTPError as e:
            self.logger.error("Profile fetch failed", error=str(e))
            return AutoFillFailure(
                reason=FailureReason.PROFILE_FETCH_FAILED,
                message=f"Could not reach the profile service: {e}",
            )

        if profile is None:
            return AutoFillFailure(
                reason=FailureReason.MISSING_PROFILE,
                message="User profile not found. Please complete your profile first.",
            )

        values = self._mapper(profile).map_fields(form.fields)

        missing = validate_required_fields(form, values)
        if missing:
            self.logger.warning("Missing required profile data", missing=[item.name for item in missing])
            return AutoFillFailure(
                reason=FailureReason.MISSING_REQUIRED_FIELDS,
                message="Missing required profile data",
                missing_fields=missing,
            )

        result = await self.filler.fill_form(form, values, options)

        await self._record(result, form, options)
        await self.notifier.notify({
            "event": COMPLETE_EVENT,
            "url": self.page.url,
            "filledCount": result.filled_count,
            "success": result.success,
        })

        return result

    async def _record(self, result: FillResult, form: FormDescriptor, options: FillOptions) -> None:
        url = self.page.url
        entry = FillLogEntry.from_result(
            result,
            url=url,
            domain=urlparse(url).hostname or "",
            form_action=form.action_url,
            options=options,
        )
        try:
            await self.fill_log.append(entry)
        except (OSError, ValueError) as e:
            # The fill already happened; a lost audit entry must not hide its result.
            self.logger.error("Error logging fill operation", error=str(e))

    def _mapper(self, profile: UserProfile) -> FieldValueMapper:
        return FieldValueMapper(profile, job_title=self.job_title, company=self.company)

    async def get_profile(self) -> Optional[UserProfile]:
        """
        Cached profile, fetched and cached on a miss.

        Raises:
            httpx.HTTPError: The profile service could not be reached
        """
        cached = await self.store.get(PROFILE_CACHE_KEY)
        if cached:
            try:
                return UserProfile.model_validate(cached)
            except ValidationError as e:
                self.logger.warning("Discarding invalid cached profile", errors=e.error_count())

        profile = await self.profile_client.get_profile()
        if profile is not None:
            await self._cache_profile(profile)
        return profile

    async def refresh_profile(self) -> UserProfile:
        """
        Refetch the profile and replace the cached copy.

        Raises:
            ProfileUnavailableError: The service has no profile for this user
            httpx.HTTPError: The profile service could not be reached
        """
        try:
            profile = await self.profile_client.refresh_profile()
        except ProfileUnavailableError:
            await self.store.remove(PROFILE_CACHE_KEY)
            raise
        await self._cache_profile(profile)
        return profile

    async def _cache_profile(self, profile: UserProfile) -> None:
        await self.store.set(PROFILE_CACHE_KEY, profile.model_dump(mode="json", by_alias=True))

    async def get_field_preview(self) -> List[FieldPreview]:
        """What each field of the selected form would receive, with sensitive values masked."""
        if self.current_form is None:
            return []

        try:
            profile = await self.get_profile()
        except httpx.HTTPError as e:
            self.logger.error("Profile fetch failed during preview", error=str(e))
            return []
        if profile is None:
            return []

        mapper = self._mapper(profile)
        preview = []
        for name, descriptor in self.current_form.fields.items():
            value = mapper.get_field_value(name, descriptor)
            will_fill = value is not None
            preview.append(FieldPreview(
                canonical_name=name,
                label=descriptor.label,
                kind=descriptor.kind,
                required=descriptor.required,
                value=mask_sensitive_data(name, value) if will_fill else None,
                will_fill=will_fill,
            ))
        return preview

    def get_current_form_summary(self) -> Optional[FormSummary]:
        form = self.current_form
        if form is None:
            return None
        return FormSummary(
            action=form.action_url,
            method=form.method,
            field_count=form.field_count,
            score=form.score,
            fields=list(form.fields),
            summary=form.summary(),
        )

    def get_progress(self) -> Dict[str, Any]:
        return self.filler.get_progress()

    def stop_filling(self) -> None:
        self.filler.stop()

    async def get_fill_logs(self, limit: int = 10) -> List[FillLogEntry]:
        return await self.fill_log.entries(limit)

    async def clear_fill_logs(self) -> None:
        await self.fill_log.clear()

    async def is_auto_fill_enabled(self) -> bool:
        """Enabled unless the stored settings turn it off explicitly."""
        stored = await self.store.get(SETTINGS_KEY)
        if isinstance(stored, dict):
            return stored.get("autoFillEnabled") is not False
        return True
