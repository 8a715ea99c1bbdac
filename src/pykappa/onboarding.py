"""Resumable six-step member registration wizard.

Step 1 creates and verifies the identity-provider account; steps 2-6 collect
profile fields.  Once the account exists, every edit is autosaved (debounced)
to two places: the process-local :class:`~pykappa.interfaces.DraftCache` and
the remote :class:`~pykappa.interfaces.DraftStore`.  The remote draft is
authoritative when a session resumes.

Usage::

    wizard = RegistrationWizard(draft_store, asset_store, cache)
    await wizard.start(session)          # resumes at step 2 if possible
    wizard.update(name="Jane Doe", membership_number="12345")
    await wizard.advance()
    ...
    await wizard.finalize()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from datetime import UTC, datetime
from typing import Any

from pykappa._cache import MemoryDraftCache, overlay_draft
from pykappa._constants import (
    ALLOWED_IMAGE_TYPES,
    AUTOSAVE_DEBOUNCE_SECONDS,
    FIRST_STEP,
    LAST_STEP,
    MAX_IMAGE_BYTES,
    MIN_PASSWORD_LENGTH,
    PROFILE_FIRST_STEP,
)
from pykappa.debounce import debounce
from pykappa.exceptions import (
    InvalidImageError,
    KappaError,
    OnboardingError,
    OnboardingFinishedError,
    StepValidationError,
)
from pykappa.interfaces import AssetStore, DraftCache, DraftStore
from pykappa.models._base import OnboardingStatus
from pykappa.models.draft import (
    SECRET_FIELDS,
    SOCIAL_NETWORKS,
    DraftFields,
    HeadshotImage,
    RegistrationForm,
)
from pykappa.models.user import UserSession

_logger = logging.getLogger(__name__)

# Fields that change only through dedicated operations.
_MANAGED_FIELDS: frozenset[str] = frozenset({"subject_id", "headshot", "headshot_url", "social_links"})


def validate_image(image: HeadshotImage) -> None:
    """Reject unsupported or oversized headshots.

    Raises
    ------
    InvalidImageError
    """
    if image.content_type.lower() not in ALLOWED_IMAGE_TYPES:
        raise InvalidImageError("Invalid file type. Please upload a JPEG, PNG, or WebP image.")
    if image.size == 0:
        raise InvalidImageError("The selected image is empty.")
    if image.size > MAX_IMAGE_BYTES:
        raise InvalidImageError(f"Image must be {MAX_IMAGE_BYTES // (1024 * 1024)} MB or smaller.")


class RegistrationWizard:
    """Drive one user's registration, step by step."""

    def __init__(
        self,
        drafts: DraftStore,
        assets: AssetStore,
        cache: DraftCache | None = None,
        *,
        autosave_delay: float = AUTOSAVE_DEBOUNCE_SECONDS,
    ) -> None:
        self._drafts = drafts
        self._assets = assets
        self._cache: DraftCache = cache if cache is not None else MemoryDraftCache()
        self._autosave = debounce(self.save_draft, autosave_delay)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._step = FIRST_STEP
        self.form = RegistrationForm()
        self.last_saved_at: datetime | None = None
        self.finished = False

    @property
    def step(self) -> int:
        return self._step

    @property
    def autosave_enabled(self) -> bool:
        """Autosave runs only after the account exists (step 2 onwards)."""
        return self._step >= PROFILE_FIRST_STEP and bool(self.form.subject_id) and not self.finished

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    # ------------------------------------------------------------------
    # Start / resume
    # ------------------------------------------------------------------

    async def start(self, session: UserSession | None = None) -> int:
        """Pick the starting step and hydrate the form.

        A session that has not finished onboarding, or a locally cached draft
        that already carries a subject id, resumes at step 2; step 1 is never
        re-run for an existing account.

        Raises
        ------
        OnboardingFinishedError
            If *session* already finished onboarding.
        """
        if session is not None:
            if session.onboarding_status is OnboardingStatus.FINISHED:
                raise OnboardingFinishedError("Onboarding is already complete")
            self.form.subject_id = session.subject_id
            self.form.email = session.email
            self._step = PROFILE_FIRST_STEP
            await self._hydrate(session.subject_id, session.email)
            return self._step

        cached = self._load_local()
        subject_id = cached.get("cognito_sub") if cached else None
        if cached and subject_id:
            _logger.debug("Resuming cached registration for %s", subject_id)
            self.form.subject_id = str(subject_id)
            self.form.email = str(cached.get("email") or "")
            self._step = PROFILE_FIRST_STEP
            await self._hydrate(str(subject_id), self.form.email)
        return self._step

    async def _hydrate(self, subject_id: str, email: str) -> None:
        try:
            remote = await self._drafts.get_draft(subject_id)
        except KappaError:
            _logger.warning("Draft load failed for %s; continuing with blank fields", subject_id, exc_info=True)
            self.form = RegistrationForm(email=email, subject_id=subject_id)
            return

        local = self._load_local()
        if local and local.get("cognito_sub") not in (None, subject_id):
            # Cached draft belongs to someone else.
            local = None

        remote_data = remote.model_dump(exclude_none=True) if remote is not None else {}
        merged = overlay_draft(remote_data, local)
        if merged:
            self.form.apply_draft(DraftFields.model_validate(merged))
        if not self.form.email:
            self.form.email = email
        if remote is not None:
            self.last_saved_at = remote.last_saved_at

    # ------------------------------------------------------------------
    # Step 1: identity creation
    # ------------------------------------------------------------------

    def _require_step(self, step: int, action: str) -> None:
        if self._step != step:
            raise OnboardingError(f"Cannot {action} at step {self._step}")

    async def sign_up(self, email: str, password: str, confirm_password: str) -> str:
        """Create the provider account; returns the new subject id."""
        self._require_step(FIRST_STEP, "sign up")
        email = email.strip()
        if not email:
            raise StepValidationError("Please enter your email address", field="email")
        if password != confirm_password:
            raise StepValidationError("Passwords do not match", field="confirm_password")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise StepValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                field="password",
            )

        subject_id = await self._drafts.sign_up(email, password)
        self.form.email = email
        self.form.subject_id = subject_id
        self.form.password = ""
        self.form.confirm_password = ""
        self._write_local()
        return subject_id

    async def verify(self, code: str) -> int:
        """Confirm the emailed code and move on to step 2."""
        self._require_step(FIRST_STEP, "verify")
        subject_id = self.form.subject_id
        if not subject_id:
            raise StepValidationError("Please create your account first", field="email")
        code = code.strip()
        if not code:
            raise StepValidationError("Please enter the verification code", field="verification_code")

        await self._drafts.confirm_sign_up(self.form.email, code, subject_id)
        self.form.verification_code = ""

        try:
            draft = await self._drafts.upsert_draft(subject_id, self.form.email, {})
        except KappaError:
            _logger.warning("Initial draft creation failed for %s", subject_id, exc_info=True)
        else:
            self.form.apply_draft(draft)
        self._write_local()

        # An image picked before verification could not be uploaded yet.
        if self.form.headshot is not None and not self.form.headshot_url:
            await self._upload(self.form.headshot)

        self._step = PROFILE_FIRST_STEP
        return self._step

    # ------------------------------------------------------------------
    # Field edits and autosave
    # ------------------------------------------------------------------

    def update(self, **fields: Any) -> None:
        """Edit form fields and schedule an autosave."""
        unknown = set(fields) - RegistrationForm.field_names()
        managed = set(fields) & _MANAGED_FIELDS
        if unknown or managed:
            raise ValueError(f"Cannot update fields: {sorted(unknown | managed)}")
        for name, value in fields.items():
            self.form.set(name, value)
        if set(fields) - SECRET_FIELDS:
            self._schedule_autosave()

    def update_social_links(self, **links: str) -> None:
        unknown = set(links) - set(SOCIAL_NETWORKS)
        if unknown:
            raise ValueError(f"Unknown social networks: {sorted(unknown)}")
        self.form.social_links = self.form.social_links.model_copy(update=links)
        self._schedule_autosave()

    def _schedule_autosave(self) -> None:
        if self.autosave_enabled:
            self._autosave.schedule()

    async def save_draft(self) -> bool:
        """One autosave tick: local cache write, then remote upsert.

        Never raises for storage failures; returns whether the remote write
        succeeded.
        """
        subject_id = self.form.subject_id
        if not self.autosave_enabled or subject_id is None:
            return False

        email = self.form.email
        payload = self.form.draft_payload()
        self._write_local()

        try:
            draft = await self._drafts.upsert_draft(subject_id, email, payload)
        except KappaError:
            _logger.warning(
                "Draft auto-save failed for %s; progress is kept locally", subject_id, exc_info=True
            )
            return False
        self.last_saved_at = draft.last_saved_at or datetime.now(UTC)
        return True

    def _load_local(self) -> dict[str, Any] | None:
        try:
            return self._cache.load()
        except OSError:
            _logger.warning("Reading the local draft cache failed", exc_info=True)
            return None

    def _write_local(self) -> None:
        try:
            self._cache.save(self.form.cacheable())
        except OSError:
            _logger.warning("Writing the local draft cache failed", exc_info=True)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _validate_step(self, step: int) -> None:
        if step == PROFILE_FIRST_STEP:
            if self.form.is_blank("name"):
                raise StepValidationError("Please enter your full name", field="name")
            if self.form.is_blank("membership_number"):
                raise StepValidationError("Please enter your membership number", field="membership_number")

    def advance(self) -> int:
        """Move to the next step after validating the current one.

        Raises
        ------
        StepValidationError
            If the current step is incomplete; the step does not change.
        OnboardingError
            At step 1 (use :meth:`verify`) or at the last step.
        """
        if self._step == FIRST_STEP:
            raise OnboardingError("Verify your email address to continue")
        if self._step >= LAST_STEP:
            raise OnboardingError("Already at the last step")
        self._validate_step(self._step)

        self._step += 1
        self._autosave.cancel()
        self._spawn(self.save_draft())
        return self._step

    def back(self) -> int:
        floor = PROFILE_FIRST_STEP if self.form.subject_id else FIRST_STEP
        if self._step > floor:
            self._step -= 1
        return self._step

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ------------------------------------------------------------------
    # Headshot
    # ------------------------------------------------------------------

    async def select_image(self, image: HeadshotImage) -> str | None:
        """Validate and immediately upload a headshot.

        Returns the stored URL, or ``None`` when the upload has to wait
        (account not verified yet) or failed.  A pending image is uploaded
        after verification or sent with the final submission.
        """
        validate_image(image)
        self.form.headshot = image
        self.form.headshot_url = None
        if not self.form.subject_id or self._step == FIRST_STEP:
            return None
        return await self._upload(image)

    async def _upload(self, image: HeadshotImage) -> str | None:
        subject_id = self.form.subject_id
        if subject_id is None:
            return None
        try:
            url = await self._assets.upload_image(subject_id, self.form.email, image)
        except KappaError:
            _logger.warning("Headshot upload failed for %s", subject_id, exc_info=True)
            return None
        # A newer selection supersedes this upload.
        if self.form.headshot is image:
            self.form.headshot = None
            self.form.headshot_url = url
            self._schedule_autosave()
        return url

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def finalize(self) -> None:
        """Submit the assembled registration and purge the local cache.

        Submission errors propagate; the draft and cache stay intact so the
        user can retry.
        """
        if self.finished:
            raise OnboardingFinishedError("Registration was already submitted")
        self._require_step(LAST_STEP, "finalize")
        self._validate_step(PROFILE_FIRST_STEP)

        self._autosave.cancel()
        image = self.form.headshot if not self.form.headshot_url else None
        await self._drafts.finalize(self.form.finalize_payload(), image)

        self.finished = True
        try:
            self._cache.clear()
        except OSError:
            _logger.warning("Clearing the local draft cache failed", exc_info=True)
        _logger.info("Registration submitted for %s", self.form.subject_id)

    def close(self) -> None:
        """Drop a scheduled autosave.  Saves already under way keep running."""
        self._autosave.cancel()

    async def drain(self) -> None:
        """Wait for autosaves and uploads already under way."""
        await self._autosave.drain()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
