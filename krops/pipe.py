import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Protocol

from krops.agent.core import DiagnosisReport, DiagnosisResult
from krops.audio import AudioFeedback, FeedbackCue
from krops.cache import ReportCache
from krops.capture import CapturedImage
from krops.errors import (
    DiagnosisCancelledError,
    DiagnosisFailedError,
    MissingImageError,
    OfflineError,
    PipelineBusyError,
)
from krops.languages import Language

logger = logging.getLogger("krops.pipe")


class PipelineState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    PHOTO_ANALYSIS_PENDING = "photo_analysis_pending"
    MEDICINE_IMAGE_PENDING = "medicine_image_pending"
    COMPLETE = "complete"
    FAILED = "failed"


IN_FLIGHT = {
    PipelineState.SUBMITTING,
    PipelineState.PHOTO_ANALYSIS_PENDING,
    PipelineState.MEDICINE_IMAGE_PENDING,
}


class Analyzer(Protocol):
    async def analyze(self, image: CapturedImage, description: str, language: Language) -> DiagnosisReport: ...


class Photographer(Protocol):
    async def photograph(self, medicine_name: str) -> Optional[str]: ...


class CancellationToken:
    """Checked before each suspension point of a run."""

    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise DiagnosisCancelledError("Diagnosis cancelled.")


class DiagnosisPipeline:
    """Turns a captured photo and a description into a cached DiagnosisResult.

    Two sequential calls: the photo analysis (hard failure aborts the run)
    and the medicine photo (soft failure leaves ``medicine_image`` unset).
    """

    def __init__(
        self,
        analyzer: Analyzer,
        photographer: Photographer,
        cache: ReportCache,
        feedback: Optional[AudioFeedback] = None,
        is_online: Callable[[], bool] = lambda: True,
        on_transition: Optional[Callable[[PipelineState], None]] = None,
    ):
        self.analyzer = analyzer
        self.photographer = photographer
        self.cache = cache
        self.feedback = feedback
        self.is_online = is_online
        self.on_transition = on_transition
        self.state = PipelineState.IDLE
        self.last_error: Optional[BaseException] = None
        self._gating = False

    @property
    def busy(self) -> bool:
        return self._gating or self.state in IN_FLIGHT

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        logger.debug("[Pipeline] -> %s", state.value)
        if self.on_transition is not None:
            self.on_transition(state)

    def _cue(self, cue: FeedbackCue) -> None:
        if self.feedback is not None:
            self.feedback.play(cue)

    async def _medicine_photo(self, medicine_name: str) -> Optional[str]:
        try:
            return await self.photographer.photograph(medicine_name)
        except Exception:
            logger.warning("[Pipeline] Medicine photo unavailable for %r", medicine_name, exc_info=True)
            return None

    def check_preconditions(self, image: Optional[CapturedImage]) -> None:
        """The checks that need no network: busy, then a captured image."""
        if self.busy:
            raise PipelineBusyError()
        if image is None:
            raise MissingImageError()

    async def check_connectivity(self) -> None:
        # The probe may block on a socket, so it runs off the event loop.
        # _gating keeps the pipeline busy meanwhile without leaving IDLE.
        self._gating = True
        try:
            online = await asyncio.to_thread(self.is_online)
        finally:
            self._gating = False
        if not online:
            raise OfflineError()

    async def run(
        self,
        image: Optional[CapturedImage],
        description: str,
        language: Language,
        token: Optional[CancellationToken] = None,
    ) -> DiagnosisResult:
        self.check_preconditions(image)
        await self.check_connectivity()
        token = token or CancellationToken()
        self.last_error = None

        logger.info("--- Starting diagnosis (%s) ---", language.value)
        self._enter(PipelineState.SUBMITTING)
        try:
            self._cue(FeedbackCue.ANALYZE)

            token.raise_if_cancelled()
            self._enter(PipelineState.PHOTO_ANALYSIS_PENDING)
            report = await self.analyzer.analyze(image, description, language)
            diagnosis = DiagnosisResult.from_report(report)

            token.raise_if_cancelled()
            self._enter(PipelineState.MEDICINE_IMAGE_PENDING)
            photo = await self._medicine_photo(diagnosis.medicine_name)
            if photo is not None:
                diagnosis = diagnosis.with_medicine_image(photo)

            token.raise_if_cancelled()
            self.cache.record(diagnosis)
            self._enter(PipelineState.COMPLETE)
        except DiagnosisCancelledError:
            logger.info("[Pipeline] Cancelled")
            self._enter(PipelineState.IDLE)
            raise
        except Exception as e:
            logger.error("[Pipeline] Diagnosis failed: %s", e, exc_info=True)
            self.last_error = e
            self._enter(PipelineState.FAILED)
            self._enter(PipelineState.IDLE)
            raise DiagnosisFailedError() from e
        finally:
            # task cancellation and interpreter exits skip the handlers above
            if self.busy:
                logger.warning("[Pipeline] Run aborted in %s", self.state.value)
                self._enter(PipelineState.IDLE)

        logger.info("[Pipeline] Complete: %s / %s (photo: %s)", diagnosis.crop, diagnosis.disease, photo is not None)
        self._cue(FeedbackCue.SUCCESS)
        return diagnosis
