import logging
from typing import Callable, Optional

from google import genai

from krops import connectivity
from krops.agent.agronomist import Agronomist
from krops.agent.core import build_model
from krops.agent.photo import MedicinePhotographer
from krops.audio import AudioFeedback
from krops.cache import ReportCache
from krops.config import Settings
from krops.errors import ConfigurationError
from krops.pipe import DiagnosisPipeline, PipelineState
from krops.sample import DemoAgronomist, DemoPhotographer

logger = logging.getLogger("krops.pipe")


def build_pipeline(
    settings: Settings,
    cache: ReportCache,
    feedback: Optional[AudioFeedback] = None,
    on_transition: Optional[Callable[[PipelineState], None]] = None,
) -> DiagnosisPipeline:
    """Wire the live (or demo) services into a pipeline."""
    is_online = connectivity.ConnectivityMonitor(settings.connectivity_host)

    if settings.demo_mode:
        logger.info("[Setup] Demo mode: using the bundled sample report")
        analyzer, photographer = DemoAgronomist(), DemoPhotographer()
    else:
        if not settings.google_api_key:
            raise ConfigurationError("GOOGLE_API_KEY is not set. Check your .env file.")
        analyzer = Agronomist(build_model(settings))
        client = genai.Client(api_key=settings.google_api_key)
        photographer = MedicinePhotographer(client, model=settings.image_model)

    return DiagnosisPipeline(
        analyzer=analyzer,
        photographer=photographer,
        cache=cache,
        feedback=feedback,
        is_online=is_online,
        on_transition=on_transition,
    )
