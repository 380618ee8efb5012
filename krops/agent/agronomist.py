import logging
from typing import Union

from pydantic_ai import BinaryContent
from pydantic_ai.models import Model

from krops.agent.core import DiagnosisReport, agronomist_agent
from krops.agent.deps import ScanDeps
# Importing instructions also registers the localisation prompt with the agent.
from krops.agent.instructions import build_user_prompt
from krops.capture import CapturedImage
from krops.languages import Language

logger = logging.getLogger("krops.agent")


class Agronomist:
    """Runs the photo analysis call against a pydantic-ai model."""

    def __init__(self, model: Union[Model, str]):
        self.model = model

    async def analyze(self, image: CapturedImage, description: str, language: Language) -> DiagnosisReport:
        deps = ScanDeps(language=language, description=description)
        photo = BinaryContent(data=image.payload_bytes(), media_type="image/jpeg")

        logger.info("[Agent] Reasoning over photo (%s) ...", language.value)
        result = await agronomist_agent.run(
            [build_user_prompt(description), photo],
            deps=deps,
            model=self.model,
        )
        report = result.output
        logger.info("[Agent] Diagnosis: %s / %s", report.crop, report.disease)
        return report
