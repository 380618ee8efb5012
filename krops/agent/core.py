from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_ai import Agent
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

from krops.agent.deps import ScanDeps
from krops.config import Settings
from krops.errors import ConfigurationError

HEALTHY_SENTINEL = "healthy"


class DiagnosisReport(BaseModel):
    """The seven fields the analysis call must return, all required strings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    crop: str = Field(min_length=1, description='Crop name in the target script with an English gloss, e.g. "వరి (Rice)"')
    disease: str = Field(min_length=1, description='Disease name in the target script with an English gloss, e.g. "వరి అగ్గి తెగులు (Rice Blast)"')
    medicine_name: str = Field(description="Specific product/chemical name, in English, used to label a product photo")
    prescription: str = Field(description="Detailed treatment instructions")
    dosage: str = Field(description='Specific concentration, e.g. "0.6 ml per 1L water"')
    timing: str = Field(description="Application timing or coverage, e.g. per acre and interval")
    safety: str = Field(description="Protective measures for the farmer")


class DiagnosisResult(DiagnosisReport):
    medicine_image: Optional[str] = None
    original_text: Optional[str] = None

    @classmethod
    def from_report(cls, report: DiagnosisReport) -> "DiagnosisResult":
        return cls(**report.model_dump())

    def with_medicine_image(self, image_uri: Optional[str]) -> "DiagnosisResult":
        return self.model_copy(update={"medicine_image": image_uri})

    @property
    def is_healthy(self) -> bool:
        return HEALTHY_SENTINEL in self.disease.lower()


def build_model(settings: Settings) -> GoogleModel:
    if not settings.google_api_key:
        raise ConfigurationError("GOOGLE_API_KEY is not set. Check your .env file.")
    provider = GoogleProvider(api_key=settings.google_api_key)
    return GoogleModel(settings.analysis_model, provider=provider)


# The model is supplied per run so the agent can be imported without credentials.
agronomist_agent = Agent(
    deps_type=ScanDeps,
    output_type=DiagnosisReport,
    retries=0,
    system_prompt=(
        "You are the KROPS AI Lead Agronomist. "
        "Perform a \"Certified Agronomic Analysis\" of the crop photo and the farmer's description.\n\n"
        "Identify the crop and the specific disease or condition. If the plant is healthy, "
        "say so in the disease field and include the English word 'Healthy'.\n"
        "Provide a professional prescription including a specific medicine/chemical name "
        "(e.g. \"Tricyclazole 75% WP\"), exact dosage (e.g. 0.6 ml per 1L), coverage "
        "(e.g. per 1 acre) and safety instructions for the farmer.\n"
        "The medicine name is used to label a product photograph, so keep it in English."
    ),
)
