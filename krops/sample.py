from typing import Optional

from krops.agent.core import DiagnosisReport
from krops.capture import CapturedImage
from krops.languages import Language


output = DiagnosisReport(
    crop="వరి (Rice)",
    disease="ఆకు మచ్చ తెగులు (Leaf Spot)",
    medicine_name="Mancozeb 75% WP",
    prescription=(
        "ప్రభావిత ఆకులను తొలగించి నాశనం చేయండి. "
        "పొలంలో నీరు నిలవకుండా చూడండి. మాంకోజెబ్ 75% WP ను సిఫార్సు చేసిన మోతాదులో పిచికారీ చేయండి."
    ),
    dosage="2g per 1L",
    timing="per acre, 10 days interval",
    safety="Wear gloves and mask",
)


class DemoAgronomist:
    """Returns the bundled sample report without calling the AI service."""

    async def analyze(self, image: CapturedImage, description: str, language: Language) -> DiagnosisReport:
        return output


class DemoPhotographer:
    async def photograph(self, medicine_name: str) -> Optional[str]:
        return None
