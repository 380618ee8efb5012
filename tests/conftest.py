import base64
import io

import pytest
from PIL import Image

from krops.agent.core import DiagnosisReport, DiagnosisResult
from krops.cache import ReportCache
from krops.capture import CapturedImage

TELUGU_REPORT = {
    "crop": "వరి (Rice)",
    "disease": "ఆకు మచ్చ తెగులు (Leaf Spot)",
    "medicineName": "Mancozeb 75% WP",
    "prescription": "Remove affected leaves and spray Mancozeb.",
    "dosage": "2g per 1L",
    "timing": "per acre, 10 days interval",
    "safety": "Wear gloves and mask",
}


def make_image_bytes(fmt="PNG", size=(32, 24), color=(40, 160, 60)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(make_image_bytes("PNG", size=(8, 8))).decode("ascii")


def make_result(crop="Tomato", disease="Early Blight", **extra) -> DiagnosisResult:
    base = DiagnosisResult.model_validate(TELUGU_REPORT)
    return base.model_copy(update=dict(extra, crop=crop, disease=disease))


class FakeAnalyzer:
    def __init__(self, report=None, error=None):
        self.report = report or DiagnosisReport.model_validate(TELUGU_REPORT)
        self.error = error
        self.calls = []

    async def analyze(self, image, description, language):
        self.calls.append((image, description, language))
        if self.error is not None:
            raise self.error
        return self.report


class FakePhotographer:
    def __init__(self, image=PNG_DATA_URI, error=None):
        self.image = image
        self.error = error
        self.calls = []

    async def photograph(self, medicine_name):
        self.calls.append(medicine_name)
        if self.error is not None:
            raise self.error
        return self.image


class FakeFeedback:
    def __init__(self):
        self.cues = []

    def play(self, cue):
        self.cues.append(cue)


@pytest.fixture
def captured():
    return CapturedImage.from_bytes(make_image_bytes())


@pytest.fixture
def cache_path(tmp_path):
    return str(tmp_path / "store" / "reports.json")


@pytest.fixture
def cache(cache_path):
    return ReportCache(cache_path)
