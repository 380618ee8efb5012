import asyncio

import pytest
from pydantic import ValidationError
from pydantic_ai import BinaryContent
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart, ToolCallPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel

from krops.agent.agronomist import Agronomist
from krops.agent.core import DiagnosisReport, DiagnosisResult, agronomist_agent
from krops.errors import DiagnosisFailedError
from krops.languages import Language
from krops.pipe import DiagnosisPipeline

from conftest import TELUGU_REPORT, FakePhotographer

DESCRIPTION = "yellow patches on lower leaves, wilting after 3 days"


def test_output_schema_has_exactly_the_seven_required_strings():
    schema = DiagnosisReport.model_json_schema()
    fields = ["crop", "disease", "medicineName", "prescription", "dosage", "timing", "safety"]
    assert sorted(schema["properties"]) == sorted(fields)
    assert sorted(schema["required"]) == sorted(fields)
    assert all(prop["type"] == "string" for prop in schema["properties"].values())


def test_report_rejects_missing_field():
    partial = {k: v for k, v in TELUGU_REPORT.items() if k != "dosage"}
    with pytest.raises(ValidationError):
        DiagnosisReport.model_validate(partial)


def test_result_is_frozen_except_for_photo_copy():
    result = DiagnosisResult.from_report(DiagnosisReport.model_validate(TELUGU_REPORT))
    assert result.medicine_image is None
    with pytest.raises(ValidationError):
        result.crop = "Wheat"
    with_photo = result.with_medicine_image("data:image/png;base64,AAAA")
    assert with_photo.medicine_image == "data:image/png;base64,AAAA"
    assert result.medicine_image is None
    assert with_photo.crop == result.crop


@pytest.mark.parametrize("disease,healthy", [("Healthy", True), ("ఆరోగ్యకరమైన (healthy)", True), ("Leaf Spot", False)])
def test_healthy_sentinel(disease, healthy):
    result = DiagnosisResult.model_validate(dict(TELUGU_REPORT, disease=disease))
    assert result.is_healthy is healthy


def test_telugu_scan_sends_image_description_and_script_instruction(captured):
    seen = {}

    def agronomist_reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        seen["parts"] = messages[0].parts
        return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, TELUGU_REPORT)])

    agronomist = Agronomist(FunctionModel(agronomist_reply))
    report = asyncio.run(agronomist.analyze(captured, DESCRIPTION, Language.TELUGU))

    assert report == DiagnosisReport.model_validate(TELUGU_REPORT)

    system_text = " ".join(p.content for p in seen["parts"] if p.part_kind == "system-prompt")
    assert "Telugu script" in system_text
    assert "English name in parentheses" in system_text

    user_parts = [p for p in seen["parts"] if p.part_kind == "user-prompt"]
    content = user_parts[0].content
    assert any(isinstance(c, str) and DESCRIPTION in c for c in content)
    images = [c for c in content if isinstance(c, BinaryContent)]
    assert len(images) == 1
    assert images[0].media_type == "image/jpeg"
    assert images[0].data == captured.payload_bytes()


def test_structured_output_via_test_model(captured):
    agronomist = Agronomist(TestModel(custom_output_args=TELUGU_REPORT))
    report = asyncio.run(agronomist.analyze(captured, "", Language.ENGLISH))
    assert report.medicine_name == "Mancozeb 75% WP"
    assert report.dosage == "2g per 1L"


def non_json_reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
    return ModelResponse(parts=[TextPart("I think it is probably blast, spray something.")])


def missing_field_reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
    args = {k: v for k, v in TELUGU_REPORT.items() if k != "safety"}
    return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, args)])


@pytest.mark.parametrize("reply", [non_json_reply, missing_field_reply])
def test_malformed_analysis_fails_pipeline_without_caching(cache, captured, reply):
    pipeline = DiagnosisPipeline(
        analyzer=Agronomist(FunctionModel(reply)),
        photographer=FakePhotographer(),
        cache=cache,
    )
    with pytest.raises(DiagnosisFailedError):
        asyncio.run(pipeline.run(captured, DESCRIPTION, Language.TELUGU))
    assert cache.load() == []


def test_agent_is_not_bound_to_a_model():
    assert agronomist_agent.model is None
