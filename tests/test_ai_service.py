"""Tests for the AI assistant service using a fake completion client."""

import pytest

from kaji.services.ai_service import ASSISTANT_SYSTEM_PROMPT, AIService


@pytest.mark.asyncio
async def test_answer_question_builds_conversation(fake_llm) -> None:
    service = AIService(fake_llm)
    history = [
        {"role": "user", "content": "What is CVE-2023-1234?"},
        {"role": "assistant", "content": "A renderer bug."},
    ]

    completion = await service.answer_question("Is it patched?", history=history)

    messages = fake_llm.calls[0]["messages"]
    assert messages[0] == {"role": "system", "content": ASSISTANT_SYSTEM_PROMPT}
    assert messages[1:3] == history
    assert messages[-1] == {"role": "user", "content": "Is it patched?"}
    assert fake_llm.calls[0]["temperature"] == 0.7
    assert completion.content == fake_llm.content


@pytest.mark.asyncio
async def test_answer_question_appends_context(fake_llm) -> None:
    service = AIService(fake_llm)

    await service.answer_question("Explain", context={"exploit": {"title": "Sandbox escape"}})

    user_turn = fake_llm.calls[0]["messages"][-1]["content"]
    assert user_turn.startswith("Explain\n\nContext:")
    assert "Sandbox escape" in user_turn


@pytest.mark.asyncio
async def test_validate_report_parses_fenced_json(fake_llm) -> None:
    fake_llm.content = '```json\n{"isValid": true, "analysis": "Reproducible", "confidence": 0.85}\n```'
    service = AIService(fake_llm)

    verdict = await service.validate_report("Wrong CVSS score", exploit_id="e-1")

    assert verdict.is_valid is True
    assert verdict.analysis == "Reproducible"
    assert verdict.confidence == pytest.approx(0.85)
    assert "Related Exploit ID: e-1" in fake_llm.calls[0]["messages"][-1]["content"]
    assert fake_llm.calls[0]["temperature"] == 0.4


@pytest.mark.asyncio
async def test_validate_report_unparseable_reply(fake_llm) -> None:
    fake_llm.content = "I think this report is probably fine."
    service = AIService(fake_llm)

    verdict = await service.validate_report("Missing exploit")

    assert verdict.is_valid is False
    assert verdict.analysis == "Unable to parse AI validation response"
    assert verdict.confidence == 0.0


@pytest.mark.asyncio
async def test_validate_report_out_of_range_confidence(fake_llm) -> None:
    fake_llm.content = '{"isValid": true, "analysis": "ok", "confidence": 7}'

    verdict = await AIService(fake_llm).validate_report("x")

    assert verdict.analysis == "Unable to parse AI validation response"
