# tests/test_mock_results.py
import pytest

from ai_services.core.exceptions import DataValidationError, GenerativeAIError
from ai_services.mock.model import MockTextGenerationModel
from ai_services.schemas.candidates import Candidate, Candidates
from ai_services.schemas.content import Content
from ai_services.schemas.enums import ContentRole
from ai_services.schemas.parts import Parts


def first_text(candidates):
    return candidates.get(0).content.parts.get(0).text


def prompt_text(contents):
    return contents[-1].parts.get(0).text


@pytest.mark.asyncio
async def test_callbacks_run_before_concrete_value(mock_model):
    # Tests resolution precedence:
    # - A callback returning None never hides the concrete value.
    # - A callback that recognises the prompt wins over it, other prompts fall back.
    mock_model.expect_content("A")
    mock_model.expect_content(lambda contents: None)
    assert first_text(await mock_model.generate_text("tell me a joke")) == "A"

    mock_model.expect_content(lambda contents: "B" if "weather" in prompt_text(contents) else None)
    assert first_text(await mock_model.generate_text("what's the weather?")) == "B"
    assert first_text(await mock_model.generate_text("tell me a joke")) == "A"


@pytest.mark.asyncio
async def test_first_matching_callback_wins(mock_model):
    calls = []

    def never(contents):
        calls.append("never")
        return None

    def always(contents):
        calls.append("always")
        return "first"

    def late(contents):
        calls.append("late")
        return "second"

    for callback in (never, always, late):
        mock_model.expect_content(callback)

    assert first_text(await mock_model.generate_text("hi")) == "first"
    assert calls == ["never", "always"]


@pytest.mark.asyncio
async def test_most_recent_concrete_value_wins(mock_model):
    mock_model.expect_content("old")
    mock_model.expect_content("new")
    assert first_text(await mock_model.generate_text("hi")) == "new"


@pytest.mark.asyncio
async def test_callback_receives_full_conversation(mock_model):
    seen = []

    def record(contents):
        seen.append([c.role for c in contents])
        return "ok"

    mock_model.expect_content(record)
    await mock_model.generate_text([
        "hello",
        Content(ContentRole.MODEL, Parts.from_dict([{"text": "hi"}])),
        "how are you?",
    ])
    assert seen == [[ContentRole.USER, ContentRole.MODEL, ContentRole.USER]]


@pytest.mark.asyncio
async def test_registered_value_shapes(mock_model):
    # Tests the accepted registration values: Content, Candidate and Candidates
    # are returned as-is (wrapped where needed) and model text defaults to the model role.
    content = Content(ContentRole.MODEL, Parts.from_dict([{"text": "from content"}]))
    mock_model.expect_content(content)
    result = await mock_model.generate_text("hi")
    assert result.get(0).content == content

    candidates = Candidates([
        Candidate(Content(ContentRole.MODEL, Parts.from_dict([{"text": "one"}])), {"index": 0}),
        Candidate(Content(ContentRole.MODEL, Parts.from_dict([{"text": "two"}])), {"index": 1}),
    ])
    mock_model.expect_content(candidates)
    assert await mock_model.generate_text("hi") == candidates

    mock_model.expect_content("plain")
    assert (await mock_model.generate_text("hi")).get(0).content.role == ContentRole.MODEL


def test_invalid_registration_fails_immediately(mock_model):
    with pytest.raises(DataValidationError):
        mock_model.expect_content(42)


@pytest.mark.asyncio
async def test_nothing_registered_raises(mock_model):
    with pytest.raises(GenerativeAIError):
        await mock_model.generate_text("hi")


@pytest.mark.asyncio
async def test_callbacks_returning_none_with_no_fallback_raise(mock_model):
    mock_model.expect_content(lambda contents: None)
    with pytest.raises(GenerativeAIError):
        await mock_model.generate_text("hi")


@pytest.mark.asyncio
async def test_clear_expected_content(mock_model):
    # Tests that clearing drops both the callbacks and the concrete value.
    mock_model.expect_content("B")
    mock_model.expect_content(lambda contents: "A")
    mock_model.clear_expected_content()
    with pytest.raises(GenerativeAIError):
        await mock_model.generate_text("hi")

    mock_model.expect_content("again")
    assert first_text(await mock_model.generate_text("hi")) == "again"


@pytest.mark.asyncio
async def test_registrations_are_per_instance():
    first = MockTextGenerationModel()
    second = MockTextGenerationModel()
    first.expect_content("only first")
    assert first_text(await first.generate_text("hi")) == "only first"
    with pytest.raises(GenerativeAIError):
        await second.generate_text("hi")


@pytest.mark.asyncio
async def test_stream_generate_text_yields_once(mock_model):
    mock_model.expect_content("streamed")
    chunks = [c async for c in mock_model.stream_generate_text("hi")]
    assert len(chunks) == 1
    assert first_text(chunks[0]) == "streamed"


@pytest.mark.asyncio
async def test_invalid_prompt_is_a_generative_ai_error(mock_model):
    mock_model.expect_content("unused")
    with pytest.raises(GenerativeAIError) as exc_info:
        await mock_model.generate_text([Content(ContentRole.MODEL, Parts.from_dict([{"text": "hi"}]))])
    assert isinstance(exc_info.value.__cause__, DataValidationError)


@pytest.mark.asyncio
async def test_invalid_callback_result_is_a_generative_ai_error(mock_model):
    # a content mapping without a role can't be normalised
    mock_model.expect_content(lambda contents: {"parts": [{"text": "x"}]})
    with pytest.raises(GenerativeAIError) as exc_info:
        await mock_model.generate_text("hi")
    assert isinstance(exc_info.value.__cause__, DataValidationError)


@pytest.mark.asyncio
async def test_concrete_value_is_not_shared_between_results(mock_model):
    # Tests that changing one result never leaks into the next resolution.
    mock_model.expect_content("A")
    first = await mock_model.generate_text("hi")
    first.add_candidate(Candidate(Content(ContentRole.MODEL, Parts.from_dict([{"text": "extra"}]))))
    first.get(0).content.parts.add_text_part("more")

    second = await mock_model.generate_text("hi")
    assert len(second) == 1
    assert len(second.get(0).content.parts) == 1
    assert first_text(second) == "A"
