"""
Deterministic result substitution for tests.

Expected results are registered with ``expect_content`` and resolved against
the input contents of each mock request:

1. callbacks run in registration order with the full content list; the first
   one returning something other than ``None`` wins;
2. otherwise the most recently registered concrete value is used;
3. otherwise resolution fails with GenerativeAIError.

Registrations accumulate until ``clear_expected_content()``. State lives on the
instance, so separate test scenarios never share it.
"""

from typing import Any, Callable, List, Optional

from ai_services.core.exceptions import DataValidationError, GenerativeAIError
from ai_services.schemas.candidates import Candidate, Candidates
from ai_services.schemas.content import Content
from ai_services.schemas.enums import ContentRole
from ai_services.services.formatter import format_content

ContentCallback = Callable[[List[Content]], Any]


def parse_candidates(content: Any) -> Candidates:
    if isinstance(content, Candidates):
        return content
    if not isinstance(content, Candidate):
        content = Candidate(format_content(content, ContentRole.MODEL))
    return Candidates([content])


class MockResults:
    def __init__(self) -> None:
        self._expected_candidates: Optional[Candidates] = None
        self._expected_candidates_callbacks: List[ContentCallback] = []

    def expect_content(self, content: Any) -> None:
        if callable(content):
            self._expected_candidates_callbacks.append(content)
            return
        # normalised up front so a bad value fails at registration, not at resolution
        self._expected_candidates = parse_candidates(content)

    def clear_expected_content(self) -> None:
        self._expected_candidates = None
        self._expected_candidates_callbacks = []

    def resolve_expected_candidates(self, contents: List[Content]) -> Candidates:
        for callback in self._expected_candidates_callbacks:
            result = callback(list(contents))
            if result is not None:
                try:
                    return parse_candidates(result)
                except DataValidationError as e:
                    raise GenerativeAIError(f"Invalid mock content returned by callback: {e}") from e

        if self._expected_candidates is not None:
            # a fresh copy per resolution so callers can't change later results
            return Candidates.from_dict(self._expected_candidates.to_dict())

        raise GenerativeAIError("No mock content configured for this request; call expect_content() first.")
