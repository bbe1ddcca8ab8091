"""
Convenience helpers around the content model.

Building prompt content from text and binary attachments, pulling the text
back out of contents and candidates, and converting between files, blobs and
base64 data URLs (``data:<mime>;base64,<data>``).
"""

import base64
import binascii
import logging
import mimetypes
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, Field, StrictBytes, StrictStr

from ai_services.core.exceptions import DataValidationError
from ai_services.schemas.candidates import Candidates
from ai_services.schemas.content import Content
from ai_services.schemas.enums import ContentRole
from ai_services.schemas.parts import Parts, TextPart
from ai_services.services.formatter import format_content

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:([a-z0-9.+-]+/[a-z0-9.+-]+);base64,", re.IGNORECASE)


class Blob(BaseModel):
    """Binary data together with its MIME type."""

    data: StrictBytes
    mime_type: StrictStr = Field(min_length=1)

    @classmethod
    def from_file(cls, path: Union[str, Path], mime_type: str = "") -> "Blob":
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise DataValidationError(f"Could not read file {path}.") from e
        if not mime_type:
            mime_type = mimetypes.guess_type(str(path))[0] or ""
            if not mime_type:
                raise DataValidationError(f"Could not determine MIME type of file {path}.")
        return cls(data=data, mime_type=mime_type)


def text_to_content(text: str, role: Union[str, ContentRole] = ContentRole.USER) -> Content:
    return format_content(text, role)


def text_and_attachment_to_content(
    text: str, attachment: Blob, role: Union[str, ContentRole] = ContentRole.USER
) -> Content:
    return text_and_attachments_to_content(text, [attachment], role)


def text_and_attachments_to_content(
    text: str, attachments: Iterable[Blob], role: Union[str, ContentRole] = ContentRole.USER
) -> Content:
    # the text comes first, then one inline data part per attachment in the given order
    parts = Parts()
    parts.add_text_part(text)
    for attachment in attachments:
        parts.add_inline_data_part(attachment.mime_type, base64.b64encode(attachment.data).decode("ascii"))
    return format_content(parts, role)


def content_to_text(content: Content) -> str:
    """Join the first run of text parts in ``content``, each stripped, with blank lines.

    Non-text parts before the first text part are skipped; the first non-text
    part after it ends the run.
    """
    texts: List[str] = []
    for part in content.parts:
        if isinstance(part, TextPart):
            texts.append(part.text.strip())
        elif texts:
            break
    return "\n\n".join(texts)


def get_text_from_contents(contents: Iterable[Content]) -> str:
    for content in contents:
        text = content_to_text(content)
        if text:
            return text
    return ""


def get_text_content_from_contents(contents: Iterable[Content]) -> Optional[Content]:
    for content in contents:
        if content_to_text(content):
            return content
    return None


def get_candidate_contents(candidates: Candidates) -> List[Content]:
    return [candidate.content for candidate in candidates]


def file_to_blob(path: Union[str, Path], mime_type: str = "") -> Optional[Blob]:
    try:
        return Blob.from_file(path, mime_type)
    except DataValidationError as e:
        logger.debug("could not load blob: %s", e)
        return None


def file_to_base64_data_url(path: Union[str, Path], mime_type: str = "") -> str:
    blob = file_to_blob(path, mime_type)
    if blob is None:
        return ""
    return blob_to_base64_data_url(blob)


def blob_to_base64_data_url(blob: Blob) -> str:
    return base64_data_to_base64_data_url(base64.b64encode(blob.data).decode("ascii"), blob.mime_type)


def base64_data_url_to_blob(data_url: str) -> Optional[Blob]:
    match = _DATA_URL_PREFIX.match(data_url)
    if match is None:
        return None
    try:
        data = base64.b64decode(data_url[match.end():], validate=True)
    except binascii.Error:
        return None
    return Blob(data=data, mime_type=match.group(1))


def base64_data_to_base64_data_url(base64_data: str, mime_type: str) -> str:
    if base64_data.startswith("data:"):
        return base64_data
    return f"data:{mime_type};base64,{base64_data}"


def base64_data_url_to_base64_data(data_url: str) -> str:
    match = _DATA_URL_PREFIX.match(data_url)
    if match is None:
        return data_url
    return data_url[match.end():]
