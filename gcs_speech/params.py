"""
Recognition parameters derived from Cloud Storage object metadata.

Uploaders set ``languageCode``, ``sampleRateHertz`` and ``encoding`` as
custom metadata on the audio object.  ``gsutil`` tends to lower-case
metadata keys on upload, so every parameter is looked up through an ordered
list of candidate keys and the first non-empty value wins.

Defaults can be overridden through environment variables:

* ``DEFAULT_LANGUAGE_CODE`` – defaults to ``en-US``.
* ``DEFAULT_SAMPLE_RATE_HERTZ`` – defaults to ``16000``.
* ``DEFAULT_ENCODING`` – defaults to ``LINEAR16``.
"""

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from .exceptions import InvalidParameterError, MissingFieldError

DEFAULT_LANGUAGE_CODE = os.environ.get("DEFAULT_LANGUAGE_CODE", "en-US")
DEFAULT_SAMPLE_RATE_HERTZ = int(os.environ.get("DEFAULT_SAMPLE_RATE_HERTZ", "16000"))
DEFAULT_ENCODING = os.environ.get("DEFAULT_ENCODING", "LINEAR16")

# Candidate metadata keys, in lookup order
LANGUAGE_CODE_KEYS = ("languageCode", "languagecode")
SAMPLE_RATE_HERTZ_KEYS = ("sampleRateHertz", "sampleratehertz")
ENCODING_KEYS = ("encoding",)

_DIGITS = re.compile(r"[0-9]+")

DELETED_STATE = "not_exists"


@dataclass(frozen=True)
class TranscriptionParams:
    """Audio parameters for a single recognition request."""

    encoding: str
    language_code: str
    sample_rate_hertz: int


def is_deletion(event: Mapping[str, Any]) -> bool:
    """Return ``True`` if the event describes a deleted object."""
    return event.get("resourceState") == DELETED_STATE


def build_uri(event: Mapping[str, Any]) -> str:
    """Build the ``gs://bucket/name`` URI for the object in ``event``.

    Raises:
        MissingFieldError: If ``bucket`` or ``name`` is absent or empty.
    """
    bucket = event.get("bucket")
    if not bucket:
        raise MissingFieldError("bucket")
    name = event.get("name")
    if not name:
        raise MissingFieldError("name", "object name")
    return "gs://" + bucket + "/" + name


def _first_value(metadata: Mapping[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = metadata.get(key)
        if value:
            return value
    return None


def _parse_sample_rate(value: str) -> int:
    text = value.strip() if isinstance(value, str) else ""
    if not _DIGITS.fullmatch(text) or int(text) == 0:
        raise InvalidParameterError("sampleRateHertz", value)
    return int(text)


def derive_params(event: Mapping[str, Any]) -> TranscriptionParams:
    """Derive :class:`TranscriptionParams` from a storage event.

    Args:
        event: The Cloud Storage event payload.  ``metadata`` and
            ``contentLanguage`` are optional.

    Returns:
        The parameters to use for recognition.

    Raises:
        InvalidParameterError: If the sample rate metadata is not a positive
            integer.
    """
    metadata: Dict[str, str] = event.get("metadata") or {}
    language_code = (
        _first_value(metadata, LANGUAGE_CODE_KEYS)
        or event.get("contentLanguage")
        or DEFAULT_LANGUAGE_CODE
    )
    sample_rate = _first_value(metadata, SAMPLE_RATE_HERTZ_KEYS)
    encoding = _first_value(metadata, ENCODING_KEYS) or DEFAULT_ENCODING
    return TranscriptionParams(
        encoding=encoding,
        language_code=language_code,
        sample_rate_hertz=_parse_sample_rate(sample_rate) if sample_rate else DEFAULT_SAMPLE_RATE_HERTZ,
    )
