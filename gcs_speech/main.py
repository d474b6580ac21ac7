"""
Cloud Function entrypoints for the transcription function.

This module exposes two functions:

* ``gcs_event`` – a background function triggered by Cloud Storage events.
  It skips deletions, derives recognition parameters from the object's
  metadata and transcribes the object with Speech-to-Text.
* ``http_trigger`` – an HTTP function you can invoke manually to transcribe
  an object that is already in a bucket.

Environment variables:

* ``LOG_LEVEL`` – Logging level (defaults to ``INFO``).
* ``DEFAULT_LANGUAGE_CODE``, ``DEFAULT_SAMPLE_RATE_HERTZ``,
  ``DEFAULT_ENCODING`` – see :mod:`gcs_speech.params`.

Deployment typically uses the ``gcs_event`` function as the entrypoint.
"""

import json
import logging
import os
import threading
from typing import Any, Dict, Optional

from google.cloud import speech_v1p1beta1 as speech
from google.cloud import storage

from .exceptions import (
    InvalidParameterError,
    MissingFieldError,
    RecognitionJobError,
    RecognitionStartError,
)
from .params import build_uri, derive_params, is_deletion
from .stt_service import Transcriber

logger = logging.getLogger(__name__)
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

DELETE_EVENT_SUFFIX = "object.delete"

_transcriber: Optional[Transcriber] = None
_transcriber_lock = threading.Lock()


def get_transcriber() -> Transcriber:
    """Return the process-wide transcriber, creating its client on first use."""
    global _transcriber
    if _transcriber is None:
        with _transcriber_lock:
            if _transcriber is None:
                _transcriber = Transcriber(speech.SpeechClient())
    return _transcriber


def _is_delete_trigger(context: Any) -> bool:
    event_type = getattr(context, "event_type", None) or ""
    return event_type.endswith(DELETE_EVENT_SUFFIX)


def handle_event(
    event: Dict[str, Any],
    transcriber: Optional[Transcriber] = None,
    context: Any = None,
) -> Optional[str]:
    """Transcribe the object described by a Cloud Storage event.

    Returns:
        The transcript, or ``None`` when the event reports a deleted object.

    Raises:
        MissingFieldError: If ``bucket`` or ``name`` is missing.
        InvalidParameterError: If the object metadata cannot be parsed.
        RecognitionStartError: If the recognition job could not be started.
        RecognitionJobError: If the recognition job failed.
    """
    logger.info(json.dumps({"event": "gcs_trigger", "bucket": event.get("bucket"), "file": event.get("name")}))
    if is_deletion(event) or _is_delete_trigger(context):
        logger.info(json.dumps({"event": "skip_deleted", "file": event.get("name")}))
        return None

    uri = build_uri(event)
    params = derive_params(event)
    logger.info(
        json.dumps(
            {
                "event": "start_transcription",
                "gcs_uri": uri,
                "encoding": params.encoding,
                "language_code": params.language_code,
                "sample_rate_hertz": params.sample_rate_hertz,
            }
        )
    )
    transcript = (transcriber or get_transcriber()).transcribe(uri, params)
    logger.info(json.dumps({"event": "transcription_complete", "gcs_uri": uri, "transcript": transcript}))
    return transcript


def gcs_event(event: Dict[str, Any], context: Any) -> None:
    """Background function triggered by Cloud Storage.

    Errors propagate so that the invocation is reported as failed.
    """
    handle_event(event, context=context)


def _event_from_blob(blob: storage.Blob) -> Dict[str, Any]:
    return {
        "bucket": blob.bucket.name,
        "name": blob.name,
        "contentLanguage": blob.content_language,
        "metadata": blob.metadata or {},
    }


def http_trigger(request):
    """HTTP entrypoint for manual invocation.

    Call it with a JSON body containing ``bucket`` and ``name``.  The
    object's metadata is read from Cloud Storage, so the same parameters
    apply as for a storage-triggered run.
    """
    data = request.get_json(silent=True) or {}
    bucket_name = data.get("bucket")
    name = data.get("name")
    if not bucket_name or not name:
        return "Missing 'bucket' or 'name' in request", 400

    blob = storage.Client().bucket(bucket_name).get_blob(name)
    if blob is None:
        return f"Object not found: gs://{bucket_name}/{name}", 404

    try:
        transcript = handle_event(_event_from_blob(blob))
    except (MissingFieldError, InvalidParameterError) as exc:
        return str(exc), 400
    except (RecognitionStartError, RecognitionJobError) as exc:
        logger.exception("Error in HTTP trigger: %s", exc)
        return f"Error: {exc}", 502
    return transcript, 200
