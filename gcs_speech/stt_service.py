"""
Google Speech-to-Text service wrapper.

This module encapsulates interaction with the Google Cloud Speech API.  A
:class:`Transcriber` wraps a ``SpeechClient`` and runs a two-step
long-running recognition for a Cloud Storage URI: the job is started, then
awaited, and the transcripts of the returned results are concatenated in
order.

Usage::

    from google.cloud import speech_v1p1beta1 as speech
    from gcs_speech.params import TranscriptionParams
    from gcs_speech.stt_service import Transcriber

    transcriber = Transcriber(speech.SpeechClient())
    params = TranscriptionParams("LINEAR16", "en-US", 16000)
    print(transcriber.transcribe("gs://my-bucket/example.wav", params))
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from google.cloud import speech_v1p1beta1 as speech
from google.protobuf.json_format import MessageToDict

from .exceptions import RecognitionJobError, RecognitionStartError
from .params import TranscriptionParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecognitionRequest:
    """Outbound recognition request: the audio parameters plus fixed flags."""

    uri: str
    encoding: str
    language_code: str
    sample_rate_hertz: int
    verbose: bool = True
    max_alternatives: int = 1

    @classmethod
    def from_params(cls, uri: str, params: TranscriptionParams) -> "RecognitionRequest":
        return cls(
            uri=uri,
            encoding=params.encoding,
            language_code=params.language_code,
            sample_rate_hertz=params.sample_rate_hertz,
        )

    def to_config(self) -> speech.RecognitionConfig:
        """Build the API config.  Unknown encoding names raise ``KeyError``."""
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding[self.encoding],
            sample_rate_hertz=self.sample_rate_hertz,
            language_code=self.language_code,
            max_alternatives=self.max_alternatives,
        )


def join_transcripts(results: Iterable[Any]) -> str:
    """Concatenate the top-alternative transcript of each result, in order."""
    return "".join(
        result.alternatives[0].transcript if result.alternatives else ""
        for result in results
    )


class Transcriber:
    """Runs long-running recognition jobs through an injected speech client."""

    def __init__(self, client: speech.SpeechClient):
        self._client = client

    def start(self, request: RecognitionRequest):
        """Start a recognition job and return its operation handle.

        Raises:
            RecognitionStartError: If the job could not be started.
        """
        logger.info("Starting STT job for %s", request.uri)
        try:
            return self._client.long_running_recognize(
                config=request.to_config(),
                audio=speech.RecognitionAudio(uri=request.uri),
            )
        except Exception as exc:
            raise RecognitionStartError(request.uri, exc) from exc

    def wait(self, request: RecognitionRequest, operation) -> speech.LongRunningRecognizeResponse:
        """Block until ``operation`` completes and return its response.

        Raises:
            RecognitionJobError: If the job failed or the wait failed.
        """
        try:
            response = operation.result()
        except Exception as exc:
            raise RecognitionJobError(request.uri, exc) from exc
        logger.info("STT job complete for %s", request.uri)
        if request.verbose:
            logger.info("STT response for %s: %s", request.uri, MessageToDict(response._pb))
        return response

    def transcribe(self, uri: str, params: TranscriptionParams) -> str:
        """Transcribe the audio object at ``uri``.

        Args:
            uri: A ``gs://`` URI pointing to the audio object.
            params: Audio parameters for the object.  Left untouched; the
                fixed request flags go on a separate :class:`RecognitionRequest`.

        Returns:
            The transcripts of all results concatenated in the order the API
            returned them, without separators.
        """
        logger.info("Handling storage object %s with params %s", uri, params)
        request = RecognitionRequest.from_params(uri, params)
        operation = self.start(request)
        response = self.wait(request, operation)
        return join_transcripts(response.results)
