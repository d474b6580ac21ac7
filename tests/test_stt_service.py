import logging
from unittest.mock import Mock

import pytest
from google.api_core import exceptions as api_exceptions
from google.cloud import speech_v1p1beta1 as speech

from gcs_speech.exceptions import RecognitionJobError, RecognitionStartError
from gcs_speech.params import TranscriptionParams
from gcs_speech.stt_service import RecognitionRequest, Transcriber, join_transcripts

URI = 'gs://b/n'


def make_response(*transcripts):
    return speech.LongRunningRecognizeResponse(
        results=[
            speech.SpeechRecognitionResult(
                alternatives=[speech.SpeechRecognitionAlternative(transcript=t)]
            )
            for t in transcripts
        ]
    )


class FakeSpeechClient:
    def __init__(self, response=None, start_error=None, job_error=None):
        self.calls = []
        self.operation = Mock()
        if job_error is not None:
            self.operation.result.side_effect = job_error
        else:
            self.operation.result.return_value = response
        self.start_error = start_error

    def long_running_recognize(self, config=None, audio=None):
        self.calls.append((config, audio))
        if self.start_error is not None:
            raise self.start_error
        return self.operation


@pytest.fixture
def params():
    return TranscriptionParams('LINEAR16', 'en-US', 16000)


def test_transcribe_concatenates_in_order(params):
    client = FakeSpeechClient(make_response('Hello ', 'world'))
    assert Transcriber(client).transcribe(URI, params) == 'Hello world'
    client.operation.result.assert_called_once_with()


def test_transcribe_sends_config(params):
    client = FakeSpeechClient(make_response('hi'))
    Transcriber(client).transcribe(URI, params)
    config, audio = client.calls[0]
    assert audio.uri == URI
    assert config.encoding == speech.RecognitionConfig.AudioEncoding.LINEAR16
    assert config.language_code == 'en-US'
    assert config.sample_rate_hertz == 16000
    assert config.max_alternatives == 1


def test_transcribe_logs_full_response(params, caplog):
    caplog.set_level(logging.INFO, logger='gcs_speech.stt_service')
    Transcriber(FakeSpeechClient(make_response('Hello ', 'world'))).transcribe(URI, params)
    lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith('STT response for gs://b/n')]
    assert len(lines) == 1
    assert "'transcript': 'Hello '" in lines[0]
    assert "'transcript': 'world'" in lines[0]


def test_transcribe_empty_results(params):
    client = FakeSpeechClient(make_response())
    assert Transcriber(client).transcribe(URI, params) == ''


def test_params_not_mutated(params):
    before = (params.encoding, params.language_code, params.sample_rate_hertz)
    Transcriber(FakeSpeechClient(make_response('x'))).transcribe(URI, params)
    assert (params.encoding, params.language_code, params.sample_rate_hertz) == before
    assert not hasattr(params, 'verbose')
    assert not hasattr(params, 'max_alternatives')


def test_request_carries_flags(params):
    request = RecognitionRequest.from_params(URI, params)
    assert request.verbose is True
    assert request.max_alternatives == 1
    assert request.uri == URI
    assert request.sample_rate_hertz == params.sample_rate_hertz


def test_start_failure(params):
    client = FakeSpeechClient(start_error=api_exceptions.InvalidArgument('bad uri'))
    with pytest.raises(RecognitionStartError) as exc_info:
        Transcriber(client).transcribe(URI, params)
    assert isinstance(exc_info.value.cause, api_exceptions.InvalidArgument)
    assert exc_info.value.uri == URI
    client.operation.result.assert_not_called()


def test_unknown_encoding_is_start_failure():
    client = FakeSpeechClient(make_response('x'))
    with pytest.raises(RecognitionStartError):
        Transcriber(client).transcribe(URI, TranscriptionParams('WAVPACK', 'en-US', 16000))
    assert client.calls == []


def test_job_failure(params):
    client = FakeSpeechClient(job_error=api_exceptions.DeadlineExceeded('timed out'))
    with pytest.raises(RecognitionJobError) as exc_info:
        Transcriber(client).transcribe(URI, params)
    assert isinstance(exc_info.value.__cause__, api_exceptions.DeadlineExceeded)


def test_join_transcripts_skips_empty_alternatives():
    results = [
        speech.SpeechRecognitionResult(alternatives=[speech.SpeechRecognitionAlternative(transcript='a')]),
        speech.SpeechRecognitionResult(),
        speech.SpeechRecognitionResult(alternatives=[speech.SpeechRecognitionAlternative(transcript='b')]),
    ]
    assert join_transcripts(results) == 'ab'
