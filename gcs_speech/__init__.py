"""
Cloud Storage to Speech-to-Text transcription function.

An object landing in a bucket is turned into a long-running recognition job
on Google Cloud Speech-to-Text.  Recognition parameters come from the
object's metadata, and the transcript is returned by
:func:`gcs_speech.main.handle_event`.
"""
