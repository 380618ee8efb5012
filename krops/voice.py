import io
import logging
from typing import Callable, Optional

import speech_recognition as sr

from krops.errors import SpeechUnavailableError, TranscriptionError
from krops.languages import Language

logger = logging.getLogger("krops.voice")

LISTEN_TIMEOUT = 6
PHRASE_TIME_LIMIT = 12


class VoiceTranscriber:
    """Turns one spoken utterance into text for the description field.

    Only final results are delivered, one per call. ``listening`` is true
    while audio is being captured from the microphone.
    """

    def __init__(
        self,
        recognizer=None,
        microphone_factory=sr.Microphone,
        audio_file_factory=sr.AudioFile,
        on_listening: Optional[Callable[[bool], None]] = None,
    ):
        self.recognizer = recognizer or sr.Recognizer()
        self.microphone_factory = microphone_factory
        self.audio_file_factory = audio_file_factory
        self.on_listening = on_listening
        self._listening = False

    @property
    def listening(self) -> bool:
        return self._listening

    def _set_listening(self, value: bool) -> None:
        self._listening = value
        if self.on_listening is not None:
            self.on_listening(value)

    def is_available(self) -> bool:
        try:
            names = self.microphone_factory.list_microphone_names()
        except (AttributeError, OSError):
            # speech_recognition raises AttributeError when PyAudio is missing
            return False
        return bool(names)

    def listen(self, language: Language, sink: Callable[[str], None]) -> Optional[str]:
        if not self.is_available():
            raise SpeechUnavailableError()

        self._set_listening(True)
        try:
            with self.microphone_factory() as source:
                self.recognizer.adjust_for_ambient_noise(source, duration=0.5)
                audio = self.recognizer.listen(source, timeout=LISTEN_TIMEOUT, phrase_time_limit=PHRASE_TIME_LIMIT)
        except sr.WaitTimeoutError:
            logger.info("[Voice] No speech heard")
            return None
        finally:
            self._set_listening(False)

        return self._deliver(audio, language, sink)

    def transcribe_clip(self, wav_bytes: bytes, language: Language, sink: Callable[[str], None]) -> Optional[str]:
        """Same contract as ``listen`` for a clip already recorded by the browser."""
        with self.audio_file_factory(io.BytesIO(wav_bytes)) as source:
            audio = self.recognizer.record(source)
        return self._deliver(audio, language, sink)

    def _deliver(self, audio, language: Language, sink: Callable[[str], None]) -> Optional[str]:
        try:
            transcript = self.recognizer.recognize_google(audio, language=language.speech_code)
        except sr.UnknownValueError:
            logger.info("[Voice] Could not understand audio")
            return None
        except sr.RequestError as e:
            raise TranscriptionError(f"Speech API error: {e}") from e

        transcript = transcript.strip()
        if not transcript:
            return None
        logger.info("[Voice] Heard %d characters (%s)", len(transcript), language.speech_code)
        sink(transcript)
        return transcript
