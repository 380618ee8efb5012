import io
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from gtts import gTTS
from gtts.tts import gTTSError

from krops.agent.core import DiagnosisResult
from krops.errors import AnnouncementError
from krops.languages import Language

logger = logging.getLogger("krops.audio")

CUE_VOLUME = 0.15
SPEECH_RATE = 0.92
SPEAKING_TIMEOUT = 12.0


class FeedbackCue(str, Enum):
    ANALYZE = "analyze"
    SUCCESS = "success"
    CLICK = "click"
    FOCUS = "focus"
    RUSTLE = "rustle"


CUE_ASSETS = {
    FeedbackCue.ANALYZE: "https://assets.mixkit.co/active_storage/sfx/2568/2568-preview.mp3",
    FeedbackCue.SUCCESS: "https://assets.mixkit.co/active_storage/sfx/1435/1435-preview.mp3",
    FeedbackCue.CLICK: "https://assets.mixkit.co/active_storage/sfx/2567/2567-preview.mp3",
    FeedbackCue.FOCUS: "https://assets.mixkit.co/active_storage/sfx/2571/2571-preview.mp3",
    FeedbackCue.RUSTLE: "https://assets.mixkit.co/active_storage/sfx/2436/2436-preview.mp3",
}

# (url, volume) of the looping nature ambience: forest birds and soft wind.
AMBIENT_TRACKS = (
    ("https://assets.mixkit.co/active_storage/sfx/2437/2437-preview.mp3", 0.08),
    ("https://assets.mixkit.co/active_storage/sfx/2493/2493-preview.mp3", 0.04),
)

# player(url, volume, loop)
Player = Callable[[str, float, bool], None]


class AudioFeedback:
    """UI sound effects and ambience. One instance lives for the whole process."""

    def __init__(self, player: Player):
        self.player = player
        self.ambient_enabled = False

    def play(self, cue: FeedbackCue) -> None:
        self.player(CUE_ASSETS[cue], CUE_VOLUME, False)

    def set_ambient(self, enabled: bool) -> None:
        self.ambient_enabled = enabled

    def render_ambient(self) -> None:
        # The player is stateless, so ambience is re-emitted on every page render.
        if not self.ambient_enabled:
            return
        for url, volume in AMBIENT_TRACKS:
            self.player(url, volume, True)


def synthesize_speech(text: str, tts_code: str) -> bytes:
    buf = io.BytesIO()
    gTTS(text=text, lang=tts_code).write_to_fp(buf)
    return buf.getvalue()


@dataclass
class Utterance:
    text: str
    language: Language
    audio: bytes
    rate: float = SPEECH_RATE
    started_at: float = field(default_factory=time.monotonic)
    cancelled: bool = False


def announcement_text(result: DiagnosisResult) -> str:
    return (
        f"{result.crop}. {result.disease}. "
        f"Medicine: {result.medicine_name}. Instructions: {result.prescription}."
    )


class Announcer:
    """Reads a finished report aloud. At most one utterance is ever current."""

    def __init__(self, synthesizer: Callable[[str, str], bytes] = synthesize_speech):
        self.synthesizer = synthesizer
        self.current: Optional[Utterance] = None

    def cancel(self) -> None:
        if self.current is not None:
            self.current.cancelled = True
            self.current = None

    def announce(self, result: DiagnosisResult, language: Language) -> Utterance:
        self.cancel()
        text = announcement_text(result)
        try:
            audio = self.synthesizer(text, language.tts_code)
        except gTTSError as e:
            logger.error("[Announcer] Speech synthesis failed: %s", e)
            raise AnnouncementError(str(e)) from e

        self.current = Utterance(text=text, language=language, audio=audio)
        return self.current

    def is_speaking(self, now: Optional[float] = None) -> bool:
        if self.current is None:
            return False
        now = time.monotonic() if now is None else now
        return now - self.current.started_at < SPEAKING_TIMEOUT
