from enum import Enum


class Language(str, Enum):
    """Supported report languages.

    The value is the English name used in prompts. ``display`` is the label
    shown in the language picker and ``speech_code`` the locale handed to
    speech recognition and synthesis.
    """

    ENGLISH = "English"
    HINDI = "Hindi"
    TELUGU = "Telugu"
    TAMIL = "Tamil"
    MARATHI = "Marathi"
    KANNADA = "Kannada"
    MALAYALAM = "Malayalam"

    @property
    def display(self) -> str:
        return LANGUAGE_DISPLAY[self]

    @property
    def speech_code(self) -> str:
        return SPEECH_CODES[self]

    @property
    def tts_code(self) -> str:
        return self.speech_code.split("-")[0]

    @classmethod
    def parse(cls, text: str) -> "Language":
        wanted = text.strip().lower()
        for lang in cls:
            if wanted in (lang.value.lower(), lang.name.lower(), lang.display.lower()):
                return lang
        raise ValueError(f"Unsupported language: {text!r}")


DEFAULT_LANGUAGE = Language.ENGLISH

LANGUAGE_DISPLAY = {
    Language.ENGLISH: "English",
    Language.HINDI: "हिन्दी (Hindi)",
    Language.TELUGU: "తెలుగు (Telugu)",
    Language.TAMIL: "தமிழ் (Tamil)",
    Language.MARATHI: "मराठी (Marathi)",
    Language.KANNADA: "ಕನ್ನಡ (Kannada)",
    Language.MALAYALAM: "മലയാളം (Malayalam)",
}

SPEECH_CODES = {
    Language.ENGLISH: "en-US",
    Language.HINDI: "hi-IN",
    Language.TELUGU: "te-IN",
    Language.TAMIL: "ta-IN",
    Language.MARATHI: "mr-IN",
    Language.KANNADA: "kn-IN",
    Language.MALAYALAM: "ml-IN",
}
