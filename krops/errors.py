class KropsError(Exception):
    """Base class for every error raised by the krops package."""


class ConfigurationError(KropsError):
    pass


class InvalidImageError(KropsError):
    pass


# Raised before any network activity; pipeline state is left untouched.
class PreconditionError(KropsError):
    pass


class OfflineError(PreconditionError):
    def __init__(self, message: str = "Field Scan requires AI connectivity."):
        super().__init__(message)


class MissingImageError(PreconditionError):
    def __init__(self, message: str = "Capture a crop photo before starting a scan."):
        super().__init__(message)


class PipelineBusyError(PreconditionError):
    def __init__(self, message: str = "A diagnosis is already in progress."):
        super().__init__(message)


class DiagnosisFailedError(KropsError):
    """Hard failure: the analysis call failed or returned an unusable report."""

    def __init__(self, message: str = "Autonomous Diagnostic Failure."):
        super().__init__(message)


class DiagnosisCancelledError(KropsError):
    pass


class SpeechUnavailableError(KropsError):
    def __init__(self, message: str = "Speech recognition is not supported in this environment."):
        super().__init__(message)


class TranscriptionError(KropsError):
    pass


class AnnouncementError(KropsError):
    pass
