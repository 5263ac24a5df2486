"""Custom Exceptions for the VidScribe application."""

from typing import Optional


class VidScribeError(Exception):
    """Base class for exceptions in this module."""
    pass

class InputError(VidScribeError):
    """Exception raised for invalid user input (missing or unreadable video)."""
    pass

class ConfigurationError(VidScribeError):
    """Exception raised for errors in configuration loading."""
    pass

class FileSystemError(VidScribeError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass

class MediaToolError(VidScribeError):
    """Exception raised when an ffmpeg/ffprobe invocation fails."""

    def __init__(self, message: str, stderr: Optional[str] = None):
        super().__init__(message)
        self.stderr = stderr

class AudioExtractionError(MediaToolError):
    """Exception raised for errors during audio extraction."""
    pass

class ChunkingFailed(MediaToolError):
    """Exception raised when the audio could not be split into any chunks."""
    pass

class MuxingError(MediaToolError):
    """Exception raised when subtitles could not be muxed into the video."""
    pass

class TranscriptionError(VidScribeError):
    """Exception raised for errors during transcription.

    ``chunk_index`` is filled in by the assembler once the failing chunk is known.
    """

    def __init__(self, message: str, chunk_index: Optional[int] = None):
        super().__init__(message)
        self.chunk_index = chunk_index

    def __str__(self) -> str:
        message = super().__str__()
        if self.chunk_index is None:
            return message
        return f"chunk {self.chunk_index}: {message}"

class TranscriptionServiceError(TranscriptionError):
    """The speech-to-text service answered with an error or an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 body: Optional[str] = None, chunk_index: Optional[int] = None):
        super().__init__(message, chunk_index=chunk_index)
        self.status_code = status_code
        self.body = body

class EmptyTranscript(TranscriptionError):
    """The speech-to-text service recognised no words in a chunk."""
    pass

class TranslationError(VidScribeError):
    """Exception raised for errors during translation."""
    pass

class TranslationServiceError(TranslationError):
    """The translation service answered with an error or an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

class FormattingError(VidScribeError):
    """Exception raised for errors during subtitle formatting."""
    pass
