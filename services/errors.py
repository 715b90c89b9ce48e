class StudyAssistantError(Exception):
    """Base class for errors raised by the study services."""


class ConfigurationError(StudyAssistantError):
    """Missing or invalid credential. Never retried."""


class RemoteCallError(StudyAssistantError):
    """A single model call failed (network, quota, model-side)."""


class MalformedResponseError(StudyAssistantError):
    """Model output could not be parsed. Always converted to a default."""


class TerminalExtractionFailure(StudyAssistantError):
    """Every chunk of an extraction failed at the call level."""

    def __init__(self, task: str, chunk_count: int):
        super().__init__(f"{task}: all {chunk_count} chunk(s) failed")
        self.task = task
        self.chunk_count = chunk_count
