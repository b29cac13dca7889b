from typing import Literal, Optional

DEFAULT_ERROR_STATUS = 500
DEFAULT_ERROR_MESSAGE = "Internal Server Error"


class PipelineError(Exception):
    """Base for failures that end a flow. Carries the most specific status known."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UpstreamFetchError(PipelineError):
    """The source document could not be retrieved."""

    def __init__(self, message: str, reason: Literal["http-status", "network"], status: Optional[int] = None):
        # remote status describes the document host, not this service
        super().__init__(message)
        self.reason = reason
        self.status = status


class UpstreamEngineError(PipelineError):
    """An extraction or vision engine call failed."""


class ExtractionError(UpstreamEngineError):
    pass


class VisionError(UpstreamEngineError):
    pass
