from __future__ import annotations


class PipelineError(RuntimeError):
    """Base for every failure surfaced to a caller of the fit pipeline."""


class InvalidUrl(PipelineError):
    pass


class FetchError(PipelineError):
    def __init__(self, message: str, *, status: int | None = None, timeout: bool = False) -> None:
        super().__init__(message)
        self.status = status
        self.timeout = timeout


class EmptyContent(PipelineError):
    pass


class CaptureError(PipelineError):
    pass


class RenderError(PipelineError):
    pass


class HostResourceError(PipelineError):
    pass
