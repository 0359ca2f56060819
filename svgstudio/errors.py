"""Error taxonomy shared by the pipeline, the REST routes and the WebSocket."""


class SvgStudioError(Exception):
    """Base error carrying the HTTP status it should surface as."""

    status_code: int = 500

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail)


class ConfigurationError(SvgStudioError):
    """A required credential or setting is missing."""

    status_code = 500


class UpstreamError(SvgStudioError):
    """A third-party API answered with a non-success response."""

    status_code = 502


class ValidationError(SvgStudioError):
    """Markup still fails the structure checks after one sanitize pass."""

    status_code = 422


class ResourceError(SvgStudioError):
    """The headless browser could not be launched, navigated or captured."""

    status_code = 500


class NotFoundError(SvgStudioError):
    status_code = 404


class OAuthStateError(SvgStudioError):
    status_code = 400


class UnsupportedModelError(SvgStudioError, ValueError):
    status_code = 400


class ConflictError(SvgStudioError):
    """The resource is already bound to someone else."""

    status_code = 409
