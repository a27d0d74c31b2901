"""Error taxonomy surfaced by the documentation core.

Network failures inside the loader and resource cache never raise; they
collapse to ``None`` and callers report them as "not found". Only the
analyzer boundary produces exceptions, mapped onto the classes below.
"""


class DocIndexError(Exception):
    """Base error carrying an HTTP-equivalent status code."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DocIndexError):
    """The analyzer could not resolve the requested module."""

    status_code = 404


class BadRequestError(DocIndexError):
    """The analyzer rejected the module for a reason other than not-found."""

    status_code = 400


class InternalError(DocIndexError):
    """The analyzer produced something that is not a declaration list."""

    status_code = 500


class AnalyzerError(Exception):
    """Raised by analyzer implementations.

    The message text is significant: "Unable to load specifier" marks a
    module that could not be resolved.
    """
