import sys
import traceback
from typing import Optional

# Substrings that mark an error as a reachability problem rather than a logic bug
TRANSIENT_INDICATORS = (
    "network",
    "timeout",
    "timed out",
    "connection",
    "unavailable",
    "unreachable",
    "reach ",
    "temporarily",
    "503",
)


class DocumentPortalException(Exception):
    """
    Base exception of the project.

    Accepts the failing exception (or the ``sys`` module, to use the exception
    currently being handled) and records where it was raised so the log line
    points at the real culprit instead of the re-raise site.
    """

    def __init__(self, error_message, error_details: Optional[object] = None):
        norm_msg = str(error_message)

        exc_type = exc_value = exc_tb = None
        if error_details is None or error_details is sys:
            exc_type, exc_value, exc_tb = sys.exc_info()
        elif isinstance(error_details, BaseException):
            exc_type = type(error_details)
            exc_value = error_details
            exc_tb = error_details.__traceback__

        # walk to the innermost frame
        last_tb = exc_tb
        while last_tb and last_tb.tb_next:
            last_tb = last_tb.tb_next

        self.file_name = last_tb.tb_frame.f_code.co_filename if last_tb else "<unknown>"
        self.lineno = last_tb.tb_lineno if last_tb else -1
        self.error_message = norm_msg
        self.cause = exc_value

        if exc_type and exc_tb:
            self.traceback_str = "".join(
                traceback.format_exception(exc_type, exc_value, exc_tb)
            )
        else:
            self.traceback_str = ""

        super().__init__(self.__str__())

    def __str__(self):
        if self.cause is not None and str(self.cause) and str(self.cause) not in self.error_message:
            return f"{self.error_message}: {self.cause}"
        return self.error_message

    def __repr__(self):
        return (
            f"{type(self).__name__}(file={self.file_name!r}, "
            f"line={self.lineno}, message={self.error_message!r})"
        )


class PreconditionError(DocumentPortalException):
    """Operator or caller precondition not met. Never retried automatically."""

    retriable = False


class IndexNotFoundError(PreconditionError):
    pass


class VectorStoreUnavailableError(DocumentPortalException):
    """The vector index (or a service behind it) could not be reached."""

    retriable = True


class EmbeddingGenerationError(DocumentPortalException):
    """Embedding generation failed for a reason retrying will not fix."""

    retriable = False


def is_transient_error(exc: BaseException) -> bool:
    if isinstance(exc, VectorStoreUnavailableError):
        return True
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True
    message = str(exc).lower()
    return any(indicator in message for indicator in TRANSIENT_INDICATORS)
