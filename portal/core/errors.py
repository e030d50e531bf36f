"""
Domain errors.

Every precondition failure in the services is raised as a PortalError
subclass carrying an ErrorKind. The API layer turns them into HTTP
responses (see portal.main). Only StorageUnavailable is retryable.
"""

from enum import Enum


class ErrorKind(str, Enum):
    insufficient_reviewers = "InsufficientReviewers"
    workload_exceeded = "WorkloadExceeded"
    already_reviewed = "AlreadyReviewed"
    review_closed = "ReviewClosed"
    application_limit_exceeded = "ApplicationLimitExceeded"
    duplicate_application = "DuplicateApplication"
    not_applicable = "NotApplicable"
    already_selected_elsewhere = "AlreadySelectedElsewhere"
    not_authorized = "NotAuthorized"
    not_found = "NotFound"
    invalid_input = "InvalidInput"
    invalid_credentials = "InvalidCredentials"
    storage_unavailable = "StorageUnavailable"


class PortalError(Exception):
    """Base class for classified service failures."""

    kind: ErrorKind = ErrorKind.invalid_input
    status_code: int = 400
    retryable: bool = False
    default_message = "Request could not be processed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InsufficientReviewers(PortalError):
    kind = ErrorKind.insufficient_reviewers
    status_code = 409
    default_message = "Not enough faculty in this area of research for proper review"


class WorkloadExceeded(PortalError):
    kind = ErrorKind.workload_exceeded
    status_code = 409
    default_message = (
        "Project submission temporarily unavailable. "
        "High volume of projects currently under review."
    )


class AlreadyReviewed(PortalError):
    kind = ErrorKind.already_reviewed
    status_code = 409
    default_message = "You have already reviewed this project"


class ReviewClosed(PortalError):
    kind = ErrorKind.review_closed
    status_code = 409
    default_message = "This project is no longer under review"


class ApplicationLimitExceeded(PortalError):
    kind = ErrorKind.application_limit_exceeded
    status_code = 409
    default_message = "Cannot apply to more than 3 projects"


class DuplicateApplication(PortalError):
    kind = ErrorKind.duplicate_application
    status_code = 409
    default_message = "Already applied to this project"


class NotApplicable(PortalError):
    kind = ErrorKind.not_applicable
    status_code = 409
    default_message = "Cannot apply to this project at this time"


class AlreadySelectedElsewhere(PortalError):
    kind = ErrorKind.already_selected_elsewhere
    status_code = 409
    default_message = "Student already selected for another project"


class NotAuthorized(PortalError):
    kind = ErrorKind.not_authorized
    status_code = 403
    default_message = "Not authorized for this action"


class NotFound(PortalError):
    kind = ErrorKind.not_found
    status_code = 404
    default_message = "Not found"


class InvalidInput(PortalError):
    kind = ErrorKind.invalid_input
    status_code = 400


class InvalidCredentials(PortalError):
    kind = ErrorKind.invalid_credentials
    status_code = 401
    default_message = "Invalid credentials"


class StorageUnavailable(PortalError):
    kind = ErrorKind.storage_unavailable
    status_code = 503
    retryable = True
    default_message = "Storage temporarily unavailable, please retry"
