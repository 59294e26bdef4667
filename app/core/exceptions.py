class CRMInsightsError(Exception):
    """Base class for all CRM insights domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except CRMInsightsError`` clause can catch any domain
    error.
    """

    error_type = "crm_insights_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class NotFoundError(CRMInsightsError):
    """Raised when a referenced entity is absent from the record store."""

    error_type = "not_found"

    def __init__(self, detail: str = "Record not found"):
        super().__init__(detail)


class LeadNotFoundError(NotFoundError):
    """Raised when a requested lead does not exist."""

    error_type = "lead_not_found"

    def __init__(self, detail: str = "Lead not found"):
        super().__init__(detail)


class ProjectNotFoundError(NotFoundError):
    """Raised when a requested project does not exist."""

    error_type = "project_not_found"

    def __init__(self, detail: str = "Project not found"):
        super().__init__(detail)


class ClientNotFoundError(NotFoundError):
    """Raised when a requested client does not exist."""

    error_type = "client_not_found"

    def __init__(self, detail: str = "Client not found"):
        super().__init__(detail)


class InvalidLeadDataError(CRMInsightsError):
    """Raised when a lead lacks the fields needed for scoring."""

    error_type = "invalid_lead_data"

    def __init__(self, detail: str = "Invalid lead data"):
        super().__init__(detail)


class DegradedInputError(CRMInsightsError):
    """Raised when optional history (cohort, payment history) is unavailable.

    Never reaches the caller: services catch it, log a warning and fall
    back to documented defaults.
    """

    def __init__(self, detail: str = "Optional input data unavailable"):
        super().__init__(detail)


class TrackingFailureError(CRMInsightsError):
    """Raised when an analytics event could not be stored.

    ``EventTracker`` logs and swallows it so the primary computation is
    never aborted.
    """

    def __init__(self, detail: str = "Analytics event could not be recorded"):
        super().__init__(detail)
