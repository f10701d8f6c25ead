"""Domain exceptions and their HTTP mapping.

Service-layer code raises these instead of HTTPException so the same rules can
be exercised without a request. The handler registered in ``app.main`` turns
them into ``{"detail": ..., "code": ...}`` responses with the message
unchanged, which is what the console shows to the user.
"""
import logging
from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GovernanceError(Exception):
    """Base class for errors raised by the governance and admin services."""
    status_code = 400
    code = "governance_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationFailed(GovernanceError):
    status_code = 400
    code = "validation_failed"


class EntityNotFound(GovernanceError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id=None):
        message = f"{entity} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class GovernanceViolation(GovernanceError):
    """A lifecycle precondition was not met."""
    status_code = 409
    code = "governance_violation"


class CannotDelete(GovernanceError):
    status_code = 409
    code = "cannot_delete"


class MissingKRILink(GovernanceError):
    status_code = 409
    code = "missing_kri_link"


class ChainDataUnavailable(GovernanceError):
    """The chain validator could not read the data it needs.

    Distinct from an invalid chain: callers must not treat this as "no gaps".
    """
    status_code = 503
    code = "chain_data_unavailable"


async def governance_exception_handler(request: Request, exc: GovernanceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(GovernanceError, governance_exception_handler)
