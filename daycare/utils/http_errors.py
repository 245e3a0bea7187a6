"""
Translate linking errors into HTTP responses.
"""

from fastapi import HTTPException

from daycare.linking import LinkingError, PartialFailure


def http_error(error: LinkingError) -> HTTPException:
    """Map a LinkingError onto an HTTPException with the same message."""
    if isinstance(error, PartialFailure):
        return HTTPException(
            status_code=error.status_code,
            detail={
                "message": error.message,
                "child_id": error.child_id,
                "failed_writes": error.failed_writes,
            }
        )
    return HTTPException(status_code=error.status_code, detail=error.message)
