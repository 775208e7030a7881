"""
Translation of domain errors into HTTP responses
"""

from fastapi import HTTPException, status

from kitchen_os.core.exceptions import (
    KitchenError, NotFoundError, InvalidTransitionError, ValidationError, HandoverError,
)


def http_error(error: KitchenError) -> HTTPException:
    """HTTP response for a domain error raised by a service"""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, (InvalidTransitionError, HandoverError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))
