from contextlib import contextmanager
from enum import Enum

from fastapi import HTTPException, status
from pydantic import BaseModel

from contafricax.services.errors import NotFoundError


@contextmanager
def service_errors():
    """Translate service-layer exceptions into HTTP errors."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


def payload(body: BaseModel, *, exclude_unset: bool = False) -> dict:
    """model_dump with enum members replaced by their values, ready for ORM columns."""
    data = body.model_dump(exclude_unset=exclude_unset)
    return {k: v.value if isinstance(v, Enum) else v for k, v in data.items()}
