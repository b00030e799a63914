from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from bookstore_recs.domain import CustomerId

customer_id_header = APIKeyHeader(name="X-Customer-Id", auto_error=False)


def get_customer_id(
    api_key: Annotated[str | None, Depends(customer_id_header)] = None,
) -> CustomerId:
    if not api_key or not api_key.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or empty X-Customer-Id header",
        )
    return CustomerId(api_key.strip())
