import hmac
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from installment_automation.core.database import get_db
from installment_automation.repositories.agency_repository import AgencyRepository


def get_current_agency(
    request: Request,
    db: Session = Depends(get_db),
) -> UUID:
    """Resolve the caller's agency from the ``X-Agency-Id`` header.

    Session issuance happens upstream; the gateway forwards the authenticated
    user's agency in this header.
    """
    agency_header = request.headers.get("X-Agency-Id")
    if not agency_header:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        agency_id = UUID(agency_header)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-Agency-Id header") from None

    if AgencyRepository(db).get_by_id(agency_id) is None:
        raise HTTPException(status_code=403, detail="User not associated with an agency")

    return agency_id


def api_key_matches(provided: str | None, expected: str) -> bool:
    """Constant-time comparison of the job trigger secret.

    An unconfigured secret never matches.
    """
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
