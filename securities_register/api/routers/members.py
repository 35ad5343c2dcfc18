"""Member API router composition for guarded member deletion."""

from __future__ import annotations

from fastapi import APIRouter, Header, status
from fastapi.responses import JSONResponse

from securities_register.domain import LedgerError
from securities_register.ledger import RegistryService

from ..errors import api_error_response


def api_create_members_router(registry_service: RegistryService) -> APIRouter:
    """Create members router exposing guarded deletion.

    Args:
        registry_service: Registry service enforcing the in-use check.

    Returns:
        APIRouter: Router exposing `/members` APIs.

    Raises:
        ValueError: Raised when registry_service is None.
    """

    if registry_service is None:
        raise ValueError("registry_service must not be None")

    router = APIRouter(prefix="/members", tags=["members"])

    @router.delete("/{member_id}")
    def api_member_delete(
        member_id: str,
        actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
    ) -> JSONResponse:
        """Delete a member unless any transaction references it.

        Returns:
            JSONResponse: Deleted member payload, or 409 while the member is referenced.
        """

        try:
            member = registry_service.registry_member_delete(member_id=member_id, actor_id=actor_id or "")
        except LedgerError as error:
            return api_error_response(error)
        payload = {
            "status": "deleted",
            "member_id": member.member_id,
            "entity_id": member.entity_id,
            "display_name": member.display_name,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
