"""API router package for endpoint composition."""

from .audit import api_create_audit_router
from .health import api_create_health_router
from .members import api_create_members_router
from .register import api_create_register_router
from .securities import api_create_securities_router
from .transactions import api_create_transactions_router

__all__ = [
	"api_create_audit_router",
	"api_create_health_router",
	"api_create_members_router",
	"api_create_register_router",
	"api_create_securities_router",
	"api_create_transactions_router",
]
