"""Policy persistence package."""

from .router import router, get_policy_service, get_policy_service_instance

__all__ = ["router", "get_policy_service", "get_policy_service_instance"]
