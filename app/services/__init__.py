# Services package
from app.services.auth_service import AccessGate, AuthError, AuthResult
from app.services.data_service import DataService

__all__ = [
    "AccessGate",
    "AuthError",
    "AuthResult",
    "DataService",
]
