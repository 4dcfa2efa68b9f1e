# inventory_admin/services/auth_service.py
from typing import Optional, Dict, Any

from inventory_admin.core.security import AuthNotConfiguredError, verify_password, create_access_token
from inventory_admin.services.admin_repository import AdminRepository


class AuthService:
    def __init__(self, repository: AdminRepository, jwt_secret: Optional[str]):
        self.repository = repository
        self.jwt_secret = jwt_secret

    async def authenticate_admin(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Verify credentials. Returns the admin document on success, None otherwise;
        callers must not tell an unknown email apart from a wrong password.
        """
        admin = await self.repository.find_by_email(email)
        if not admin:
            return None

        hashed = admin.get("password_hash")
        if not hashed:
            return None

        if not verify_password(password, hashed):
            return None

        return admin

    def create_token_for_admin(self, admin_doc: Dict[str, Any]) -> str:
        """
        Given a verified admin_doc, create a JWT token containing the admin id and email.
        No session is stored server side; the token is valid until it expires.
        """
        if not self.jwt_secret:
            raise AuthNotConfiguredError("JWT_SECRET not configured")
        return create_access_token(
            admin_id=str(admin_doc["_id"]),
            email=admin_doc["email"],
            secret=self.jwt_secret,
        )
