from typing import Optional

from fastapi import Depends, Header, Request
from pymongo.database import Database

import permissions
from auth import AuthContext, TokenIssuer, verify_authorization
from database import get_mongo_db
from models.user import UserStore
from schemas import UserRole


# --- DÉPENDANCES FASTAPI ---

def get_user_store(db: Database = Depends(get_mongo_db)) -> UserStore:
    return UserStore(db)


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    store: UserStore = Depends(get_user_store),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthContext:
    """Vérifie le token Bearer et retourne l'identité de l'utilisateur actif."""
    return verify_authorization(authorization, store, issuer)


def require_roles(*roles: UserRole):
    """Fabrique une dépendance qui restreint une route à certains rôles."""

    def checker(current: AuthContext = Depends(get_current_user)) -> AuthContext:
        permissions.require_role(current.identity, *roles)
        return current

    return checker


get_current_admin_user = require_roles(UserRole.admin)
