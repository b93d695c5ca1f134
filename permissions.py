# permissions.py: Politique d'autorisation partagée par toutes les routes.

from schemas import Identity, UserRole
from errors import ForbiddenError


def is_admin(identity: Identity) -> bool:
    return identity.role == UserRole.admin


def require_role(identity: Identity, *allowed_roles: UserRole) -> None:
    """Lève ForbiddenError si le rôle de l'identité n'est pas autorisé."""
    if identity.role not in allowed_roles:
        raise ForbiddenError("Access denied. Insufficient privileges.")


def can_edit_user(identity: Identity, user_id: str) -> bool:
    """Un utilisateur peut modifier son propre profil ; un admin, tous les profils."""
    return identity.id == user_id or is_admin(identity)


def can_change_role(identity: Identity) -> bool:
    return is_admin(identity)
