import logging

from fastapi import APIRouter, Depends, Query

import config
import permissions
import schemas
from auth import AuthContext
from dependencies import get_current_admin_user, get_current_user, get_user_store
from errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailed
from models.user import UserStore, canonical_id, page_count
from schemas import UserRole

logger = logging.getLogger(__name__)

router = APIRouter()

USER_NOT_FOUND_MESSAGE = "User not found"


@router.get("", response_model=schemas.UserListResponse, summary="Lister les utilisateurs actifs")
def list_users(
    page: int = Query(1, ge=0),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=0),
    search: str = Query(""),
    store: UserStore = Depends(get_user_store),
    current_admin: AuthContext = Depends(get_current_admin_user),
):
    # 0 revient aux valeurs par défaut
    page = page or 1
    limit = min(limit or config.DEFAULT_PAGE_SIZE, config.MAX_PAGE_SIZE)
    docs, total = store.list_active(page=page, limit=limit, search=search)
    return {
        "success": True,
        "data": {
            "users": [schemas.user_helper(doc) for doc in docs],
            "pagination": {
                "page": page,
                "pages": page_count(total, limit),
                "total": total,
                "limit": limit,
            },
        },
    }


# Déclarée avant /{user_id} pour ne pas être capturée par le paramètre de chemin
@router.put("/change-password", response_model=schemas.MessageResponse, summary="Changer son mot de passe")
def change_password(
    payload: schemas.ChangePasswordRequest,
    store: UserStore = Depends(get_user_store),
    current: AuthContext = Depends(get_current_user),
):
    user_data = store.find_by_id_active(current.identity.id)
    if user_data is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)

    if not store.verify_password(user_data, payload.current_password):
        raise ValidationFailed("Current password is incorrect")

    if not store.set_password(current.identity.id, payload.new_password):
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)

    logger.info(f"Mot de passe modifié pour : {current.identity.email}")

    return {"success": True, "message": "Password changed successfully"}


@router.get("/{user_id}", response_model=schemas.UserResponse, summary="Obtenir un utilisateur par son ID")
def get_user(
    user_id: str,
    store: UserStore = Depends(get_user_store),
    current: AuthContext = Depends(get_current_user),
):
    user_data = store.find_by_id_active(user_id)
    if user_data is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return {"success": True, "data": schemas.user_helper(user_data)}


@router.put("/{user_id}", response_model=schemas.UserResponse, summary="Mettre à jour un utilisateur")
def update_user(
    user_id: str,
    user_update: schemas.UserUpdate,
    store: UserStore = Depends(get_user_store),
    current: AuthContext = Depends(get_current_user),
):
    identity = current.identity

    existing = store.find_by_id_active(user_id)
    if existing is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)

    if not permissions.can_edit_user(identity, str(existing["_id"])):
        raise ForbiddenError("Access denied")

    update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise ValidationFailed("No fields to update")

    # Seul un admin peut modifier un rôle, y compris le sien
    if "role" in update_data:
        if UserRole(update_data["role"]).value != existing.get("role"):
            if not permissions.can_change_role(identity):
                raise ForbiddenError("Access denied. Cannot change role")
        else:
            update_data.pop("role")

    if "email" in update_data:
        if update_data["email"] == existing["email"]:
            update_data.pop("email")
        elif store.email_taken(update_data["email"], exclude_id=user_id):
            raise ConflictError("Email is already taken")

    updated = store.update_fields(user_id, update_data)
    if updated is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)

    logger.info(f"Utilisateur mis à jour : {updated['email']} par {identity.email}")

    return {"success": True, "message": "User updated successfully", "data": schemas.user_helper(updated)}


@router.delete("/{user_id}", response_model=schemas.MessageResponse, summary="Désactiver un utilisateur")
def delete_user(
    user_id: str,
    store: UserStore = Depends(get_user_store),
    current: AuthContext = Depends(get_current_user),
):
    identity = current.identity

    if identity.id == canonical_id(user_id):
        raise ValidationFailed("Cannot delete your own account")

    permissions.require_role(identity, UserRole.admin)

    user_data = store.find_by_id_active(user_id)
    if user_data is None or not store.soft_delete(user_id):
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)

    logger.info(f"Utilisateur désactivé : {user_data['email']} par {identity.email}")

    return {"success": True, "message": "User deleted successfully"}
