import logging

from fastapi import APIRouter, Depends, status

import schemas
from auth import AuthContext, TokenIssuer, dummy_verify
from dependencies import get_current_user, get_token_issuer, get_user_store
from errors import UnauthorizedError
from models.user import UserStore

logger = logging.getLogger(__name__)

router = APIRouter()

# Même message que l'email soit inconnu ou le mot de passe faux
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: schemas.RegisterRequest,
    store: UserStore = Depends(get_user_store),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Crée un compte (rôle « user ») et retourne un token JWT.
    """
    user_data = store.create(payload.email, payload.name, payload.password)
    user = schemas.user_helper(user_data)
    token = issuer.issue(user.id, user.email, user.role.value)

    logger.info(f"Nouvel utilisateur inscrit : {user.email}")

    return {
        "success": True,
        "message": "User registered successfully",
        "data": {"token": token, "user": user},
    }


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    store: UserStore = Depends(get_user_store),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Connecte l'utilisateur et retourne un token JWT.
    """
    user_data = store.find_by_email_active(payload.email)

    if user_data is None:
        dummy_verify()
        logger.info(f"Échec de connexion (compte inconnu ou inactif) : {payload.email}")
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

    if not store.verify_password(user_data, payload.password):
        logger.info(f"Échec de connexion (mot de passe incorrect) : {payload.email}")
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

    user = schemas.user_helper(user_data)
    token = issuer.issue(user.id, user.email, user.role.value)

    logger.info(f"Utilisateur connecté : {user.email}")

    return {
        "success": True,
        "message": "Login successful",
        "data": {"token": token, "user": user},
    }


@router.get("/me", response_model=schemas.UserResponse)
def read_users_me(current: AuthContext = Depends(get_current_user)):
    """
    Retourne les informations de l'utilisateur actuellement connecté.
    """
    return {"success": True, "data": current.user}
