from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


# Rôles possibles pour un utilisateur
class UserRole(str, Enum):
    user = "user"
    admin = "admin"


def _strip_and_lower(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


# --- Schémas utilisateur ---

# Schéma pour la lecture d'un utilisateur (réponse API, jamais de mot de passe)
class User(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Identité résolue à partir d'un token vérifié
class Identity(BaseModel):
    id: str
    email: str
    role: UserRole


def user_helper(user_data: dict) -> User:
    """Convertit un document MongoDB en schéma User (sans le hash)."""
    return User(
        id=str(user_data["_id"]),
        email=user_data["email"],
        name=user_data["name"],
        role=user_data.get("role", UserRole.user.value),
        is_active=user_data.get("is_active", True),
        created_at=user_data.get("created_at"),
        updated_at=user_data.get("updated_at"),
    )


# --- Schémas pour les requêtes ---

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    name: str = Field(min_length=2, max_length=50)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _strip_and_lower(value)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return _strip(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _strip_and_lower(value)


# Mise à jour partielle : seuls les champs fournis sont modifiés
class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _strip_and_lower(value)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return _strip(value)


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(min_length=1, alias="currentPassword")
    new_password: str = Field(min_length=6, max_length=128, alias="newPassword")


# --- Schémas pour les réponses ---

class AuthData(BaseModel):
    token: str
    user: User


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    data: AuthData


class UserResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: User


class Pagination(BaseModel):
    page: int
    pages: int
    total: int
    limit: int


class UserList(BaseModel):
    users: List[User]
    pagination: Pagination


class UserListResponse(BaseModel):
    success: bool = True
    data: UserList


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime
    environment: str
