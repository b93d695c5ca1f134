# models/user.py: Accès à la collection MongoDB "users".
# Les mots de passe ne sont jamais stockés en clair : seul le hash bcrypt
# est enregistré dans le champ "password_hash".

import math
import re
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import hash_password, verify_password
from errors import ConflictError
from schemas import UserRole

EMAIL_TAKEN_MESSAGE = "User with this email already exists"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _object_id(user_id) -> Optional[ObjectId]:
    if isinstance(user_id, ObjectId):
        return user_id
    if not ObjectId.is_valid(user_id):
        return None
    return ObjectId(user_id)


def canonical_id(user_id) -> str:
    """Forme canonique (hex minuscule) d'un identifiant ; inchangé s'il est invalide."""
    oid = _object_id(user_id)
    return str(oid) if oid is not None else str(user_id)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class UserStore:
    """Magasin des comptes utilisateurs (actifs et désactivés)."""

    def __init__(self, db: Database):
        self.collection = db["users"]

    def ensure_indexes(self) -> None:
        # L'unicité de l'email est garantie par MongoDB, pas par l'application
        self.collection.create_index([("email", ASCENDING)], unique=True)
        self.collection.create_index([("created_at", DESCENDING)])

    # --- Création ---

    def create(self, email: str, name: str, password: str, role: UserRole = UserRole.user) -> dict:
        email = normalize_email(email)
        if self.email_taken(email):
            raise ConflictError(EMAIL_TAKEN_MESSAGE)

        now = _now()
        user_data = {
            "email": email,
            "name": name,
            "password_hash": hash_password(password),
            "role": UserRole(role).value,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = self.collection.insert_one(user_data)
        except DuplicateKeyError:
            # Course entre deux inscriptions simultanées
            raise ConflictError(EMAIL_TAKEN_MESSAGE)
        user_data["_id"] = result.inserted_id
        return user_data

    # --- Lecture ---

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": normalize_email(email)})

    def find_by_email_active(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": normalize_email(email), "is_active": True})

    def find_by_id_active(self, user_id) -> Optional[dict]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid, "is_active": True})

    def email_taken(self, email: str, exclude_id=None) -> bool:
        query = {"email": normalize_email(email)}
        oid = _object_id(exclude_id) if exclude_id is not None else None
        if oid is not None:
            query["_id"] = {"$ne": oid}
        return self.collection.find_one(query, {"_id": 1}) is not None

    def list_active(self, page: int = 1, limit: int = 10, search: str = "") -> Tuple[List[dict], int]:
        """Retourne une page d'utilisateurs actifs et le total correspondant."""
        query = {"is_active": True}
        search = (search or "").strip()
        if search:
            # Recherche littérale : la saisie n'est pas interprétée comme une regex
            pattern = re.escape(search)
            query["$or"] = [
                {"name": {"$regex": pattern, "$options": "i"}},
                {"email": {"$regex": pattern, "$options": "i"}},
            ]

        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query, {"password_hash": 0})
            .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return list(cursor), total

    # --- Mots de passe ---

    @staticmethod
    def verify_password(user_data: dict, plain_password: str) -> bool:
        return verify_password(plain_password, user_data.get("password_hash", ""))

    def set_password(self, user_id, plain_password: str) -> bool:
        oid = _object_id(user_id)
        if oid is None:
            return False
        result = self.collection.update_one(
            {"_id": oid, "is_active": True},
            {"$set": {"password_hash": hash_password(plain_password), "updated_at": _now()}},
        )
        return result.matched_count == 1

    # --- Mise à jour ---

    def update_fields(self, user_id, patch: dict) -> Optional[dict]:
        """Met à jour les champs fournis d'un utilisateur actif et retourne le document modifié."""
        oid = _object_id(user_id)
        if oid is None:
            return None

        update_data = dict(patch)
        # Ces champs ne passent jamais par une mise à jour générique
        for forbidden in ("_id", "password_hash", "created_at"):
            update_data.pop(forbidden, None)
        if "email" in update_data:
            update_data["email"] = normalize_email(update_data["email"])
        if "role" in update_data:
            update_data["role"] = UserRole(update_data["role"]).value
        update_data["updated_at"] = _now()

        try:
            return self.collection.find_one_and_update(
                {"_id": oid, "is_active": True},
                {"$set": update_data},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise ConflictError("Email is already taken")

    def soft_delete(self, user_id) -> bool:
        oid = _object_id(user_id)
        if oid is None:
            return False
        result = self.collection.update_one(
            {"_id": oid, "is_active": True},
            {"$set": {"is_active": False, "updated_at": _now()}},
        )
        return result.modified_count == 1

    # --- Administrateur initial ---

    def ensure_admin(self, email: str, name: str, password: str) -> Tuple[dict, bool]:
        """
        Crée le compte administrateur s'il n'existe pas, sinon le promeut,
        le réactive et réinitialise son mot de passe.
        Retourne (document, créé).
        """
        existing = self.find_by_email(email)
        if existing is None:
            return self.create(email, name, password, role=UserRole.admin), True

        self.collection.update_one(
            {"_id": existing["_id"]},
            {
                "$set": {
                    "password_hash": hash_password(password),
                    "role": UserRole.admin.value,
                    "is_active": True,
                    "updated_at": _now(),
                }
            },
        )
        return self.collection.find_one({"_id": existing["_id"]}), False
