# auth.py: Hachage des mots de passe et émission / vérification des tokens JWT.

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

import config
import schemas
from errors import UnauthorizedError

# --- CONFIGURATION SÉCURITÉ ---
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=config.BCRYPT_ROUNDS,
)

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


# --- FONCTIONS UTILITAIRES ---
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Simule une vérification pour que « email inconnu » coûte autant qu'un mauvais mot de passe."""
    pwd_context.dummy_verify()


class TokenIssuer:
    """
    Émet et décode les tokens d'accès signés (HS256 par défaut).

    Construit une seule fois au démarrage : un secret manquant est une
    erreur de configuration fatale, pas une erreur de requête.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 7 * 24 * 60):
        if not secret:
            raise RuntimeError("JWT_SECRET n'est pas défini : impossible de signer les tokens")
        self.secret = secret
        self.algorithm = algorithm
        self.expires_delta = timedelta(minutes=expires_minutes)

    def issue(self, user_id: str, email: str, role: str) -> str:
        issued_at = datetime.now(timezone.utc)
        claims = {
            "id": user_id,
            "email": email,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self.expires_delta,
            # Deux tokens émis dans la même seconde restent distincts
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        """Vérifie la signature et l'expiration. Lève JWTError en cas d'échec."""
        return jwt.decode(token, self.secret, algorithms=[self.algorithm])


@dataclass
class AuthContext:
    """Identité résolue d'une requête authentifiée, passée explicitement aux routes."""

    identity: schemas.Identity
    user: schemas.User


def parse_bearer(header_value: Optional[str]) -> Optional[str]:
    if not header_value:
        return None
    scheme, _, token = header_value.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        return None
    return token


def verify_authorization(header_value: Optional[str], store, issuer: TokenIssuer) -> AuthContext:
    """
    Valide l'en-tête Authorization et résout l'utilisateur actif correspondant.

    Tous les échecs (en-tête absent ou mal formé, signature invalide, token
    expiré, utilisateur introuvable ou désactivé) produisent la même erreur.
    """
    token = parse_bearer(header_value)
    if token is None:
        raise UnauthorizedError(INVALID_TOKEN_MESSAGE)

    try:
        payload = issuer.decode(token)
    except JWTError:
        raise UnauthorizedError(INVALID_TOKEN_MESSAGE)

    user_id = payload.get("id")
    if not user_id:
        raise UnauthorizedError(INVALID_TOKEN_MESSAGE)

    user_data = store.find_by_id_active(user_id)
    if user_data is None:
        raise UnauthorizedError(INVALID_TOKEN_MESSAGE)

    user = schemas.user_helper(user_data)
    identity = schemas.Identity(id=user.id, email=user.email, role=user.role)
    return AuthContext(identity=identity, user=user)
