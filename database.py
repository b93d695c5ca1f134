# Base de données: ouverture et fermeture de la connexion MongoDB.
# Le client est créé une seule fois au démarrage (lifespan de l'application),
# stocké sur app.state et fermé à l'arrêt. Aucun client global au niveau module.

import logging

from fastapi import Request
from pymongo import MongoClient
from pymongo.database import Database

import config

logger = logging.getLogger(__name__)


def connect(uri: str = None) -> MongoClient:
    """Crée le client MongoDB (pool de connexions)."""
    client = MongoClient(
        uri or config.MONGO_URI,
        maxPoolSize=10,
        serverSelectionTimeoutMS=5000,
        socketTimeoutMS=45000,
        tz_aware=True,
    )
    logger.info("Client MongoDB initialisé")
    return client


def close(client: MongoClient) -> None:
    client.close()
    logger.info("Connexion MongoDB fermée")


def get_mongo_db(request: Request) -> Database:
    """
    Dépendance FastAPI : retourne la base MongoDB ouverte au démarrage.
    """
    return request.app.state.mongo_db
