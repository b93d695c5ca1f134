# main.py: Point d'entrée pour le serveur uvicorn.
# Ce fichier importe l'application créée par l'app factory.
# La connexion MongoDB est ouverte au démarrage et fermée à l'arrêt (lifespan).

import uvicorn

import config
from app_factory import create_app

app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT)
