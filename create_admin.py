import argparse
import getpass
import sys

from pymongo.errors import PyMongoError

import config
import database
from models.user import UserStore


def create_admin_user(db, email: str, name: str, password: str) -> bool:
    """
    Vérifie si l'admin existe déjà, et le crée ou le met à jour si nécessaire.
    Retourne True si le compte a été créé.
    """
    store = UserStore(db)
    store.ensure_indexes()
    _, created = store.ensure_admin(email, name, password)
    if created:
        print(f"Utilisateur admin '{email}' créé avec succès.")
    else:
        print(f"L'utilisateur '{email}' existe déjà. Rôle, statut et mot de passe mis à jour.")
    return created


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Crée ou met à jour un compte administrateur.")
    parser.add_argument("--email", default=config.ADMIN_EMAIL, help="email de l'administrateur")
    parser.add_argument("--name", default=config.ADMIN_NAME, help="nom affiché")
    parser.add_argument("--password", default=config.ADMIN_PASSWORD, help="mot de passe (demandé si absent)")
    args = parser.parse_args(argv)

    if not args.email:
        parser.error("--email est requis (ou ADMIN_EMAIL dans l'environnement)")
    password = args.password or getpass.getpass("Mot de passe : ")
    if len(password) < 6:
        parser.error("le mot de passe doit contenir au moins 6 caractères")

    client = database.connect()
    try:
        create_admin_user(client[config.DB_NAME], args.email, args.name, password)
    except PyMongoError as e:
        print(f"Erreur MongoDB : {e}", file=sys.stderr)
        return 1
    finally:
        database.close(client)
    return 0


if __name__ == "__main__":
    sys.exit(main())
