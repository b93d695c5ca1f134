# healthcheck.py: Sonde de santé pour les conteneurs.
# Sort avec le code 0 si /health répond 200, 1 sinon.

import sys

import requests

import config


def check_health(port: int = None, timeout: float = 2.0) -> bool:
    url = f"http://localhost:{port or config.PORT}/health"
    try:
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException:
        return False
    return response.status_code == 200


def main() -> int:
    return 0 if check_health() else 1


if __name__ == "__main__":
    sys.exit(main())
