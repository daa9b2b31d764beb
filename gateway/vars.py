import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "iframe-proxy-gateway")
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3001"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "info").lower()

# Pre-built front-end bundle served for every non-API path
STATIC_DIR = os.environ.get("STATIC_DIR", "dist/game-iframe-app")

PROXY_TIMEOUT = float(os.environ.get("PROXY_TIMEOUT", "300"))  # 5 minutes default
CLIENT_IP_CACHE_TTL = float(os.environ.get("CLIENT_IP_CACHE_TTL", "300"))

CORS_ANYWHERE_URL = os.getenv(
    "CORS_ANYWHERE_URL", "https://cors-anywhere.herokuapp.com/"
)
ALLORIGINS_URL = os.getenv("ALLORIGINS_URL", "https://api.allorigins.win/")
CORSPROXY_URL = os.getenv("CORSPROXY_URL", "https://corsproxy.io/")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
