# coupure/config.py
import os

# Backend Appwrite (ex: https://fra.cloud.appwrite.io/v1)
APPWRITE_ENDPOINT = os.getenv("APPWRITE_ENDPOINT", "https://fra.cloud.appwrite.io/v1").rstrip("/")
APPWRITE_PROJECT_ID = os.getenv("APPWRITE_PROJECT_ID", "")
APPWRITE_API_KEY = os.getenv("APPWRITE_API_KEY", "")
APPWRITE_DB_ID = os.getenv("APPWRITE_DB_ID", "6994aa87003b4207080f")

OUTAGES_COLLECTION = os.getenv("OUTAGES_COLLECTION", "outages")
INCIDENTS_COLLECTION = os.getenv("INCIDENTS_COLLECTION", "incidents")

# Réseau : au-delà on bascule en mode local
REMOTE_TIMEOUT_S = float(os.getenv("REMOTE_TIMEOUT_S", "10"))
# Page "UI" (liste récente) et lots de pagination complète (stats/admin)
REMOTE_PAGE_SIZE = int(os.getenv("REMOTE_PAGE_SIZE", "200"))
REMOTE_BATCH_SIZE = int(os.getenv("REMOTE_BATCH_SIZE", "100"))

# Stockage local clé/valeur (SQLite par défaut)
STORE_DATABASE_URL = os.getenv("STORE_DATABASE_URL", "sqlite+aiosqlite:///./coupure.db")

# Rétention du registre de confirmations (jours, 0 = jamais purgé)
LEDGER_RETENTION_DAYS = int(os.getenv("LEDGER_RETENTION_DAYS", "30"))

# Fenêtres par défaut des requêtes
RECENT_HOURS = int(os.getenv("RECENT_HOURS", "24"))
NEARBY_RADIUS_KM = float(os.getenv("NEARBY_RADIUS_KM", "20"))

# Rafraîchissement périodique
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "1") != "0"
REFRESH_INTERVAL_MIN = int(os.getenv("REFRESH_INTERVAL_MIN", "5"))

CAMEROON_REGIONS = [
    "Adamaoua", "Centre", "Est", "Extrême-Nord", "Littoral",
    "Nord", "Nord-Ouest", "Ouest", "Sud", "Sud-Ouest",
]
