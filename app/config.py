# app/config.py
# Central place for settings and constants
import os
from dotenv import load_dotenv

load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), "../.env"))

# --- Database ---
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "election_demo")

# News board lives in a flat JSON file, not in MongoDB
NEWS_DB_PATH = os.getenv("NEWS_DB_PATH", "data/news.json")

# --- HTTP ---
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Voting ---
CNP_LENGTH = 13

# --- Simulation ---
SIMULATION_VOTERS = int(os.getenv("SIMULATION_VOTERS", "100"))
SEED_CANDIDATES = os.getenv("SEED_CANDIDATES", "true").lower() in ("1", "true", "yes")

# --- Live metrics ---
METRICS_INTERVAL_SECONDS = float(os.getenv("METRICS_INTERVAL_SECONDS", "1.0"))
METRICS_LABELS = ["Red", "Blue", "Yellow", "Green", "Purple", "Orange"]
METRICS_DATASET_LABEL = "# of Votes"
METRICS_MIN_VALUE = 0
METRICS_MAX_VALUE = 100
