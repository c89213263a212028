# campusvote/config.py
# Central place for settings and constants
import os

from dotenv import load_dotenv

load_dotenv()

# --- Database ---
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "campusvote")

USERS_COLLECTION = "users"
HOUSES_COLLECTION = "houses"
SOCIETIES_COLLECTION = "societies"
ELECTIONS_COLLECTION = "elections"
VOTES_COLLECTION = "votes"
GRIEVANCES_COLLECTION = "grievances"

# --- Security & JWT ---
# In production, use secure, environment-variable-based secrets
SECRET_KEY = os.getenv("SECRET_KEY", "a_very_secret_key_for_dev_only")
REFRESH_SECRET_KEY = os.getenv("REFRESH_SECRET_KEY", "a_very_secret_refresh_key_for_dev_only")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
REFRESH_TOKEN_EXPIRE_MINUTES = int(os.getenv("REFRESH_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))

# The only account allowed through /admin/auth; also promoted to admin on login
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@iitm.ac.in")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

# --- HTTP ---
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3001,http://localhost:3002").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
