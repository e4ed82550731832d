"""
Configuration loader.
Reads settings from .env file and makes them available to the rest of the portal.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Supabase project (hosted database + storage + edge functions)
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

# Admin console credentials
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@jharkhantourism.gov.in")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

# Persisted admin flag lives next to the project, like the rest of local data
DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
SESSION_FILE = os.getenv("SESSION_FILE", os.path.join(DATA_DIR, "admin_session.json"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Store tables and functions
APPLICATIONS_TABLE = "vendor_applications"
VENDORS_TABLE = "vendors"
REVIEWS_TABLE = "customer_reviews"
MARKETPLACE_TABLE = "marketplace"
APPROVE_FUNCTION = "approve_vendor"
REJECT_FUNCTION = "reject_vendor"

# Image uploads
VENDOR_IMAGE_BUCKET = "vendor-images"
VENDOR_IMAGE_FOLDER = "profiles"
MARKETPLACE_IMAGE_BUCKET = "marketplace-images"
MAX_IMAGE_BYTES = 5 * 1024 * 1024
ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/webp", "image/gif"}

# Marketplace form choices
MARKETPLACE_CATEGORIES = [
    "Handicrafts",
    "Textiles",
    "Jewelry",
    "Food Products",
    "Artwork",
    "Traditional Items",
    "Pottery",
    "Woodwork",
    "Metalwork",
    "Other",
]
PRODUCT_TYPES = ["Handicraft", "Produce", "Textile"]
SHIPPING_TIMES = ["1-2 days", "3-5 days", "1 week", "2 weeks"]
DEFAULT_SHIPPING_TIME = "3-5 days"
