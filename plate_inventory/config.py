# plate_inventory/config.py

import os
from dotenv import load_dotenv

load_dotenv()

# --- Database ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./plate_inventory.db")

# Backend caps the rows returned per request, so reads are paged in windows of this size
FETCH_CHUNK_SIZE = int(os.getenv("FETCH_CHUNK_SIZE", 30))

# --- Plate Recognizer API ---
PLATE_RECOGNIZER_URL = os.getenv(
    "PLATE_RECOGNIZER_URL", "https://api.platerecognizer.com/v1/plate-reader/"
)
PLATE_RECOGNIZER_TOKEN = os.getenv("PLATE_RECOGNIZER_TOKEN")
RECOGNIZER_TIMEOUT = float(os.getenv("RECOGNIZER_TIMEOUT", 30))

# --- Upload limits ---
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
ALLOWED_IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.webp'}
ALLOWED_MANIFEST_EXTENSIONS = {'.xlsx', '.csv'}

# --- Image normalization (before recognition and storage) ---
NORMALIZE_MAX_WIDTH = 1024
NORMALIZE_MAX_HEIGHT = 768
NORMALIZE_QUALITY = 0.7

# --- Report layout ---
REPORT_GRID_COLUMNS = 3
REPORT_GRID_ROWS = 4
REPORT_THUMBNAIL_MAX_DIMENSION = 300
REPORT_CONTRAST_FACTOR = 1.05
REPORT_IMAGE_TIMEOUT = 15

# --- AWS S3 ---
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
AWS_S3_BUCKET_NAME = os.getenv("AWS_S3_BUCKET_NAME")
AWS_S3_REGION = os.getenv("AWS_S3_REGION")
AWS_S3_BASE_URL = os.getenv(
    "AWS_S3_BASE_URL",
    f"https://{AWS_S3_BUCKET_NAME}.s3.{AWS_S3_REGION}.amazonaws.com",
)

# --- Email notifications ---
NOTIFY_EMAIL_URL = os.getenv("NOTIFY_EMAIL_URL")
NOTIFY_EMAIL_TIMEOUT = 30

# --- Capture sessions (held in process memory) ---
SESSION_TTL_SECONDS = float(os.getenv("SESSION_TTL_SECONDS", 12 * 60 * 60))
MAX_CAPTURE_SESSIONS = int(os.getenv("MAX_CAPTURE_SESSIONS", 100))
