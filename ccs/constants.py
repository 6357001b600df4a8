"""Core constants for the Custom Case Studio backend."""

import os
from typing import Dict

CONFIG_FILE = "config.json"
STORE_FILE = "configurations.json"
UPLOAD_DIR_NAME = "uploads"
LANG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "lang")
DEFAULT_LANG_CODE = "en"
DEFAULT_DATA_DIR = "data"
DEFAULT_THEME = "flatly"
APP_NAME = "Custom Case Studio"

DEFAULT_LANG_KEYS: Dict[str, str] = {
    "app_title": APP_NAME,
    "critical_error_title": "Critical Error",
    "lang_load_error": (
        "Could not load language file '{lang_code}'. Ensure '{lang_code}.json' exists "
        "in the '{lang_dir}' folder or reinstall the application. Using default language."
    ),
    "lang_default_load_error": (
        "Could not load default language file ('{lang_code}.json'). Application cannot "
        "start. Please reinstall."
    ),
    "error_title": "Something Went Wrong",
    "error_export": "There was a problem in your config. Please try again.",
    "error_server": "There was a problem at our end, please try again.",
}

# Phone template artwork is 896x1831; the silhouette is rendered 240px wide.
PHONE_TEMPLATE_WIDTH = 896
PHONE_TEMPLATE_HEIGHT = 1831
DEFAULT_SILHOUETTE_WIDTH = 240

DEFAULT_VIEWPORT_WIDTH = 896
DEFAULT_VIEWPORT_HEIGHT = 600

DEFAULT_PLACEMENT_X = 150.0
DEFAULT_PLACEMENT_Y = 205.0
DEFAULT_PLACEMENT_SCALE = 0.25
MIN_PLACEMENT_WIDTH = 10.0

# Used when the uploaded image's size cannot be read.
FALLBACK_IMAGE_SIZE = 500

EXPORT_FILENAME = "cropped.png"
EXPORT_CONTENT_TYPE = "image/png"
MAX_UPLOAD_BYTES = 4 * 1024 * 1024
UPLOAD_CHUNK_SIZE = 64 * 1024
HTTP_TIMEOUT = 30.0

PREVIEW_PATH = "/configure/preview"

# Prices are in cents.
BASE_PRICE = 14_00
PRODUCT_PRICES: Dict[str, Dict[str, int]] = {
    "material": {
        "silicone": 0,
        "polycarbonate": 5_00,
    },
    "finish": {
        "smooth": 0,
        "textured": 3_00,
    },
}
