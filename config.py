"""
Configuration settings for Storyblok Asset Clone
"""

from pathlib import Path

# Default Storyblok region
DEFAULT_REGION = "eu"

# Supported regions
REGIONS = ["eu", "us", "ap", "ca", "cn"]

# Environment variables read by the CLI
ENV_OAUTH_TOKEN = "STORYBLOK_OAUTH_TOKEN"
ENV_SOURCE_SPACE = "STORYBLOK_SOURCE_SPACE"
ENV_TARGET_SPACE = "STORYBLOK_TARGET_SPACE"
ENV_SIMULTANEOUS_UPLOADS = "STORYBLOK_SIMULTANEOUS_UPLOADS"
ENV_REGION = "STORYBLOK_REGION"

# Paging
PER_PAGE = 100

# Asset transfer settings
SIMULTANEOUS_UPLOADS = 20  # concurrent transfers
MAX_UPLOAD_RETRIES = 4
RETRY_DELAY = 0  # seconds between upload destination retries
STAGING_DIR = Path("temp")
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# Logging settings
LOG_LEVEL = "INFO"
LOG_FILE = "storyblok_clone.log"
LOG_DIR = Path("logs")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_ROTATION_SIZE = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5

# Performance settings
REQUEST_TIMEOUT = 30  # seconds
DOWNLOAD_TIMEOUT = 120  # seconds
RATE_LIMIT = 3  # management API requests per second
