"""Settings shared by every environment; each module below overrides what it needs."""

import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "geo_attendance"),
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Calendar day that keys attendance records: "UTC" or an IANA zone such as "Asia/Kolkata".
DAY_BOUNDARY_TZ = os.getenv("DAY_BOUNDARY_TZ", "UTC")

DEVICE_CHECK_TIMEOUT_SECONDS = float(os.getenv("DEVICE_CHECK_TIMEOUT_SECONDS", "15"))
DEVICE_VERDICT_TTL_HOURS = float(os.getenv("DEVICE_VERDICT_TTL_HOURS", "24"))
