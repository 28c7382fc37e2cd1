import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Shopify Admin API ---
SHOPIFY_SHOP = os.getenv("SHOPIFY_SHOP")
SHOPIFY_ADMIN_TOKEN = os.getenv("SHOPIFY_ADMIN_TOKEN")
SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2024-10")
# Seconds before a stalled GraphQL call fails. There is no automatic retry.
SHOPIFY_TIMEOUT = float(os.getenv("SHOPIFY_TIMEOUT", "30"))

# --- Time Zone ---
# Snapshot labels default to "today" in this zone.
TIMEZONE = os.getenv("TIMEZONE", "Europe/Sofia")

# --- Path Configuration ---
SNAPSHOT_DIR = BASE_DIR / os.getenv("SNAPSHOT_DIR", "data/snapshots")
EXPORT_DIR = BASE_DIR / os.getenv("EXPORT_DIR", "exports")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Indexed Snapshot Store ---
# SQLAlchemy URL, e.g. "sqlite:///data/snapshots.db" or a PostgreSQL URL.
# Leave unset to keep snapshots in JSON files only.
DATABASE_URL = os.getenv("DATABASE_URL")

# --- Report Output ---
EXPORT_BASENAME = os.getenv("EXPORT_BASENAME", "inventory-report")
REPORT_SAMPLE_SIZE = int(os.getenv("REPORT_SAMPLE_SIZE", "20"))

# Define the column order in one place so CSV and XML always agree.
DEFAULT_COLUMNS = [
    "vendor",
    "vendor_invoice_date",
    "vendor_invoice_number",
    "product_title",
    "product_variant_sku",
    "unit_cost",
    "unit_cost_currency",
    "starting_inventory_qty",
    "ending_inventory_qty",
    "units_sold",
]

# --- Scheduled Snapshots ---
# Days of the month a snapshot is due. The last day of every month is
# always included on top of these.
SNAPSHOT_DAYS = [
    int(day) for day in os.getenv("SNAPSHOT_DAYS", "1,10,20").split(",") if day.strip()
]
# Local time (in TIMEZONE) the external cron is expected to fire at.
SNAPSHOT_TIME = os.getenv("SNAPSHOT_TIME", "11:59:59")
