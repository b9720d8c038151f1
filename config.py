"""
Brand gap analysis settings.
API credentials come from the environment; everything else is plain constants.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(BASE_DIR, "data")
OUTPUT_DIR = os.path.join(BASE_DIR, "output")

# ============================================================
# TAVILY SEARCH API
# ============================================================
TAVILY_API_KEY = os.environ.get("TAVILY_API_KEY", "")
TAVILY_API_URL = "https://api.tavily.com/search"
TAVILY_TIMEOUT = 10          # seconds
TAVILY_MAX_RESULTS = 10
TAVILY_SEARCH_DEPTH = "basic"

DEFAULT_STORE_URL = "https://www.autodoc.de"

MAX_BRANDS = 15
MAX_PRODUCTS_PER_BRAND = 10

# ============================================================
# CATALOG (CSV export, used offline)
# ============================================================
CATALOG_CSV = os.path.join(DATA_DIR, "catalog.csv")

CATALOG_COLUMNS = {
    "ID": "id",
    "Name": "name",
    "Category": "category",
    "Price": "price",
    "Availability": "availability",
    "Brand": "brand",
    "URL": "url",
    "Description": "description",
    "Image URL": "image_url",
}

# ============================================================
# TAXONOMY
# ============================================================
CATEGORIES = [
    "Body Parts",
    "Brake System",
    "Cooling System",
    "Electrical",
    "Engine Parts",
    "Exhaust System",
    "Filters",
    "Steering",
    "Suspension",
    "Transmission",
]

# Keyword found in search results -> category of the product
PRODUCT_TYPES = {
    "brake pad": "Brake System",
    "brake disc": "Brake System",
    "oil filter": "Filters",
    "air filter": "Filters",
    "spark plug": "Electrical",
    "shock absorber": "Suspension",
    "strut": "Suspension",
    "belt": "Engine Parts",
    "pump": "Cooling System",
    "sensor": "Electrical",
    "valve": "Engine Parts",
    "gasket": "Engine Parts",
    "bearing": "Suspension",
    "joint": "Steering",
    "hose": "Cooling System",
    "fluid": "Brake System",
    "bulb": "Electrical",
    "fuse": "Electrical",
}

KNOWN_BRANDS = [
    "Bosch", "Continental", "Valeo", "MAHLE", "SACHS", "febi bilstein",
    "MANN-FILTER", "PIERBURG", "Lemförder", "TRW", "Brembo", "Bilstein",
    "Monroe", "KYB", "Denso", "NGK", "Champion", "Hella", "Osram",
    "Philips", "Castrol", "Mobil", "Shell", "Total", "Liqui Moly",
    "Motul", "Elring", "Corteco", "Reinz", "Goetze", "ATE", "Textar",
    "Pagid", "Ferodo", "Jurid", "Zimmermann", "Optimal", "Meyle",
    "Swag", "Topran", "Trucktec", "Vemo", "Ackoja", "Blue Print",
]

# Offered when live brand discovery is unavailable
FALLBACK_BRANDS = [
    "Bosch", "Continental", "Valeo", "MAHLE", "SACHS",
    "febi bilstein", "MANN-FILTER", "PIERBURG",
]

# ============================================================
# MATCHING
# ============================================================
MIN_TOKEN_LENGTH = 4         # tokens of 3 chars or fewer never count
MIN_SHARED_TOKENS = 2
MATCH_STRATEGY = "first"     # "first" or "exclusive"
FUZZY_MATCH_THRESHOLD = 90   # brand-name dedupe, thefuzz ratio

# ============================================================
# REPORT
# ============================================================
PRICE_LEADERS_LIMIT = 5
REPORT_FILE = os.path.join(OUTPUT_DIR, "gap_report.xlsx")
