# constants.py
import logging

logger = logging.getLogger(__name__)

# Target application
TARGET_URL = "https://app.asana.com"
LOGIN_URL = "https://app.asana.com/-/login"
AUTHENTICATED_PATH_PATTERN = r"^/\d+/"  # /0/home, /1/<workspace>/home
OUTPUT_DIR = "./output"
DEBUG_DIR = "."
PROJECT_NAME = "Test Project"

# Browser
VIEWPORT = {"width": 1920, "height": 1080}
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
LOCALE = "en-US"
TIMEZONE_ID = "America/New_York"

# Timeouts (ms)
LOGIN_NAVIGATION_TIMEOUT = 90000
LOGIN_FIELD_TIMEOUT = 20000
AUTHENTICATED_URL_TIMEOUT = 60000
LOAD_STATE_TIMEOUT = 30000
STRATEGY_TIMEOUT = 3000

# Settle delays (ms)
LOGIN_PAGE_SETTLE = 3000
POST_LOGIN_SETTLE = 5000
STEP_SETTLE = 3000
CAPTURE_SETTLE = 3000
DIALOG_SETTLE = 1000
ESCAPE_SETTLE = 500

# DOM snapshot
MAX_DOM_DEPTH = 15

# Network capture
API_PATTERNS = ["/api/", "/graphql", "/rest/", "app.asana.com/api"]
EXCLUDE_PATTERNS = [
    ".js", ".css", ".png", ".jpg", ".jpeg", ".gif", ".svg",
    ".woff", ".woff2", ".ttf", ".ico",
    "analytics", "tracking", "segment.io", "google-analytics",
]

# Output files
SCRAPED_DATA_FILE = "scraped-data.json"
PARTIAL_SCRAPED_DATA_FILE = "scraped-data.partial.json"
API_CALLS_SUFFIX = "-api-calls.json"
SCREENSHOT_DIR = "screenshots"

ELEMENT_SCREENSHOT_TARGETS = [
    ("header", 'header, [role="banner"]'),
    ("sidebar", '[role="navigation"], aside, .sidebar'),
    ("main", 'main, [role="main"]'),
    ("content", ".content, .main-content"),
]

DIALOG_CLOSE_SELECTORS = [
    'button[aria-label="Close"]',
    'button[aria-label="Dismiss"]',
    '[role="dialog"] button:has-text("×")',
    '[role="dialog"] button.close',
    '[role="dialog"] [aria-label*="close" i]',
    'button:has-text("Maybe later")',
    'button:has-text("Skip")',
    '.modal button[aria-label="Close"]',
]

# Visual comparison
GENERATED_URL = "http://localhost:3000"
COMPARISON_PAGES = ["home", "projects", "tasks"]
COMPARISON_PAGE_PATHS = {
    "home": "/home",
    "projects": "/projects",
    "tasks": "/tasks",
}
COMPARISON_SELECTORS = ["button", "input", "a", "h1", "h2", "h3", ".card", ".header", ".sidebar", "nav"]
COMPARISON_PROPERTIES = [
    "color",
    "backgroundColor",
    "fontSize",
    "fontWeight",
    "fontFamily",
    "padding",
    "margin",
    "borderRadius",
    "display",
]
COMPARISON_LOAD_TIMEOUT = 30000
PASS_THRESHOLD = 80.0
COMPARISON_RESULTS_FILE = "visual-test-results.json"
