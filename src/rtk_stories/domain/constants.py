"""Centralized constants for rtk-stories.

Endpoints, field names and protocol details live here so every layer
imports from a single source of truth.
"""

# ---------- AnkiConnect / HTTP ----------
ANKI_CONNECT_URL = "http://127.0.0.1:8765"
ANKI_CONNECT_PORT = 8765
ANKI_CONNECT_VERSION = 6
REQUEST_TIMEOUT = 30.0
RESPONSIVENESS_TIMEOUT = 2.0

# ---------- Reference site ----------
SITE_BASE_URL = "http://hochanh.github.io/rtk"
USER_AGENT = "rtk-stories (+https://github.com/)"

# ---------- Note fields ----------
FIELD_KANJI = "Kanji"
FIELD_KEYWORD = "Keyword"
FIELD_ALTERNATIVE_KANJI = "Alternative Kanji"
FIELD_STORY = "Story"

# ---------- Story selection ----------
SELECT_HEISIG = "heisig"
SELECT_CUSTOM = "custom"

# ---------- Server ----------
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_CACHE_DIR = "cache"
