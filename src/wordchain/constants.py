"""
Shared constants for wordchain.
"""

MIN_WEIGHT = 0
MAX_WEIGHT = 100
INITIAL_WEIGHT = 1
CANDIDATE_LIMIT = 10_000
MAX_RETRIES = 10
MAX_WALK_TOKENS = 10_000
BACKUP_FILENAME = "wordchain.backup.bin"
TEXT_ENCODING = "utf-16-le"

DEFAULT_END_SYMBOL = "."
DEFAULT_END_SYMBOLS = (".", "?", "!")
DEFAULT_END_SEPARATOR_SYMBOLS = (",", ":", ";")
DEFAULT_SPACING_SYMBOLS = ("|", "/", "&")
DEFAULT_SEPARATOR_SYMBOLS = (">", "<", "~", "^", "*")
DEFAULT_COMBINATOR_SYMBOLS = ("@",)
DEFAULT_WRAPPER_PAIRS = (('"', '"'), ("(", ")"), ("[", "]"), ("“", "”"))
