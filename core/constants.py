"""
Shared constants.

This module has no dependencies on models or services to avoid circular imports.
"""

# Maximum length for a single free-text profile field inside a prompt
MAX_PROFILE_TEXT_LENGTH = 200

# Maximum length for athlete feedback text inside a prompt
MAX_FEEDBACK_LENGTH = 500

# Number of history days summarised for the planner
HISTORY_WINDOW_DAYS = 7

# Number of recent sessions summarised for feedback analysis
FEEDBACK_SESSION_WINDOW = 3

# Placeholder values that do not count as a configured API key
PLACEHOLDER_API_KEYS = frozenset({"", "your_openai_api_key", "changeme", "sk-..."})

# Session length range requested from the generator; profiles may store any positive value
MIN_PROMPT_SESSION_LENGTH_MIN = 10
MAX_PROMPT_SESSION_LENGTH_MIN = 240
