"""
CommunityOS Bot - Constants
Centralized configuration constants to avoid magic numbers throughout the codebase.
"""

# =============================================================================
# RATE LIMITING
# =============================================================================

RATE_LIMIT_WINDOW_SECONDS = 60   # Fixed window length per user
RATE_LIMIT_MAX_REQUESTS = 10     # Allowed responses per user per window

# =============================================================================
# RESPONSE CACHE
# =============================================================================

RESPONSE_CACHE_TTL = 300.0       # Seconds a cached response stays valid
RESPONSE_CACHE_SWEEP_SIZE = 100  # Sweep expired entries once the cache grows past this
CACHE_KEY_PROMPT_LENGTH = 100    # Normalized prompt prefix used in cache keys

# =============================================================================
# MEMORY LIMITS
# =============================================================================

MAX_CHANNEL_MESSAGES = 20        # Messages kept per channel
MAX_CHANNEL_TOPICS = 5
MAX_USER_INTERACTIONS = 50       # Bot interactions kept per user
MAX_USER_TOPICS = 5
MAX_RECENT_CHANNELS = 5
CONTEXT_MESSAGE_COUNT = 10       # Channel messages included in a prompt
MEMORY_CACHE_TTL = 600.0         # Seconds before an idle cached memory is re-read from disk

# =============================================================================
# CONTEXT ASSEMBLY
# =============================================================================

KB_TOPICS = ('support', 'code', 'product')
KB_QUERY_KEYWORDS = 3            # Keywords joined into a KB query
KB_RESULT_LIMIT = 3
KB_EXCERPT_LENGTH = 300

# =============================================================================
# PERSONAS
# =============================================================================

PERSONA_CACHE_TTL = 60.0         # Seconds before persona files are re-read

# =============================================================================
# MESSAGE OUTPUT
# =============================================================================

MAX_EMBED_DESCRIPTION = 4000
MAX_MESSAGE_LENGTH = 2000        # Discord's max message length
KB_COMMAND_RESULTS = 5

COLORS = {
    "cyan": 0x22d3ee,
    "purple": 0xa855f7,
    "emerald": 0x34d399,
    "amber": 0xfbbf24,
    "rose": 0xf43f5e,
    "indigo": 0x6366f1,
}

LINKS = {
    "youtube": "https://www.youtube.com/@J4S_GON",
    "twitch": "https://www.twitch.tv/j4s_gon",
}

# =============================================================================
# GAMES
# =============================================================================

TRIVIA_START_DELAY = 5.0
TRIVIA_QUESTION_TIME = 20.0
TRIVIA_ROUND_GAP = 3.0
TRIVIA_USER_COOLDOWN = 30.0
TRIVIA_DEFAULT_ROUNDS = 5

QUIZ_START_DELAY = 5.0
QUIZ_QUESTION_TIME = 20.0
QUIZ_ROUND_GAP = 3.0
QUIZ_DEFAULT_ROUNDS = 5

SCRAMBLE_DIFFICULTY = {
    # difficulty: (time limit seconds, base points)
    "easy": (45.0, 50),
    "medium": (30.0, 100),
    "hard": (60.0, 150),
}

HANGMAN_MAX_WRONG = 6
HANGMAN_IDLE_TIMEOUT = 600.0     # Abandoned hangman games expire after this

NUMBER_GUESS_MAX = 100
NUMBER_GUESS_ATTEMPTS = 7
NUMBER_GUESS_IDLE_TIMEOUT = 300.0

RPS_CHALLENGE_TIMEOUT = 60.0

LEADERBOARD_LIMIT = 10

# =============================================================================
# USER-FRIENDLY ERROR MESSAGES
# =============================================================================

USER_FRIENDLY_ERRORS = {
    "chatbot": "I'm having a bit of trouble right now. Please try again in a moment or use `/ask paco` for a direct command.",
    "hub_unavailable": "The Paco Hub is temporarily unavailable. Please try again later.",
    "rate_limit": "You're sending messages too quickly. Please wait {seconds} seconds.",
    "no_permission": "You don't have permission to do that.",
    "default": "Something went wrong. Please try again.",
}
