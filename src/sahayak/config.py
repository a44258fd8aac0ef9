# Environment-driven configuration constants. Settings from .sahayak/settings.yaml and CLI flags override these at startup.

import os

# OpenAI env (Chat Completions). OPENAI_API_KEY is read when the client is built so a .env file can supply it.
AI_MODEL = os.environ.get("AI_MODEL", "gpt-4o-mini")  # OpenAI model id
OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")

# Output token budget
MAX_COMPLETION_TOKENS = int(os.environ.get("SAHAYAK_MAX_COMPLETION_TOKENS", "8192"))

# Seconds to wait for a single backend response
HTTP_TIMEOUT = int(os.environ.get("SAHAYAK_HTTP_TIMEOUT", "600"))

# Turn loop bound per user message
MAX_ITERATIONS = int(os.environ.get("SAHAYAK_MAX_ITERATIONS", "50"))

# Transport errors are retried until the iteration counter passes this
MAX_RETRIES = int(os.environ.get("SAHAYAK_MAX_RETRIES", "3"))

# Unchanged lines shown around an edit in diff previews
DIFF_CONTEXT_LINES = int(os.environ.get("SAHAYAK_DIFF_CONTEXT", "3"))

# search_files result cap
MAX_FILES_RETURNED = 50

VERBOSE = os.environ.get("SAHAYAK_VERBOSE", "").strip().lower() in ("1", "true", "yes", "y")
