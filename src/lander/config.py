# lander: Centralize environment-driven defaults. These are read once at import and only seed LanderConfig;
# components never read them directly (see settings.load_config).

import os

# Root directory holding one sub-directory per project
PROJECTS_DIR = os.environ.get("LANDER_PROJECTS_DIR", "projects")

# Wall-clock budget shared by the initial and follow-up model calls of one turn (seconds)
GENERATION_TIMEOUT = float(os.environ.get("LANDER_GENERATION_TIMEOUT", "60"))

# Budget for the netlify CLI subprocess (seconds)
DEPLOY_TIMEOUT = float(os.environ.get("LANDER_DEPLOY_TIMEOUT", "60"))

# Output token budgets
MAX_TOKENS = int(os.environ.get("LANDER_MAX_TOKENS", "4096"))
FOLLOW_UP_MAX_TOKENS = int(os.environ.get("LANDER_FOLLOW_UP_MAX_TOKENS", "1024"))

# Model used when the caller asks for nothing or for an unknown name
DEFAULT_MODEL = os.environ.get("LANDER_DEFAULT_MODEL", "claude-3-haiku-20240307")

NETLIFY_BIN = os.environ.get("NETLIFY_BIN", "netlify")

# HTTP bind defaults for the console entry point
HOST = os.environ.get("HOST", "127.0.0.1")
PORT = int(os.environ.get("PORT", "3000"))
