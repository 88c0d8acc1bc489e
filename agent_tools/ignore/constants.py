"""
Central configuration for ignore rule processing
"""

# Per-directory rule file, discovered by walking up from a queried path
IGNORE_FILENAME = ".agentignore"

# Global rule file lives at <platform config dir>/GLOBAL_IGNORE_DIR/GLOBAL_IGNORE_NAME
GLOBAL_IGNORE_DIR = "agent"
GLOBAL_IGNORE_NAME = "ignore"

# Environment override for the global rule file location
GLOBAL_IGNORE_ENV = "AGENT_IGNORE_GLOBAL_FILE"

# Tokens understood by fd and rg
NO_IGNORE_FLAG = "--no-ignore"
IGNORE_FILE_FLAG = "--ignore-file"

# Pathspec pattern flavour used for every rule file
PATTERN_STYLE = "gitwildmatch"

# Limits for security and performance
MAX_IGNORE_FILE_SIZE = 1024 * 1024  # 1MB
MAX_PATTERNS_PER_FILE = 10000

# Patterns offered by `agent-ignore init`. The engine itself has no
# built-in exclusions: a path is only ignored when a rule file says so.
SENSITIVE_PATTERNS = {
    "Environment files": [
        ".env",
        ".env.*",
        "!.env.example",
        "!.env.template",
    ],
    "Keys and certificates": [
        "*.pem",
        "*.key",
        "*.p12",
        "*.pfx",
        "id_rsa*",
        "id_ed25519*",
        "id_ecdsa*",
    ],
    "Credential stores": [
        ".netrc",
        ".pgpass",
        ".npmrc",
        ".pypirc",
        "credentials.json",
        ".aws/",
        ".ssh/",
        ".gnupg/",
    ],
    "Secret material": [
        "*.secret",
        "secrets/",
        "*.kdbx",
    ],
}

MINIMAL_PATTERNS = [
    ".env",
    ".env.*",
    "!.env.example",
    "*.pem",
    "*.key",
    ".ssh/",
    "secrets/",
]
