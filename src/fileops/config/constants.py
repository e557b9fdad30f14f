"""Configuration constants for fileops.

This module provides a single source of truth for all default configuration values.
Separated from schema.py to avoid circular imports.
"""

from pathlib import Path

# Default paths
DEFAULT_DATA_DIR = Path.home() / ".fileops"
DEFAULT_CONFIG_PATH = DEFAULT_DATA_DIR / "settings.json"
BACKUP_FILENAME = "backup.json"

# Default parser settings
DEFAULT_EXTENSIONS = (
    "py", "pyi", "js", "jsx", "mjs", "cjs", "ts", "tsx", "html", "htm", "css", "scss",
    "sass", "less", "json", "jsonc", "md", "markdown", "txt", "rst", "yml", "yaml", "toml",
    "ini", "cfg", "conf", "env", "xml", "svg", "csv", "tsv", "sql", "sh", "bash", "zsh",
    "ps1", "bat", "c", "h", "cc", "cpp", "hpp", "cs", "java", "kt", "kts", "go", "rs",
    "rb", "php", "swift", "m", "scala", "lua", "pl", "r", "dart", "vue", "svelte",
    "graphql", "gql", "proto", "lock", "gradle", "dockerfile", "tf", "hcl",
)
DEFAULT_BLOCK_WINDOW = 200
DEFAULT_LOOSE_FALLBACK_WINDOW = 300

# Default execution settings
DEFAULT_MAX_CONTENT_BYTES = 5 * 1024 * 1024

# Default session settings
DEFAULT_SESSION_MAX_AGE_DAYS = 7

# Default context selection limits
DEFAULT_MAX_CONTEXT_TOKENS = 256_000
DEFAULT_MAX_FILES = 200
DEFAULT_MAX_TOKENS_PER_FILE = 64_000
