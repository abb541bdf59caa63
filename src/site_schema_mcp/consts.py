"""Constant tables shared by the file classifier and the schema generator."""

MARKDOWN_FILE_EXTENSIONS = ("md", "mdx", "markdown")
DATA_FILE_EXTENSIONS = ("yml", "yaml", "json", "toml")

# Directories that never hold content, pruned while listing the repository
GLOBAL_EXCLUDES = (
    "**/node_modules",
    "**/.git",
    "**/.github",
    "**/.idea",
    "**/.vscode",
    "**/.cache",
    "**/__pycache__",
)

EXCLUDED_MARKDOWN_FILES = (
    "**/LICENSE*",
    "**/README*",
    "**/CONTRIBUTING*",
    "**/CHANGELOG*",
    "**/CODE_OF_CONDUCT*",
)

EXCLUDED_DATA_FILES = (
    "**/stackbit.yaml",
    "**/netlify.toml",
    "**/theme.toml",
    "**/package.json",
    "**/package-lock.json",
    "**/yarn-lock.json",
    "**/tsconfig.json",
    "**/jsconfig.json",
    "**/composer.json",
    "**/composer.lock",
)

# Generator config files that live in the repository root
ROOT_CONFIG_FILES = ("config.*", "_config.*")

# Minimal Dice coefficient for two shapes to be merged
PAGE_DSC_COEFFICIENT = 0.75
DATA_DSC_COEFFICIENT = 0.8
