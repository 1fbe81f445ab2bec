"""Shared constants for the workboard API."""

# Member roles
ROLE_ADMIN = "ADMIN"
ROLE_MEMBER = "MEMBER"

INVITE_CODE_LENGTH = 6
INVITE_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

MAX_WORKSPACE_IMAGE_SIZE = 1024 * 1024  # 1MB

# Seeded into every new workspace
DEFAULT_TASK_STATUSES = [
    {"name": "Backlog", "position": 0},
    {"name": "Todo", "position": 1},
    {"name": "In Progress", "position": 2},
    {"name": "In Review", "position": 3},
    {"name": "Done", "position": 4},
]

# Status names containing this marker count as completed in analytics
DONE_STATUS_MARKER = "done"

EVENTS_STREAM = "workboard:events:global"
