# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Account credentials live in the accounts file (see accounts.example.json), never in env or git.
Do NOT commit real secrets. Use:
- .env (local, gitignored)
- accounts.json (local, gitignored)

This file exists to make the repo self-documenting.
"""

ENV_VARS = {
    # App / logging
    "MSTODO_APP_NAME": "App display name (default: mstodo-fetcher).",
    "MSTODO_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    "MSTODO_DATA_DIR": "Local data directory for mstodo.log (default: .local/mstodo).",
    # Accounts
    "MSTODO_ACCOUNTS_FILE": "JSON file with the account list (default: accounts.json).",
    "MSTODO_DEFAULT_REFRESH_SECONDS": "Poll interval for accounts without refreshSeconds (default: 60).",
    # Graph / HTTP
    "MSTODO_GRAPH_BASE_URL": "Graph API base URL (default: https://graph.microsoft.com/v1.0).",
    "MSTODO_AUTHORITY_BASE_URL": "OAuth authority (default: https://login.microsoftonline.com).",
    "MSTODO_HTTP_TIMEOUT_SECONDS": "Per-request HTTP timeout (default: 30).",
}

ACCOUNT_KEYS = {
    "id": "Unique account key; events are published as DATA_FETCHED_<id> / FETCH_INFO_ERROR_<id>.",
    "tenantId": "Azure AD tenant (may also sit under oauthConfig).",
    "clientId": "App registration id (may also sit under oauthConfig).",
    "clientSecret": "App registration secret (may also sit under oauthConfig).",
    "scope": "Graph permission scope (default: .default).",
    "user": "Owner of the task list (user id or UPN).",
    "listName": "Display name of the list; omit to use the first list Graph returns.",
    "itemLimit": "Max tasks per fetch (default: 200).",
    "orderBy": "subject | createdDate | importance | dueDate (default: createdDate).",
    "plannedTasks": '{"enable": true, "duration": {"weeks": 2}} limits to tasks due inside the window.',
    "refreshSeconds": "Poll interval in seconds.",
}
