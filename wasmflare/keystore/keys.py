"""Credential store keys. The names are part of the persisted contract."""

ACCOUNT_ID = "CF_ACCOUNT_ID"
PAGES_TOKEN = "CF_PAGES_TOKEN"
PROJECT = "CF_PROJECT"

# Read by status checks only; nothing writes it until worker deploys exist.
WORKER_TOKEN = "CF_WORKER_TOKEN"

SETUP_KEYS = (ACCOUNT_ID, PAGES_TOKEN, PROJECT)
