"""Global pytest configuration."""

import os

# Point settings at a harmless host before any imports read them
os.environ.setdefault("API_BASE_URL", "http://testserver")
os.environ.setdefault("CREDENTIAL_STORE_PATH", "/tmp/docdash-test/session.json")
