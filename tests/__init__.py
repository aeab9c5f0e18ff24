"""Test package. Seeds the settings the app refuses to start without."""

import os

os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret-0123456789abcdef")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret-0123456789abcdef")
# Cheapest cost the settings accept; keeps bcrypt from dominating test time.
os.environ.setdefault("BCRYPT_ROUNDS", "10")
