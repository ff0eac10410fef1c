import os

# Load .env.test when present so developers can point tests at an emulator
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

# Deterministic defaults; tests never reach a real project
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("STORE_CLIENT", "rest")
os.environ.setdefault("FIRESTORE_PROJECT_ID", "hangar-test")
os.environ.setdefault("SUDO_ADMIN_EMAILS", '["root@orlandohangar.org"]')

from libs.common.config import get_settings  # noqa: E402

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
