import os
from pathlib import Path

from dotenv import load_dotenv

# Route the module-level engine to in-memory SQLite before eventbook imports
os.environ.setdefault("PYTEST_RUN", "1")

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')
