# Root conftest.py - loads .env before test collection so QBC_* settings
# (QBC_DEFAULT_LATTICE, QBC_LATTICE_FILE, ...) are visible to
# qbc.lattice.default_registry() when test modules are imported.
from dotenv import load_dotenv
load_dotenv()

# Note: fixtures from tests/conftest.py are discovered automatically.
