"""Creates the data directory and an empty products collection file."""
import os
import sys

# allow running as `python scripts/init_db.py` from the project root
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import settings  # noqa: E402
from app.database import db  # noqa: E402


db.connect()
products_path = db.data_dir / settings.PRODUCTS_FILE

if not products_path.exists():
    products_path.touch()
    print(f'Created {products_path}')
else:
    print(f'{products_path} already exists')
