import os
import tempfile
from pathlib import Path

TEST_DB = Path(tempfile.gettempdir()) / "match_builder_test_app.sqlite3"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB}"
