"""
Root conftest: adds server/ and admin/ to sys.path
so that imports like `from bgo.config import settings` and `from utils.charts import ...` work.
"""
import sys
import os

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SERVER_DIR = os.path.join(ROOT, "server")
ADMIN_DIR = os.path.join(ROOT, "admin")

for p in (SERVER_DIR, ADMIN_DIR):
    if p not in sys.path:
        sys.path.insert(0, p)
