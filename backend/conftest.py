"""
Pytest configuration file for backend testing.
"""
import os
import sys
from pathlib import Path

# Add the parent directory to handle 'backend.' imports
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

# Settings are cached on first import, so the test environment goes first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TOAST_MENU_SYNC_ENABLED", "false")
os.environ.setdefault("TOAST_ENVIRONMENT", "sandbox")

# Import all models to register them with SQLAlchemy
from backend.core.menu_models import MenuItem  # noqa: E402,F401
from backend.modules.orders.models.order_models import Order  # noqa: E402,F401
from backend.modules.pos.models.pos_integration import POSIntegration  # noqa: E402,F401
