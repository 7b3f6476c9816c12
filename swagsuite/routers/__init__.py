"""HTTP routers — one APIRouter per domain area, mounted in main.py."""
