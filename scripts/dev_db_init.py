# scripts/dev_db_init.py
import sys
from datetime import date
from pathlib import Path

# --- ensure project root on sys.path ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app import create_app
from extensions import db
from seed import get_or_create, provision_slots
from models import Hostel

def seed_minimal(machines: int, days: int):
    h, _ = get_or_create(Hostel, code="H1", defaults={"name": "North Block"})
    n = provision_slots(h, date.today(), days, machines)
    db.session.commit()
    return n

if __name__ == "__main__":
    app = create_app("dev")
    with app.app_context():
        db.create_all()
        n = seed_minimal(app.config["LAUNDRY_MACHINES"], app.config["LAUNDRY_PROVISION_DAYS"])
        print(f"DB initialized, {n} laundry slots provisioned ✅")
