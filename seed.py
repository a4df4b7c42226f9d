"""Load a demo mess into the database configured by DATABASE_URL."""

import datetime as dt
import logging
import sys
from typing import Optional

from database import db, create_document, timeline_to_documents
from menu_timeline import upsert_day

logger = logging.getLogger(__name__)

DEMO_PLANS = [
    {"name": "Basic", "description": "Lunch only", "price": 2000, "duration": 30},
    {"name": "Standard", "description": "Lunch and Dinner", "price": 3500, "duration": 30},
    {"name": "Premium", "description": "Breakfast, Lunch and Dinner", "price": 4500, "duration": 30},
]

DEMO_DISHES = ["Rice", "Dal", "Mixed Vegetables", "Chapati", "Curd"]


def seed(today: Optional[dt.date] = None) -> str:
    if db is None:
        raise RuntimeError("Database not available, set DATABASE_URL")

    logger.info("Cleaning existing messes...")
    db["mess"].delete_many({})

    menu = upsert_day((), today or dt.date.today(), [{"name": name, "type": "veg"} for name in DEMO_DISHES])
    mess_id = create_document("mess", {
        "name": "Annapurna Mess",
        "type": "veg",
        "cuisine": ["North Indian", "South Indian"],
        "location": "North Campus",
        "address": "123, College Road, North Campus",
        "contactNumber": "+91 9876543210",
        "plans": DEMO_PLANS,
        "menu": timeline_to_documents(menu),
    })
    logger.info("Created mess %s", mess_id)
    return mess_id


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    try:
        seed()
    except Exception:
        logger.exception("Error seeding database")
        sys.exit(1)
