#!/usr/bin/env python3
"""Start the fight simulation server with a fresh seeded database."""

import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).parent
sys.path.insert(0, str(ROOT))

DB_FILE = ROOT / "fights.db"
DB_URL = f"sqlite:///{DB_FILE}"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("run")

# Remove old DB for a fresh start
if DB_FILE.exists():
    os.remove(DB_FILE)

from api.app import create_app
import api.services as svc
from simulation.seed import seed_competitors

# Create app (this calls init_db, creating tables + session factory)
app = create_app(DB_URL)

# Seed using the app's session factory
with svc._SessionFactory() as session:
    competitors = seed_competitors(session, count=24, seed=42)
    session.commit()
    logger.info("Seeded %d competitors", len(competitors))

logger.info("Starting server at http://127.0.0.1:5000")
app.run(host="127.0.0.1", port=5000, debug=False)
