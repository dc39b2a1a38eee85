#!/usr/bin/env python3
"""
Initialize the database and load demo data
"""

import sys
import os

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from waleki.database.connection import init_database, SessionLocal
from waleki.database.seed import seed_demo_data

def create_sample_data():
    """Create tables and seed demo users, devices and readings"""

    init_database()

    session = SessionLocal()
    try:
        created = seed_demo_data(session)
        print(f"Users created: {created['users']}")
        print(f"Devices created: {created['devices']}")
        print(f"Readings created: {created['readings']}")
        print("\nDatabase initialization complete!")
    except Exception as e:
        print(f"Error initializing database: {e}")
        session.rollback()
        raise
    finally:
        session.close()

if __name__ == "__main__":
    create_sample_data()
