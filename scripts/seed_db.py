"""
Seed script for AidAtlas demo data.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to the configured Firestore: python scripts/seed_db.py --apply
  - Use a different owner id: python scripts/seed_db.py --apply --user-id demo-victim

Behavior:
  - Builds a handful of pending help requests spread across categories and urgencies.
  - Gets the Firestore client via `aidatlas.config.firebase.get_db()`.
  - Writes each request through the repository so records match what the API creates.

NOTE: Ensure `FIREBASE_CREDENTIALS_PATH` (or Application Default Credentials) and
`FIREBASE_PROJECT_ID` are set in `.env` before running with --apply.
"""

import argparse
from typing import List

from aidatlas.config.firebase import get_db
from aidatlas.core.errors import AidAtlasError
from aidatlas.models.help_request import HelpRequestCreate
from aidatlas.models.profile import AuthSession
from aidatlas.services.request_repository import insert_help_request

DEMO_REQUESTS: List[dict] = [
    {
        "title": "Urgent: Need insulin",
        "description": "Family of four, one diabetic. Pharmacy flooded and closed.",
        "category": "medical",
        "urgency": "critical",
        "location_lat": 29.9511,
        "location_lng": -90.0715,
        "location_address": "Canal St & Decatur St, New Orleans",
    },
    {
        "title": "Drinking water for shelter",
        "description": "About 40 people at the school gym, tap water unsafe.",
        "category": "water",
        "urgency": "high",
        "location_lat": 29.9620,
        "location_lng": -90.0580,
        "location_address": "Frederick Douglass High School gym",
    },
    {
        "title": "Roof tarp and blankets",
        "description": "Roof partly torn off, two elderly residents staying put.",
        "category": "shelter",
        "urgency": "medium",
        "location_lat": 29.9300,
        "location_lng": -90.1000,
        "location_address": "Magazine St, Uptown",
    },
    {
        "title": "Ride to evacuation center",
        "description": "No car, need a lift for me and my dog tomorrow morning.",
        "category": "transport",
        "urgency": "low",
        "location_lat": 29.9800,
        "location_lng": -90.0900,
        "location_address": "Esplanade Ave, Mid-City",
    },
    {
        "title": "Baby formula and diapers",
        "description": "Ran out yesterday, stores nearby are empty.",
        "category": "supplies",
        "urgency": "high",
        "location_lat": 29.9450,
        "location_lng": -90.0750,
        "location_address": "Central Business District",
    },
]


def build_requests() -> List[HelpRequestCreate]:
    return [HelpRequestCreate(**data) for data in DEMO_REQUESTS]


def write_to_db(db, requests: List[HelpRequestCreate], user_id: str, apply: bool = False) -> int:
    session = AuthSession(user_id=user_id, name="Seed Script")
    written = 0
    for request in requests:
        print(f"Preparing: [{request.urgency.value}/{request.category.value}] {request.title}")
        if not apply:
            continue
        try:
            created = insert_help_request(db, session, request)
            written += 1
            print(f"Wrote: help_requests/{created.id}")
        except AidAtlasError as e:
            print(f"Failed to write '{request.title}': {e.message}")
    return written


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed data to Firestore instead of dry-run")
    parser.add_argument("--user-id", default="seed-user", help="Owner id stamped on the seeded requests")
    args = parser.parse_args()

    requests = build_requests()
    db = get_db() if args.apply else None

    written = write_to_db(db, requests, args.user_id, apply=args.apply)

    if args.apply:
        print(f"Seeding completed: {written}/{len(requests)} help requests written.")
    else:
        print("Dry run complete. Re-run with --apply to write to DB.")


if __name__ == "__main__":
    main()
