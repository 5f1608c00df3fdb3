from datetime import datetime, timedelta, timezone
import random

from sqlalchemy.orm import sessionmaker

from qrhunt.analytics.tiers import TIERS, TOTAL_CODES
from qrhunt.db.engine import make_engine
from qrhunt.models import Base, Location, User


def _locations() -> list[Location]:
    locations = [
        Location(
            code="QR-BTH-01",
            location_number="00",
            location_name="Registration Booth",
            description="Starting point next to the entrance.",
        ),
        Location(
            code="QR-FLR-01",
            location_number="01",
            location_name="Floor 01 Lobby",
        ),
    ]
    for number in range(2, TOTAL_CODES):
        locations.append(
            Location(
                code=f"QR-LOC-{number:02d}",
                location_number=f"{number:02d}",
                location_name=f"Exhibit {number:02d}",
                active=number != TOTAL_CODES - 1,
            )
        )
    return locations


def _redemptions(scanned: int, rng: random.Random, now: datetime) -> dict:
    status = {}
    for tier in TIERS:
        if scanned >= tier.required_scans and rng.random() < 0.6:
            status[tier.id] = {"redeemed": True, "redeemedAt": now.isoformat()}
    return status


def main() -> None:
    """Reset the development database and fill it with a sample campaign."""
    engine = make_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)

    rng = random.Random(2026)
    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        locations = _locations()
        session.add_all(locations)
        session.flush()
        codes = [location.code for location in locations]

        names = ["Alice", "Bob", "Chiara", "Dmitri", "Emi", "Farah", "Goro", "Hana"]
        for index, first_name in enumerate(names):
            started = now - timedelta(hours=rng.randint(1, 48))
            scanned = rng.choice([0, 1, 3, 6, 12, 17, TOTAL_CODES])
            route = codes[:]
            rng.shuffle(route)
            scans = [
                {
                    "code": code,
                    "timestamp": (started + timedelta(minutes=4 * step)).isoformat(),
                }
                for step, code in enumerate(route[:scanned])
            ]
            # Older app versions stored bare code strings.
            if index % 3 == 0:
                scans = [scan["code"] for scan in scans]
            completed_at = (
                started + timedelta(minutes=rng.choice([1.5, 4, 45, 400]))
                if scanned >= TOTAL_CODES
                else None
            )
            session.add(
                User(
                    id=f"user_{index + 1:02d}",
                    scanned_codes=scans,
                    drawing_entries=scanned,
                    bonus_entries=rng.randint(0, 2) if scanned else 0,
                    redemption_status=_redemptions(scanned, rng, now),
                    first_name=first_name,
                    last_name="Tester" if index % 2 == 0 else None,
                    email=f"{first_name.lower()}@example.com" if index != 3 else None,
                    phone=f"+81-90-0000-00{index:02d}" if index % 2 == 0 else None,
                    created_at=started,
                    updated_at=now,
                    completion_time=completed_at,
                )
            )

    engine.dispose()
    print("Development database seeded.")


if __name__ == "__main__":
    main()
