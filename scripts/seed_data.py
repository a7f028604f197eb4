from __future__ import annotations

import argparse

from packages.shared.logging_config import setup_logging
from services.api.app.db.database import db_session
from services.api.app.db.init_db import init_db
from services.api.app.db.models import MenuItem, Restaurant
from services.storefront.app.catalog import RESTAURANTS_GDL


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the VelociGo catalog (Guadalajara)")
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Overwrite existing restaurants and menu items with the bundled data",
    )
    args = parser.parse_args()

    setup_logging()
    init_db()

    db = db_session()
    created = updated = 0
    try:
        for r in RESTAURANTS_GDL:
            row = db.get(Restaurant, r.id)
            if row is not None and not args.refresh:
                continue

            fields = r.model_dump(exclude={"menu"})
            if row is None:
                db.add(Restaurant(**fields))
                created += 1
            else:
                for key, value in fields.items():
                    setattr(row, key, value)
                updated += 1

            for item in r.menu:
                existing = db.get(MenuItem, item.id)
                if existing is None:
                    db.add(
                        MenuItem(
                            id=item.id,
                            restaurant_id=r.id,
                            name=item.name,
                            price=item.price,
                            tags=list(item.tags),
                        )
                    )
                else:
                    existing.restaurant_id = r.id
                    existing.name = item.name
                    existing.price = item.price
                    existing.tags = list(item.tags)

        db.commit()
    finally:
        db.close()

    print(f"Seeded restaurants: {created} created, {updated} updated")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
