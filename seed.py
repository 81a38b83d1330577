"""
Idempotent seed script.
Usage:
  python seed.py --reset          # drop and recreate the DB, then seed catalog + demo buildings
  python seed.py --catalog-only   # only the classification catalog
  python seed.py                  # fill in whatever is missing
"""
import argparse

from app import create_app
from extensions import db
from models import Building, Classification
from blueprints.aggregates.services import store

CATALOG = [
    # (congregation_id, language, pin_color, pin_image)
    (1, "english", 1, None),
    (1, "tamil", 2, None),
    (1, "hindi", 3, None),
    (1, "telugu", 4, None),
    (1, "malayalam", 5, None),
]

DEMO_BUILDINGS = [
    dict(lat=11.0168, long=76.9558, address="Race Course Rd, Coimbatore",
         congregation_id=1, language="Tamil", number_of_doors=2, door_labels=["1/F", "2/F"]),
    dict(lat=13.0827, long=80.2707, address="Mount Rd, Chennai",
         congregation_id=2, language="English", number_of_doors=3, door_labels=["A1", "A2", "A3"]),
]

def get_or_create(model, defaults=None, **by):
    inst = db.session.query(model).filter_by(**by).first()
    if inst:
        return inst, False
    data = dict(by)
    if defaults:
        data.update(defaults)
    inst = model(**data)
    db.session.add(inst)
    return inst, True

def seed_catalog() -> int:
    created = 0
    for cong, lang, color, image in CATALOG:
        _, was_created = get_or_create(
            Classification,
            congregation_id=cong,
            language_name=lang,
            defaults=dict(pin_color=color, pin_image=image),
        )
        created += int(was_created)
    db.session.commit()
    return created

def seed_buildings() -> int:
    created = 0
    for row in DEMO_BUILDINGS:
        exists = Building.query.filter_by(lat=row["lat"], long=row["long"]).first()
        if exists:
            continue
        store.create_aggregate(**row)
        created += 1
    return created

def main():
    parser = argparse.ArgumentParser(description="Seed the doorlog database")
    parser.add_argument("--reset", action="store_true", help="drop and recreate all tables first")
    parser.add_argument("--catalog-only", action="store_true", help="skip demo buildings")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        n_catalog = seed_catalog()
        n_buildings = 0 if args.catalog_only else seed_buildings()
        print(f"catalog entries added: {n_catalog}, buildings added: {n_buildings}")

if __name__ == "__main__":
    main()
