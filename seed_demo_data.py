"""
Seed the database with generated demo cities, hourly readings and daily summaries.
Run: python seed_demo_data.py [city_count] [hours] [days]
Does nothing when cities already exist.
"""
import sys

from app import create_app, seed_demo_data


def main():
    args = [int(value) for value in sys.argv[1:4]]
    target_cities, hours, days = (args + [None, None, None])[:3]

    app = create_app()
    with app.app_context():
        seeded = seed_demo_data(target_cities=target_cities, hours=hours, days=days)

    if seeded:
        print(f"[SUCCESS] Seeded {seeded} cities.")
    else:
        print("Cities already exist, nothing seeded.")


if __name__ == '__main__':
    main()
