import sys, argparse
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import Session


SCRIPTS_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPTS_DIR.parents[1]
APP_DIR = ROOT_DIR / "streamlit_app"

if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from config import SQLALCHEMY_URL  # noqa: E402
from db.seed import create_schema, seed_reference_data  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Create the plantation tracking tables and seed reference data.")
    parser.add_argument("--url", default=SQLALCHEMY_URL, help="Database URL (defaults to DATABASE_URL / .env settings)")
    parser.add_argument("--no-seed", action="store_true", help="Only create tables")
    args = parser.parse_args()

    engine = create_engine(args.url, future=True)
    create_schema(engine)
    print("Tables created.")

    if args.no_seed:
        return

    with Session(engine) as db:
        counts = seed_reference_data(db)
    for table, changed in counts.items():
        print(f"Seeded {table}: {changed} change(s)")


if __name__ == "__main__":
    main()
