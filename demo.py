import argparse
import io
import logging
import os
import random
import sqlite3
import sys
import tempfile
import time
from typing import List

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from lazy_iterator import (
    END_OF_DATA,
    ErrorPolicy,
    LazyIterator,
    Transform,
    from_csv,
    from_iterable,
    from_query,
    merge,
    new_iterator,
)

logger = logging.getLogger("demo")

DEFAULT_SIZE = int(os.getenv("DEMO_SIZE", "20"))

USERS_CSV = """first_name,last_name,username
"Rob","Pike",rob
Ken,Thompson,ken
"Robert","Griesemer","gri"
Dennis,Ritchie
"""

ADDRESSES = [
    ("rue Victor Hugo", 32),
    ("boulevard de la République", 23),
    ("rue Charles Martel", 5),
    ("chemin du bout du monde", 323),
    ("boulevard de la liberté", 2),
    ("avenue des champs", 12),
]
USER_ADDRESSES = [(2, 1), (4, 1), (2, 2), (2, 3), (4, 4), (4, 5)]


def section(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def sorted_readings(sensor: str, count: int) -> LazyIterator:
    """A feed of `count` readings sorted by timestamp, computed on demand."""
    state = {"ts": 0, "served": 0}

    def compute_next():
        if state["served"] >= count:
            return END_OF_DATA
        state["ts"] += random.randint(1, 5)
        state["served"] += 1
        return state["ts"], sensor, round(random.uniform(15.0, 30.0), 1)

    def release():
        logger.info("sensor.release sensor=%s served=%d", sensor, state["served"])

    return new_iterator(compute_next, release)


def demo_merge(size: int) -> None:
    """K-way merge of sorted feeds, with a limit that abandons the merge early."""
    section("K-WAY MERGE")
    feeds = [sorted_readings(name, size) for name in ("north", "south", "east")]

    stream = merge(*feeds, compare=lambda a, b: a[0] - b[0]).limit(size)
    with stream:
        for ts, sensor, reading in stream:
            print(f"  t={ts:4d} {sensor:<6} {reading:5.1f}")


def demo_dedup() -> None:
    section("DEDUP")
    items = [1, 2, 2, 3, 4, 4, 5, 5, 5, 6, 7, 8, 8, 9, 10, 10, 10]
    print(f"  input:  {items}")
    print(f"  output: {list(from_iterable(items).dedup())}")


def demo_csv() -> None:
    """Skip the header, turn records into strings, report bad rows and keep going."""
    section("CSV: SKIP + TRANSFORM")

    def describe(record: List[str]) -> str:
        if len(record) < 3:
            raise ValueError(f"incomplete record: {record}")
        return f"{record[0]} {record[1]} ({record[2]})"

    records = from_csv(io.StringIO(USERS_CSV), check_field_count=False).skip(1)
    users = Transform(records, describe, on_error=ErrorPolicy.PER_ITEM)
    with users:
        while users.has_next():
            try:
                print(f"  {users.next()}")
            except ValueError as exc:
                logger.warning("csv.bad_record error=%s", exc)


def demo_database() -> None:
    """Rows of a query are fetched one at a time; closing releases the cursor."""
    section("DATABASE CURSOR")
    with tempfile.TemporaryDirectory() as tmp:
        conn = sqlite3.connect(os.path.join(tmp, "demo.db"))
        try:
            conn.execute("CREATE TABLE address (id INTEGER PRIMARY KEY, street TEXT, street_number INT)")
            conn.execute("CREATE TABLE user_addresses (address_id INT, user_id INT)")
            conn.executemany("INSERT INTO address (street, street_number) VALUES (?, ?)", ADDRESSES)
            conn.executemany("INSERT INTO user_addresses VALUES (?, ?)", USER_ADDRESSES)
            conn.commit()

            addresses = from_query(
                conn,
                "SELECT address.street_number, address.street FROM address "
                "JOIN user_addresses ON address.id = user_addresses.address_id "
                "WHERE user_addresses.user_id = ? ORDER BY address.street_number",
                (1,),
            )
            with addresses:
                for number, street in addresses:
                    print(f"  {number} {street}")
        finally:
            conn.close()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Walkthrough of lazy iterator pipelines")
    parser.add_argument(
        "--demo",
        choices=["all", "merge", "dedup", "csv", "db"],
        default="all",
        help="Which demo to run (default: %(default)s)",
    )
    parser.add_argument("--size", type=int, default=DEFAULT_SIZE,
                        help="Number of merged readings to print (default: %(default)s)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the sensor feeds")
    parser.add_argument(
        "--log-level", default=os.getenv("LOG_LEVEL", "INFO"), help="Logging level (default: %(default)s)"
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    if args.seed is not None:
        random.seed(args.seed)

    start = time.perf_counter()
    if args.demo in ("all", "merge"):
        demo_merge(args.size)
    if args.demo in ("all", "dedup"):
        demo_dedup()
    if args.demo in ("all", "csv"):
        demo_csv()
    if args.demo in ("all", "db"):
        demo_database()
    logger.info("demo.done ms=%.3f", (time.perf_counter() - start) * 1000.0)


if __name__ == "__main__":
    main()
