import logging
import sqlite3
from tempfile import TemporaryDirectory

from demarcate import Demarcate, transactional


def create_schema(db_path):
    conn = sqlite3.connect(db_path)
    conn.execute(
        "CREATE TABLE cities (id INTEGER PRIMARY KEY, name TEXT NOT NULL)"
    )
    conn.commit()
    conn.close()


@transactional
def add_city(name: str) -> None:
    Demarcate.transaction().update(
        "INSERT INTO cities (name) VALUES (?)", (name,)
    )


@transactional
def add_cities_or_none(*names: str) -> None:
    for name in names:
        add_city_in_current(name)
    raise RuntimeError("changed my mind")


def add_city_in_current(name: str) -> None:
    Demarcate.transaction().update(
        "INSERT INTO cities (name) VALUES (?)", (name,)
    )


def run():
    logging.basicConfig(level=logging.DEBUG)
    with TemporaryDirectory() as tmp:
        db_path = f"{tmp}/world.db"
        create_schema(db_path)
        Demarcate(db_path=db_path)

        add_city("Kabul")
        try:
            add_cities_or_none("Qandahar", "Herat")
        except RuntimeError:
            ...

        with Demarcate.manager().context() as tx:
            print(tx.query("SELECT name FROM cities"))


run()
