"""config.database

Resolves the SQLAlchemy database URL from the environment. `.env` is loaded
by `app.py` before this module is imported.

- DATABASE_URL: any SQLAlchemy URL. Postgres URLs get the psycopg (v3)
  driver, including the `postgres://` alias some hosts hand out.
- DB_ENGINE=sqlite: local file at SQLITE_PATH (default marketplace.db).
- Otherwise MySQL through PyMySQL, built from the DB_* variables.
"""
import os

from sqlalchemy.engine import URL, make_url


def _from_database_url(raw: str) -> str:
    url = make_url(raw.strip().replace('postgres://', 'postgresql://', 1))
    if url.get_backend_name() == 'postgresql' and url.get_driver_name() != 'psycopg':
        url = url.set(drivername='postgresql+psycopg')
    return url.render_as_string(hide_password=False)


def _mysql_url() -> str:
    # URL.create quotes credentials, so passwords may contain '@' or '/'.
    url = URL.create(
        'mysql+pymysql',
        username=os.getenv('DB_USER', 'root'),
        password=os.getenv('DB_PASSWORD') or None,
        host=os.getenv('DB_HOST', 'localhost'),
        port=int(os.getenv('DB_PORT', 3306)),
        database=os.getenv('DB_NAME', 'marketplace_refunds'),
        query={'charset': 'utf8mb4'},
    )
    return url.render_as_string(hide_password=False)


def get_sqlalchemy_database_uri() -> str:
    database_url = os.getenv('DATABASE_URL')
    if database_url:
        return _from_database_url(database_url)

    if (os.getenv('DB_ENGINE') or '').strip().lower() == 'sqlite':
        return f"sqlite:///{os.getenv('SQLITE_PATH', 'marketplace.db')}"

    return _mysql_url()


SQLALCHEMY_DATABASE_URI = get_sqlalchemy_database_uri()
SQLALCHEMY_TRACK_MODIFICATIONS = False
