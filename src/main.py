from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import Generator, Optional

import typer
import uvicorn

from src.api import create_app
from src.config import Settings, get_settings
from src.infrastructure.cache_factory import create_redis_client
from src.infrastructure.db_factory import create_pool
from src.service import UserService
from src.stores.postgres import PostgresUserStore
from src.stores.redis_cache import RedisUserCache
from src.utils.logging import configure_logging, get_logger

app = typer.Typer(help="User cache service CLI.")
log = get_logger(__name__)


@contextmanager
def open_service(settings: Settings) -> Generator[UserService, None, None]:
    """
    Build the service with explicitly constructed adapters and release their
    connections on exit.
    """
    pool = create_pool(settings)
    try:
        client = create_redis_client(settings)
        try:
            store = PostgresUserStore(pool, statement_timeout_ms=settings.db_statement_timeout_ms)
            store.ensure_schema()
            cache = RedisUserCache(client, key_prefix=settings.cache_key_prefix)
            yield UserService(
                store=store,
                cache=cache,
                cache_on_create=settings.cache_on_create,
                strict_cache_populate=settings.strict_cache_populate,
            )
        finally:
            client.close()
    finally:
        pool.close()


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"Redis={settings.redis_host}:{settings.redis_port}/{settings.redis_db} "
        f"prefix='{settings.cache_key_prefix}' | "
        f"cache_on_create={settings.cache_on_create} "
        f"strict_cache_populate={settings.strict_cache_populate} | "
        f"HTTP={settings.http_host}:{settings.http_port}"
    )


@app.command("init-db")
def init_db() -> None:
    """
    Create the users table if it does not exist.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    pool = create_pool(settings)
    try:
        PostgresUserStore(pool, statement_timeout_ms=settings.db_statement_timeout_ms).ensure_schema()
    finally:
        pool.close()
    typer.echo("Schema ready.")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from settings)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default from settings)."),
) -> None:
    """
    Connect to Postgres and Redis and serve the HTTP API.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    bind_host = host or settings.http_host
    bind_port = port or settings.http_port

    with open_service(settings) as service:
        log.info("Server is starting", extra={"host": bind_host, "port": bind_port})
        uvicorn.run(
            create_app(service),
            host=bind_host,
            port=bind_port,
            log_config=None,
        )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
