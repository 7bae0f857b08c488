from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, cast

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)


def create_boto3_config(
    *,
    connect_timeout: float = 2.0,
    read_timeout: float = 10.0,
    max_attempts: int = 3,
) -> Config:
    """Client config for registry-built clients: short timeouts, adaptive retries."""
    return Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": max_attempts, "mode": "adaptive"},
    )


@dataclass(frozen=True)
class Credentials:
    access_key: str | None = None
    secret_key: str | None = None
    session_token: str | None = None
    region: str | None = None
    endpoint_url: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> Credentials:
        return cls(
            access_key=environ.get("AWS_ACCESS_KEY_ID") or None,
            secret_key=environ.get("AWS_SECRET_ACCESS_KEY") or None,
            session_token=environ.get("AWS_SESSION_TOKEN") or None,
            region=environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION") or None,
            endpoint_url=environ.get("DYNAMODB_ENDPOINT") or None,
        )

    def __repr__(self) -> str:
        masked = "***" if self.secret_key else None
        return (
            f"Credentials(access_key={self.access_key!r}, secret_key={masked!r}, "
            f"region={self.region!r}, endpoint_url={self.endpoint_url!r})"
        )


_DEFAULT_CREDENTIALS = Credentials()


class ClientRegistry:
    """Owns one DynamoDB client per distinct credential set.

    Clients are built lazily on first use and shared by every caller that asks
    with equal credentials. ``close()`` releases them; the registry can be
    used again afterwards and will build fresh clients.
    """

    def __init__(
        self,
        *,
        config: Config | None = None,
        session_factory: Callable[..., Any] | None = None,
    ) -> None:
        self._config = config
        self._session_factory = session_factory or boto3.session.Session
        self._clients: dict[Credentials, Any] = {}
        self._lock = threading.Lock()

    def client(self, credentials: Credentials | None = None) -> Any:
        creds = credentials or _DEFAULT_CREDENTIALS
        with self._lock:
            existing = self._clients.get(creds)
            if existing is not None:
                return existing

            session = self._session_factory(
                aws_access_key_id=creds.access_key,
                aws_secret_access_key=creds.secret_key,
                aws_session_token=creds.session_token,
                region_name=creds.region,
            )
            client = cast(Any, session).client(
                "dynamodb",
                region_name=creds.region,
                endpoint_url=creds.endpoint_url,
                config=self._config,
            )
            self._clients[creds] = client
            logger.info("created dynamodb client for %r", creds)
            return client

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def close(self) -> None:
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()

        for client in clients:
            close = getattr(client, "close", None)
            if callable(close):
                close()
        logger.info("closed %d dynamodb client(s)", len(clients))

    def __enter__(self) -> ClientRegistry:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
