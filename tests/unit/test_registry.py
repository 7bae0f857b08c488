from __future__ import annotations

import threading

from tablewire import ClientRegistry, Credentials, KeySchema, Table, create_boto3_config
from tablewire.testkit import FakeDynamoDBClient


class FakeSession:
    created: list[dict[str, object]] = []

    def __init__(self, **kwargs: object) -> None:
        self.kwargs = kwargs

    def client(self, service_name: str, **kwargs: object) -> FakeDynamoDBClient:
        assert service_name == "dynamodb"
        FakeSession.created.append({**self.kwargs, **kwargs})
        return FakeDynamoDBClient()


def _registry(**kwargs: object) -> ClientRegistry:
    FakeSession.created = []
    return ClientRegistry(session_factory=FakeSession, **kwargs)  # type: ignore[arg-type]


def test_clients_are_memoized_per_credentials() -> None:
    registry = _registry()
    a = Credentials(access_key="A", secret_key="s", region="us-east-1")
    b = Credentials(access_key="B", secret_key="s", region="us-east-1")

    first = registry.client(a)
    assert registry.client(Credentials(access_key="A", secret_key="s", region="us-east-1")) is first
    assert registry.client(b) is not first
    assert len(registry) == 2
    assert len(FakeSession.created) == 2


def test_create_boto3_config() -> None:
    cfg = create_boto3_config(connect_timeout=1.0, read_timeout=4.0, max_attempts=5)
    assert cfg.connect_timeout == 1.0
    assert cfg.read_timeout == 4.0
    assert cfg.retries == {"max_attempts": 5, "mode": "adaptive"}


def test_client_receives_credentials_and_config() -> None:
    config = create_boto3_config()
    registry = _registry(config=config)
    registry.client(
        Credentials(
            access_key="A",
            secret_key="s",
            session_token="t",
            region="eu-west-1",
            endpoint_url="http://localhost:8000",
        )
    )

    assert FakeSession.created == [
        {
            "aws_access_key_id": "A",
            "aws_secret_access_key": "s",
            "aws_session_token": "t",
            "region_name": "eu-west-1",
            "endpoint_url": "http://localhost:8000",
            "config": config,
        }
    ]


def test_default_credentials_share_one_client() -> None:
    registry = _registry()
    assert registry.client() is registry.client(None)
    assert len(registry) == 1


def test_close_releases_clients() -> None:
    registry = _registry()
    client = registry.client()
    registry.close()

    assert client.closed is True
    assert len(registry) == 0
    assert registry.client() is not client


def test_context_manager_closes() -> None:
    with _registry() as registry:
        client = registry.client()
    assert client.closed is True


def test_concurrent_callers_get_one_client() -> None:
    registry = _registry()
    creds = Credentials(access_key="A", secret_key="s")
    seen: list[object] = []
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        seen.append(registry.client(creds))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(seen) == 8
    assert all(c is seen[0] for c in seen)
    assert len(FakeSession.created) == 1


def test_table_resolves_client_from_registry() -> None:
    registry = _registry()
    creds = Credentials(region="us-east-1")
    table = Table("t", KeySchema(hash_key="id"), registry=registry, credentials=creds)
    fake = registry.client(creds)
    fake.expect("get_item", response={})
    assert table.get("a").item == {}


def test_credentials_from_env() -> None:
    creds = Credentials.from_env(
        {
            "AWS_ACCESS_KEY_ID": "AKIA",
            "AWS_SECRET_ACCESS_KEY": "secret",
            "AWS_DEFAULT_REGION": "us-west-2",
            "DYNAMODB_ENDPOINT": "http://localhost:8000",
        }
    )
    assert creds == Credentials(
        access_key="AKIA",
        secret_key="secret",
        region="us-west-2",
        endpoint_url="http://localhost:8000",
    )
    assert Credentials.from_env({"AWS_REGION": "eu-west-1", "AWS_DEFAULT_REGION": "x"}).region == "eu-west-1"
    assert Credentials.from_env({}) == Credentials()


def test_credentials_repr_masks_secret() -> None:
    text = repr(Credentials(access_key="AKIA", secret_key="very-secret"))
    assert "very-secret" not in text
    assert "AKIA" in text
