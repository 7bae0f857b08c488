from __future__ import annotations

import os
import uuid

import boto3

from tablewire import NOT_EXISTS, KeySchema, PreconditionFailedError, RangeCondition, Table


def _client():
    return boto3.client(
        "dynamodb",
        endpoint_url=os.environ.get("DYNAMODB_ENDPOINT", "http://localhost:8000"),
        region_name=os.environ.get("AWS_REGION", "us-east-1"),
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", "dummy"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", "dummy"),
    )


def main() -> None:
    client = _client()
    table_name = f"tablewire_example_{uuid.uuid4().hex[:12]}"

    client.create_table(
        TableName=table_name,
        KeySchema=[{"AttributeName": "pk", "KeyType": "HASH"}, {"AttributeName": "sk", "KeyType": "RANGE"}],
        AttributeDefinitions=[
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    client.get_waiter("table_exists").wait(TableName=table_name)

    try:
        table = Table(table_name, KeySchema(hash_key="pk", range_key="sk"), client=client)

        result = table.batch_write({"pk": "A", "sk": f"{i:03d}", "value": i} for i in (1, 10, 100))
        print("batch ok:", result.ok)

        try:
            table.put({"pk": "A", "sk": "010", "value": 0}, expected={"pk": NOT_EXISTS})
        except PreconditionFailedError:
            print("put-if-absent refused an existing item")

        print("get:", table.get(("A", "010")).item)

        page = table.query("A", RangeCondition.begins_with("0"), limit=1)
        print("first page:", page.items, "cursor:", page.cursor)
        if page.has_more:
            print("next page:", table.query("A", RangeCondition.begins_with("0"), cursor=page.cursor).items)
    finally:
        client.delete_table(TableName=table_name)


if __name__ == "__main__":
    main()
