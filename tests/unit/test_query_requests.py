from __future__ import annotations

import pytest

from tablewire import KeySchema, RangeCondition, ValidationError, encode_cursor
from tablewire.query import build_query_request, build_scan_filter, build_scan_request

COMPOSITE = KeySchema(hash_key="user", range_key="ts")
HASH_ONLY = KeySchema(hash_key="id")


def test_minimal_query_request() -> None:
    assert build_query_request("scores", COMPOSITE, "abc") == {
        "TableName": "scores",
        "KeyConditions": {"user": {"ComparisonOperator": "EQ", "AttributeValueList": [{"S": "abc"}]}},
        "ScanIndexForward": True,
        "ReturnConsumedCapacity": "TOTAL",
    }


def test_query_request_with_all_options() -> None:
    req = build_query_request(
        "scores",
        COMPOSITE,
        "abc",
        (">=", 5),
        order="desc",
        limit=10,
        consistent=True,
        exclusive_start_key=("abc", 7),
        attributes_to_get=["score"],
    )
    assert req["KeyConditions"]["ts"] == {"ComparisonOperator": "GE", "AttributeValueList": [{"N": "5"}]}
    assert req["ScanIndexForward"] is False
    assert req["Limit"] == 10
    assert req["ConsistentRead"] is True
    assert req["ExclusiveStartKey"] == {"user": {"S": "abc"}, "ts": {"N": "7"}}
    assert req["AttributesToGet"] == ["score"]
    assert "Select" not in req


def test_count_query_omits_projection() -> None:
    req = build_query_request("scores", COMPOSITE, "abc", count=True, attributes_to_get=["score"])
    assert req["Select"] == "COUNT"
    assert "AttributesToGet" not in req


def test_range_clause_forms() -> None:
    between = build_query_request("t", COMPOSITE, "abc", ("between", 1, 5))
    assert between["KeyConditions"]["ts"] == {
        "ComparisonOperator": "BETWEEN",
        "AttributeValueList": [{"N": "1"}, {"N": "5"}],
    }

    prefix = build_query_request("t", COMPOSITE, "abc", RangeCondition.begins_with("2024-"))
    assert prefix["KeyConditions"]["ts"] == {
        "ComparisonOperator": "BEGINS_WITH",
        "AttributeValueList": [{"S": "2024-"}],
    }

    assert RangeCondition.from_clause(["<", 3]) == RangeCondition.lt(3)
    assert RangeCondition.between(1, 2).to_wire()["ComparisonOperator"] == "BETWEEN"


def test_range_clause_errors() -> None:
    with pytest.raises(ValidationError, match="BETWEEN requires two values"):
        build_query_request("t", COMPOSITE, "abc", ("between", 1))
    with pytest.raises(ValidationError, match="requires a value"):
        build_query_request("t", COMPOSITE, "abc", (">", None))
    with pytest.raises(ValidationError):
        build_query_request("t", COMPOSITE, "abc", ">")
    with pytest.raises(ValidationError, match="no range attribute"):
        build_query_request("t", HASH_ONLY, "abc", (">", 1))


@pytest.mark.parametrize("limit", [0, -1, True, 1.5])
def test_query_rejects_invalid_limit(limit: object) -> None:
    with pytest.raises(ValidationError, match="limit"):
        build_query_request("t", COMPOSITE, "abc", limit=limit)  # type: ignore[arg-type]


def test_query_order_validation() -> None:
    assert build_query_request("t", COMPOSITE, "abc", order=":asc")["ScanIndexForward"] is True
    assert build_query_request("t", COMPOSITE, "abc", order="DESC")["ScanIndexForward"] is False
    with pytest.raises(ValidationError, match="order"):
        build_query_request("t", COMPOSITE, "abc", order="sideways")


def test_query_requires_hash_value() -> None:
    with pytest.raises(ValidationError):
        build_query_request("t", COMPOSITE, None)


def test_query_start_key_from_cursor() -> None:
    cursor = encode_cursor(("abc", 4), COMPOSITE)
    req = build_query_request("t", COMPOSITE, "abc", cursor=cursor)
    assert req["ExclusiveStartKey"] == {"user": {"S": "abc"}, "ts": {"N": "4"}}

    with pytest.raises(ValidationError, match="not both"):
        build_query_request("t", COMPOSITE, "abc", cursor=cursor, exclusive_start_key=("abc", 4))


def test_scan_request() -> None:
    req = build_scan_request(
        "t",
        HASH_ONLY,
        limit=5,
        scan_filter={"score": (">", 10), "tag": ("contains", "x")},
        segment=1,
        total_segments=4,
    )
    assert req == {
        "TableName": "t",
        "ReturnConsumedCapacity": "TOTAL",
        "Limit": 5,
        "ScanFilter": {
            "score": {"ComparisonOperator": "GT", "AttributeValueList": [{"N": "10"}]},
            "tag": {"ComparisonOperator": "CONTAINS", "AttributeValueList": [{"S": "x"}]},
        },
        "Segment": 1,
        "TotalSegments": 4,
    }


def test_scan_segment_validation() -> None:
    with pytest.raises(ValidationError, match="together"):
        build_scan_request("t", HASH_ONLY, segment=0)
    with pytest.raises(ValidationError, match="invalid segment"):
        build_scan_request("t", HASH_ONLY, segment=4, total_segments=4)
    with pytest.raises(ValidationError, match="invalid segment"):
        build_scan_request("t", HASH_ONLY, segment=-1, total_segments=2)


def test_scan_filter_validation() -> None:
    assert build_scan_filter({"x": ("not_null",)}) == {
        "x": {"ComparisonOperator": "NOT_NULL", "AttributeValueList": []}
    }
    with pytest.raises(ValidationError):
        build_scan_filter({"x": ()})
    with pytest.raises(ValidationError):
        build_scan_filter({"x": "eq"})
