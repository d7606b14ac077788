# tests/conftest.py
from __future__ import annotations

import threading

import pytest
from botocore.exceptions import ClientError


class FakeDynamoDB:
    """
    In-memory stand-in for a low-level boto3 DynamoDB client.

    Scan assigns item i to segment i % TotalSegments and pages with a
    positional ExclusiveStartKey; get_paginator("scan") drives it.
    BatchWriteItem can be told to leave the first N requests unprocessed to
    exercise retries.
    """

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.descriptions: dict[str, dict] = {}
        self.written: dict[str, list[dict]] = {}
        self.scan_calls: list[dict] = []
        self.write_calls: list[int] = []
        self.describe_calls: list[str] = []
        self.unprocessed_budget = 0
        self.fail_scan_segment: int | None = None
        self.fail_writes = False
        self._lock = threading.Lock()

    # --- setup helpers --------------------------------------------------------

    def add_table(self, name, *, items=0, read=100, write=100, on_demand=False, size_bytes=0):
        self.tables[name] = [{"pk": {"S": f"{name}-{i}"}} for i in range(items)]
        self.written.setdefault(name, [])
        desc = {
            "TableName": name,
            "TableSizeBytes": size_bytes,
            "ItemCount": items,
            "ProvisionedThroughput": {
                "ReadCapacityUnits": 0 if on_demand else read,
                "WriteCapacityUnits": 0 if on_demand else write,
                "NumberOfDecreasesToday": 0,
            },
        }
        if on_demand:
            desc["BillingModeSummary"] = {"BillingMode": "PAY_PER_REQUEST"}
        self.descriptions[name] = desc

    # --- client API -----------------------------------------------------------

    def describe_table(self, TableName):
        self.describe_calls.append(TableName)
        if TableName not in self.descriptions:
            raise ClientError(
                {"Error": {"Code": "ResourceNotFoundException", "Message": "not found"}},
                "DescribeTable",
            )
        return {"Table": self.descriptions[TableName]}

    def scan(self, **params):
        with self._lock:
            self.scan_calls.append(dict(params))
        segment = params["Segment"]
        if segment == self.fail_scan_segment:
            raise RuntimeError(f"scan exploded in segment {segment}")

        total = params["TotalSegments"]
        items = [it for i, it in enumerate(self.tables[params["TableName"]]) if i % total == segment]
        start = int(params.get("ExclusiveStartKey", {}).get("pos", {}).get("N", 0))
        limit = params.get("Limit", len(items) or 1)
        page = items[start:start + limit]

        resp = {
            "Items": page,
            "Count": len(page),
            "ConsumedCapacity": {"TableName": params["TableName"], "CapacityUnits": 0.5 * len(page)},
        }
        if start + limit < len(items):
            resp["LastEvaluatedKey"] = {"pos": {"N": str(start + limit)}}
        return resp

    def get_paginator(self, operation):
        assert operation == "scan"
        return _FakeScanPaginator(self)

    def batch_write_item(self, RequestItems, ReturnConsumedCapacity="NONE"):
        if self.fail_writes:
            raise RuntimeError("write throttled for good")
        (table, requests), = RequestItems.items()
        with self._lock:
            self.write_calls.append(len(requests))
            held = min(self.unprocessed_budget, len(requests))
            self.unprocessed_budget -= held
            accepted = requests[held:]
            self.written[table].extend(r["PutRequest"]["Item"] for r in accepted)

        resp = {
            "UnprocessedItems": {table: requests[:held]} if held else {},
            "ConsumedCapacity": [{"TableName": table, "CapacityUnits": float(len(accepted))}],
        }
        return resp


class _FakeScanPaginator:
    """Mirrors botocore's scan paginator: PageSize becomes Limit."""

    def __init__(self, client):
        self.client = client

    def paginate(self, PaginationConfig=None, **params):
        page_size = (PaginationConfig or {}).get("PageSize")
        if page_size is not None:
            params["Limit"] = page_size
        while True:
            resp = self.client.scan(**params)
            yield resp
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return
            params["ExclusiveStartKey"] = last_key


@pytest.fixture
def fake_dynamodb():
    return FakeDynamoDB()
