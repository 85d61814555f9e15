"""End-to-end tests of the HTTP surface against a temporary database."""

import json
import sqlite3

from fastapi.testclient import TestClient

from main import create_app

B = 1_700_000_040_000
MINUTE = 60_000


def _candle(ts, o, h, l, c, **extra):
    data = {"symbol": "EURUSD", "interval": "1m", "timestamp": ts, "open": o, "high": h, "low": l, "close": c}
    data.update(extra)
    return data


class TestHealth:

    def test_empty_counts(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "totalCandles": 0, "totalTicks": 0, "totalCandles1m": 0}


class TestTicks:
    """Tick ingestion and listing."""

    def test_single_tick_roundtrip(self, client):
        resp = client.post("/api/tick", json={"symbol": "EURUSD", "timestamp": "1700000040", "price": 1.1})
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        ticks = client.get("/api/ticks", params={"symbol": "EURUSD"}).json()
        assert len(ticks) == 1
        assert ticks[0]["ts_ms"] == B
        assert ticks[0]["source"] == "realtime"

    def test_missing_field(self, client):
        resp = client.post("/api/tick", json={"symbol": "EURUSD", "price": 1.1})
        assert resp.status_code == 400
        assert resp.json()["fields"] == ["timestamp"]

    def test_invalid_timestamp(self, client):
        resp = client.post("/api/tick", json={"symbol": "EURUSD", "timestamp": "abc", "price": 1.1})
        assert resp.status_code == 400
        assert "timestamp" in resp.json()["error"]

    def test_timestamp_beyond_int64_is_rejected(self, client):
        resp = client.post("/api/tick", json={"symbol": "EURUSD", "timestamp": 1e20, "price": 1.0})

        assert resp.status_code == 400
        assert resp.json()["fields"] == ["timestamp"]
        assert client.get("/health").json()["totalTicks"] == 0

    def test_range_bounds_beyond_int64_are_rejected(self, client):
        resp = client.get("/api/ticks", params={"symbol": "EURUSD", "end": 2**63})
        assert resp.status_code == 400
        assert resp.json()["fields"] == ["end"]

    def test_bulk_and_range_filters(self, client):
        ticks = [{"symbol": "EURUSD", "ts_ms": B + i * 1000, "price": 1.0 + i} for i in range(10)]
        resp = client.post("/api/ticks/bulk", json={"ticks": ticks})
        assert resp.json() == {"success": True, "count": 10}

        rows = client.get("/api/ticks", params={"symbol": "EURUSD", "start": B + 2000, "end": B + 4000}).json()
        assert [r["ts_ms"] for r in rows] == [B + 2000, B + 3000, B + 4000]

    def test_bulk_rejection_names_index(self, client):
        ticks = [{"symbol": "EURUSD", "timestamp": B, "price": 1.0}, {"symbol": "EURUSD", "timestamp": B + 1}]
        resp = client.post("/api/ticks/bulk", json={"ticks": ticks})

        assert resp.status_code == 400
        body = resp.json()
        assert body["failedIndex"] == 1
        assert body["tick"] == ticks[1]
        assert client.get("/health").json()["totalTicks"] == 0

    def test_symbol_required(self, client):
        resp = client.get("/api/ticks")
        assert resp.status_code == 400
        assert "symbol" in resp.json()["fields"]


class TestCandles:
    """Legacy candle ingestion with tick dual-write."""

    def test_bulk_dual_write_and_legacy_read(self, client):
        candles = [_candle(B + i * MINUTE, 1.10, 1.12, 1.09, 1.11) for i in range(3)]
        candles.append(_candle(B + 3 * MINUTE, 85, 85, 85, 85))

        resp = client.post("/api/candles/bulk", json={"candles": candles})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "count": 4, "tickCount": 3}

        rows = client.get("/api/candles", params={"symbol": "EURUSD", "interval": "1m"}).json()
        assert len(rows) == 4
        assert {r["source"] for r in rows} == {"history"}

        health = client.get("/health").json()
        assert (health["totalCandles"], health["totalTicks"]) == (4, 3)

    def test_bulk_rejection(self, client):
        candles = [_candle(B, 1.1, 1.2, 1.0, 1.15), {"symbol": "EURUSD", "interval": "1m", "timestamp": B}]
        resp = client.post("/api/candles/bulk", json={"candles": candles})

        assert resp.status_code == 400
        body = resp.json()
        assert body["failedIndex"] == 1
        assert body["candle"] == candles[1]
        assert "Validation failed at index 1" in body["error"]

    def test_bulk_requires_array(self, client):
        assert client.post("/api/candles/bulk", json={"candles": []}).status_code == 400
        assert client.post("/api/candles/bulk", json={"rows": []}).status_code == 400

    def test_single_candle(self, client):
        resp = client.post("/api/candle", json=_candle(B, 1.10, 1.12, 1.09, 1.11))
        assert resp.status_code == 200
        ticks = client.get("/api/ticks", params={"symbol": "EURUSD"}).json()
        assert [t["price"] for t in ticks] == [1.11]


class TestCachedCandles:
    """GET /api/candles_1m."""

    def test_resampled_then_cached(self, client):
        ticks = [{"symbol": "EURUSD", "timestamp": B + i * 1000, "price": p} for i, p in enumerate([100, 102, 99, 109])]
        client.post("/api/ticks/bulk", json={"ticks": ticks})

        first = client.get("/api/candles_1m", params={"symbol": "EURUSD"}).json()
        assert first["meta"] == {"symbol": "EURUSD", "count": 1, "source": "resampled", "tickCount": 4}
        c = first["candles"][0]
        assert (c["ts_ms"], c["open"], c["high"], c["low"], c["close"], c["volume"]) == (B, 100, 109, 99, 109, 4)

        second = client.get("/api/candles_1m", params={"symbol": "EURUSD"}).json()
        assert second["meta"] == {"symbol": "EURUSD", "count": 1, "source": "cache"}
        assert second["candles"] == first["candles"]

        forced = client.get("/api/candles_1m", params={"symbol": "EURUSD", "forceResample": "true"}).json()
        assert forced["meta"]["source"] == "resampled"

    def test_empty(self, client):
        body = client.get("/api/candles_1m", params={"symbol": "NOPE"}).json()
        assert body["candles"] == []
        assert body["meta"]["source"] == "empty"


class TestResampledCandles:
    """GET /api/candles/resampled."""

    def test_interval_from_ticks(self, client):
        ticks = [{"symbol": "EURUSD", "timestamp": B + m * MINUTE, "price": 1.0 + m, "source": "history"} for m in range(6)]
        client.post("/api/ticks/bulk", json={"ticks": ticks})

        body = client.get("/api/candles/resampled", params={"symbol": "EURUSD", "interval": "1h"}).json()
        assert body["meta"]["dataSource"] == "ticks"
        assert body["meta"]["rawTickCount"] == 6
        assert len(body["candles"]) == 1
        assert body["candles"][0]["timestamp"] % 3_600_000 == 0
        assert body["candles"][0]["volume"] == 6

    def test_invalid_interval(self, client):
        resp = client.get("/api/candles/resampled", params={"symbol": "EURUSD", "interval": "7x"})
        assert resp.status_code == 400
        assert resp.json()["fields"] == ["interval"]


class TestAdmin:
    """Resample trigger, migration and stats routes."""

    def test_resample_trigger(self, client):
        client.post("/api/ticks/bulk", json={"ticks": [{"symbol": "EURUSD", "timestamp": B, "price": 1.0}]})
        client.post("/api/ticks/bulk", json={"ticks": [{"symbol": "GBPUSD", "timestamp": B, "price": 1.3}]})

        body = client.post("/api/candles_1m/resample").json()
        assert body == {"success": True, "symbols": ["EURUSD", "GBPUSD"], "candlesCreated": 2, "ticksProcessed": 2}

        body = client.post("/api/candles_1m/resample", json={"symbol": "GBPUSD"}).json()
        assert body["symbols"] == ["GBPUSD"]
        assert client.get("/health").json()["totalCandles1m"] == 2

    def test_resample_trigger_with_range(self, client):
        ticks = [{"symbol": "EURUSD", "timestamp": B + m * MINUTE, "price": 1.0} for m in range(5)]
        client.post("/api/ticks/bulk", json={"ticks": ticks})

        body = client.post(
            "/api/candles_1m/resample",
            json={"symbol": "EURUSD", "start": B + MINUTE, "end": B + 2 * MINUTE},
        ).json()

        assert (body["candlesCreated"], body["ticksProcessed"]) == (2, 2)
        assert client.get("/health").json()["totalCandles1m"] == 2

    def test_migrate(self, client):
        client.post("/api/candle", json=_candle(B, 1.10, 1.12, 1.09, 1.11))
        client.post("/api/candle", json=_candle(B + MINUTE, 90, 90, 90, 90))

        body = client.post("/api/migrate/candles-to-ticks").json()
        assert body == {"success": True, "totalRows": 1, "migrated": 1, "skipped": 0}

    def test_stats(self, client):
        client.post("/api/candles/bulk", json={"candles": [_candle(B, 1.1, 1.2, 1.0, 1.15)]})
        client.get("/api/candles_1m", params={"symbol": "EURUSD"})

        legacy = client.get("/api/candles/stats").json()
        assert legacy[0]["symbol"] == "EURUSD"
        assert legacy[0]["count"] == 1

        ticks = client.get("/api/ticks/stats").json()
        assert ticks[0]["source"] == "history"

        assert client.get("/api/candles_1m/stats").json()[0]["count"] == 1

        detailed = client.get("/api/candles/stats/detailed").json()
        assert detailed["totals"] == {"ticks": 1, "candles_1m": 1, "candles_legacy": 1}


class TestBodyLimit:

    def test_oversized_body_rejected(self, db_path):
        app = create_app(db_path=db_path, max_body_bytes=100)
        with TestClient(app) as c:
            ticks = [{"symbol": "EURUSD", "timestamp": B + i, "price": 1.0} for i in range(20)]
            resp = c.post("/api/ticks/bulk", json={"ticks": ticks})

            assert resp.status_code == 413
            assert c.get("/health").json()["totalTicks"] == 0

    def test_chunked_body_counted_while_streaming(self, db_path):
        app = create_app(db_path=db_path, max_body_bytes=100)
        ticks = [{"symbol": "EURUSD", "timestamp": B + i, "price": 1.0} for i in range(20)]
        payload = json.dumps({"ticks": ticks}).encode()

        def chunks():
            for i in range(0, len(payload), 64):
                yield payload[i:i + 64]

        with TestClient(app) as c:
            resp = c.post("/api/ticks/bulk", content=chunks(), headers={"Content-Type": "application/json"})

            assert resp.status_code == 413
            assert "too large" in resp.json()["error"]
            assert c.get("/health").json()["totalTicks"] == 0


class TestWriteLock:
    """A write blocked by another writer answers 503 and may be retried."""

    def test_locked_database_returns_503(self, db_path):
        app = create_app(db_path=db_path, busy_timeout_ms=50)
        with TestClient(app) as c:
            holder = sqlite3.connect(db_path, isolation_level=None)
            holder.execute("BEGIN IMMEDIATE")
            try:
                resp = c.post("/api/tick", json={"symbol": "EURUSD", "timestamp": B, "price": 1.0})
            finally:
                holder.execute("ROLLBACK")
                holder.close()

            assert resp.status_code == 503
            body = resp.json()
            assert body["retryable"] is True
            assert "locked" in body["error"]

            retry = c.post("/api/tick", json={"symbol": "EURUSD", "timestamp": B, "price": 1.0})
            assert retry.status_code == 200
