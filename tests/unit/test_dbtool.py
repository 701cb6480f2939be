from citrea_analytics import config, dbtool
from citrea_analytics.db import db, ensure_schema, get_checkpoint, insert_tx_record, row_counts, set_checkpoint
from citrea_analytics.models import TransactionRecord
from conftest import address, tx_hash


def _prepare(path):
    conn = db(path)
    ensure_schema(conn)
    insert_tx_record(conn, TransactionRecord(tx_hash(1), 1, address(1), "1", 0))
    set_checkpoint(conn, 9)
    conn.close()


def test_check_leaves_cache_untouched(tmp_path, monkeypatch):
    path = str(tmp_path / "cache.db")
    _prepare(path)
    monkeypatch.setattr(config, "DB_PATH", path)

    assert dbtool.main(["check"]) == 0

    conn = db(path)
    try:
        assert get_checkpoint(conn) == 9
        assert row_counts(conn)["transactions"] == 1
    finally:
        conn.close()


def test_reset_clears_cache(tmp_path, monkeypatch):
    path = str(tmp_path / "cache.db")
    _prepare(path)
    monkeypatch.setattr(config, "DB_PATH", path)

    assert dbtool.main(["reset"]) == 0

    conn = db(path)
    try:
        assert get_checkpoint(conn) is None
        assert row_counts(conn)["transactions"] == 0
    finally:
        conn.close()
