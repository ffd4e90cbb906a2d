from unittest.mock import MagicMock, patch

import core.database as database
from core.models import VerdictLog


def make_log(domain="sbi.com"):
    return VerdictLog(
        time="2024-01-01 12:00:00", domain=domain, full_target=f"https://{domain}",
        risk_score=95, threat_level="critical", action="HARD-BLOCK",
        category="unauthorized_banking", features={"entropy": 1.5}, source="esp32",
    )


def test_write_logs_to_db():
    conn = MagicMock()
    with patch("core.database.get_db_connection", return_value=conn):
        assert database.write_logs_to_db([make_log(), make_log("amaz0n.com")]) == 2

    cursor = conn.cursor.return_value
    sql, rows = cursor.executemany.call_args[0]
    assert "INSERT INTO domain_logs" in sql
    assert rows[0][1] == "sbi.com"
    assert rows[0][7] == '{"entropy": 1.5}'
    conn.commit.assert_called_once()
    conn.close.assert_called_once()

def test_write_logs_without_connection_drops_batch():
    with patch("core.database.get_db_connection", return_value=None):
        assert database.write_logs_to_db([make_log()]) == 0

def test_enqueue_and_take_batch():
    database._take_batch(100000)
    assert database.enqueue_log(make_log())
    assert database.enqueue_log(make_log("b.com"))
    batch = database._take_batch(10)
    assert [l.domain for l in batch] == ["sbi.com", "b.com"]
    for _ in batch:
        database.log_queue.task_done()
