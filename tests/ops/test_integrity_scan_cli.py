import json

from app.assetflow.db.models import AssetStatus
from app.ops.integrity_scan import main, run_scan
from tests.asset_helpers import create_consumable, create_unique_asset


def test_integrity_scan_no_findings(db_session, capsys):
    create_unique_asset(db_session)

    database_url = str(db_session.get_bind().url)
    exit_code = run_scan("json", False, database_url=database_url)
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert exit_code == 0
    assert payload["summary"] == {"total": 0, "critical": 0, "warn": 0}


def test_integrity_scan_critical_exit(db_session, capsys):
    create_unique_asset(db_session, status=AssetStatus.IN_TRANSIT)

    database_url = str(db_session.get_bind().url)
    exit_code = run_scan("json", True, database_url=database_url)
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert exit_code == 1
    assert payload["summary"]["critical"] == 1
    assert payload["findings"][0]["check_id"] == "in_transit_without_pending_transfer"


def test_integrity_scan_warnings_do_not_fail(db_session, capsys):
    create_consumable(db_session, stock_quantity=0, min_stock=1)

    database_url = str(db_session.get_bind().url)
    exit_code = main(["--format", "text", "--fail-on-critical", "--database-url", database_url])
    captured = capsys.readouterr()
    assert exit_code == 0
    assert "WARN: 1" in captured.out
    assert "[WARN] low_stock" in captured.out
