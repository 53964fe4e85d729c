from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select

from app.assetflow.core.metrics import metrics
from app.assetflow.db.models import Asset, AssetKind, AssetStatus
from app.assetflow.repos.assets import AssetRepository
from app.assetflow.repos.movements import MovementRepository


SEVERITY_CRITICAL = "CRITICAL"
SEVERITY_WARN = "WARN"


@dataclass(frozen=True)
class IntegrityFinding:
    check_id: str
    severity: str
    message: str
    entity: str
    entity_id: str | None
    details: dict


def _record(check_id: str, findings: list[IntegrityFinding]) -> list[IntegrityFinding]:
    if findings:
        metrics.increment_invariant_violation(check_id, len(findings))
    return findings


def check_in_transit_without_pending_transfer(db) -> list[IntegrityFinding]:
    pending_asset_ids = {movement.asset_id for movement in MovementRepository(db).pending_transfers()}
    rows = db.execute(
        select(Asset.id, Asset.name).where(
            Asset.kind == AssetKind.UNIQUE,
            Asset.status == AssetStatus.IN_TRANSIT,
        )
    ).all()
    findings = [
        IntegrityFinding(
            check_id="in_transit_without_pending_transfer",
            severity=SEVERITY_CRITICAL,
            message="Asset is IN_TRANSIT but no transfer is waiting for receipt.",
            entity="assets",
            entity_id=str(row.id),
            details={"name": row.name},
        )
        for row in rows
        if row.id not in pending_asset_ids
    ]
    return _record("in_transit_without_pending_transfer", findings)


def check_pending_transfer_not_in_transit(db) -> list[IntegrityFinding]:
    findings = []
    for movement in MovementRepository(db).pending_transfers():
        asset = movement.asset
        if asset.kind != AssetKind.UNIQUE or asset.status == AssetStatus.IN_TRANSIT:
            continue
        findings.append(
            IntegrityFinding(
                check_id="pending_transfer_not_in_transit",
                severity=SEVERITY_CRITICAL,
                message="Pending transfer of a unique asset that is not IN_TRANSIT.",
                entity="movements",
                entity_id=str(movement.id),
                details={"asset_id": str(asset.id), "status": asset.status.value if asset.status else None},
            )
        )
    return _record("pending_transfer_not_in_transit", findings)


def check_receipt_exceeds_transfer(db) -> list[IntegrityFinding]:
    findings = [
        IntegrityFinding(
            check_id="receipt_exceeds_transfer",
            severity=SEVERITY_CRITICAL,
            message="Receipt credits more units than its transfer moved.",
            entity="movements",
            entity_id=str(receipt.id),
            details={
                "transfer_id": transfer.id,
                "transferred_quantity": transfer.quantity,
                "received_quantity": receipt.quantity,
            },
        )
        for transfer, receipt in MovementRepository(db).transfer_receipt_pairs()
        if receipt.quantity > transfer.quantity
    ]
    return _record("receipt_exceeds_transfer", findings)


def check_low_stock(db) -> list[IntegrityFinding]:
    findings = [
        IntegrityFinding(
            check_id="low_stock",
            severity=SEVERITY_WARN,
            message="Consumable stock is at or below its minimum.",
            entity="assets",
            entity_id=str(asset.id),
            details={"name": asset.name, "stock_quantity": asset.stock_quantity, "min_stock": asset.min_stock},
        )
        for asset in AssetRepository(db).low_stock()
    ]
    return _record("low_stock", findings)


def run_integrity_checks(db) -> list[IntegrityFinding]:
    findings: list[IntegrityFinding] = []
    findings.extend(check_in_transit_without_pending_transfer(db))
    findings.extend(check_pending_transfer_not_in_transit(db))
    findings.extend(check_receipt_exceeds_transfer(db))
    findings.extend(check_low_stock(db))
    return findings
