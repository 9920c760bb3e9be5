"""
Schema migrator for journal trade records.

Transforms legacy trade records into the enhanced schema one record at a
time (migrate_one) or in sequential batches against the record store
(migrate_many), and reverses a migration from a backup snapshot.

Batches never run concurrently: each batch's write is awaited before the
next batch starts, and a full backup is written before the first write
when backups are enabled.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

import pydantic

from journalmigrate.exceptions import RollbackError, StorageError, ValidationError
from journalmigrate.migration.history import VersionHistory
from journalmigrate.migration.models import (
    SENTINEL_VERSION,
    MigrationConfig,
    MigrationError,
    MigrationResult,
    MigrationVersion,
)
from journalmigrate.observability import Tracer, create_tracer
from journalmigrate.observability.attributes import (
    ATTR_BATCH_INDEX,
    ATTR_BATCH_SIZE,
    ATTR_RECORD_COUNT,
    ATTR_TARGET_VERSION,
)
from journalmigrate.records.decoding import decode_legacy
from journalmigrate.records.instruments import signed_pips, units_for
from journalmigrate.records.models import (
    DEFAULT_ACCOUNT_ID,
    EnhancedRecord,
    ReviewData,
    TradeNotes,
)
from journalmigrate.records.results import Err, Ok, Result, ValidationIssue
from journalmigrate.records.validation import (
    is_backward_compatible,
    validate_enhanced,
    validate_stored,
)
from journalmigrate.records.workflow import create_default_workflow
from journalmigrate.stores.interface import RecordStore
from journalmigrate.stores.keys import (
    LEGACY_RECORDS_KEY,
    MIGRATED_RECORDS_KEY,
    MIGRATION_BACKUP_KEY,
)

logger = logging.getLogger(__name__)

LEGACY_FIELDS: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("currencyPair", "currency_pair"),
    ("date", "date"),
    ("timeIn", "time_in"),
    ("timeOut", "time_out"),
    ("side", "side"),
    ("entryPrice", "entry_price"),
    ("exitPrice", "exit_price"),
    ("lotSize", "lot_size"),
    ("lotType", "lot_type"),
    ("stopLoss", "stop_loss"),
    ("takeProfit", "take_profit"),
    ("pips", "pips"),
    ("pnl", "pnl"),
    ("commission", "commission"),
    ("accountCurrency", "account_currency"),
    ("strategy", "strategy"),
    ("status", "status"),
    ("tags", "tags"),
)
"""(wire key, attribute) pairs projected back by to_legacy_format."""


def _batches(items: Sequence[Any], size: int) -> list[Sequence[Any]]:
    return [items[start : start + size] for start in range(0, len(items), size)]


def _record_key(data: Mapping[str, Any], position: int) -> str:
    record_id = data.get("id")
    return str(record_id) if record_id not in (None, "") else f"__unidentified_{position}"


class SchemaMigrator:
    """
    Migrates legacy trade records to the enhanced schema.

    Features:
    - Pure single-record transform (migrate_one)
    - Sequential batches with backup-before-mutate (migrate_many)
    - Skip-or-fail policy for records that break the enhanced invariants
    - Full-overwrite rollback from a backup snapshot
    - Version history appended on success
    - Optional OpenTelemetry tracing

    Example:
        >>> migrator = SchemaMigrator(store, MigrationConfig(batch_size=50))
        >>> records = await migrator.load_legacy_records()
        >>> result = await migrator.migrate_many(records)
        >>> result.migrated_count, result.failed_count
        (48, 2)
    """

    def __init__(
        self,
        store: RecordStore,
        config: MigrationConfig | None = None,
        *,
        history: VersionHistory | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the schema migrator.

        Args:
            store: Record store holding the record collections.
            config: Migration configuration (defaults to MigrationConfig()).
            history: Version history (defaults to one over the same store).
            tracer: Optional custom Tracer instance.
            enable_tracing: Whether to enable OpenTelemetry tracing (default True).
        """
        self._store = store
        self._config = config or MigrationConfig()
        self._history = history or VersionHistory(store)
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @property
    def config(self) -> MigrationConfig:
        return self._config

    @property
    def history(self) -> VersionHistory:
        return self._history

    # =========================================================================
    # Single-record transforms
    # =========================================================================

    def migrate_one(self, legacy: Mapping[str, Any]) -> EnhancedRecord:
        """
        Transform one legacy record into an enhanced record.

        Fills the account reference, unit count, normalized tags and a
        default review workflow, and derives pips and R-multiple when they
        are absent. Does not validate the result; see validate().

        Raises:
            ValidationError: If a field cannot be decoded (for example a
                non-numeric price or lot size).
        """
        result = self._transform(legacy, datetime.now(UTC))
        if isinstance(result, Err):
            issue = result.errors[0]
            raise ValidationError(
                "; ".join(result.messages()),
                record_id=_safe_id(legacy),
                field=issue.field,
            )
        return result.value

    def validate(self, record: EnhancedRecord) -> Result[EnhancedRecord]:
        return validate_enhanced(record)

    def is_backward_compatible(self, record: Mapping[str, Any]) -> bool:
        return is_backward_compatible(record)

    def to_legacy_format(self, enhanced: EnhancedRecord) -> dict[str, Any]:
        """
        Project an enhanced record back onto the legacy shape.

        Notes come from the review notes when they are non-empty, else from
        the record's own notes field. Unset fields are omitted.
        """
        legacy: dict[str, Any] = {}
        for wire_key, attribute in LEGACY_FIELDS:
            value = getattr(enhanced, attribute)
            if value is not None:
                legacy[wire_key] = list(value) if isinstance(value, list) else value

        review_notes = enhanced.review_data.notes.general_notes if enhanced.review_data else ""
        notes = review_notes or enhanced.notes
        if notes is not None:
            legacy["notes"] = notes

        extra = enhanced.model_extra or {}
        if "screenshots" in extra and extra["screenshots"] is not None:
            legacy["screenshots"] = extra["screenshots"]
        return legacy

    def _transform(self, legacy: Any, now: datetime) -> Result[EnhancedRecord]:
        if not isinstance(legacy, Mapping):
            return Err(
                (
                    ValidationIssue(
                        f"Legacy record must be an object, got {type(legacy).__name__}",
                        "type_record",
                    ),
                )
            )

        decoded = decode_legacy(legacy)
        if isinstance(decoded, Err):
            return decoded
        data = decoded.value

        data["accountId"] = data.get("accountId") or DEFAULT_ACCOUNT_ID
        data["units"] = units_for(data.get("lotSize"), data.get("lotType"))

        entry_price = data.get("entryPrice")
        exit_price = data.get("exitPrice")
        if data.get("pips") is None and exit_price is not None and entry_price is not None:
            data["pips"] = signed_pips(
                entry_price, exit_price, data.get("currencyPair"), data.get("side")
            )

        pnl = data.get("pnl")
        risk_amount = data.get("riskAmount")
        if data.get("rMultiple") is None and pnl is not None and risk_amount:
            data["rMultiple"] = pnl / risk_amount

        data["reviewData"] = ReviewData(
            review_workflow=create_default_workflow(data.get("id") or "", now=now),
            notes=TradeNotes(general_notes=data.get("notes") or "", last_modified=now, version=1),
            charts=[],
            last_reviewed_at=now,
            review_completion_score=0.0,
        )

        try:
            return Ok(EnhancedRecord.model_validate(data))
        except pydantic.ValidationError as e:
            return Err(
                tuple(
                    ValidationIssue(
                        message=f"{'.'.join(str(p) for p in error['loc'])}: {error['msg']}",
                        code="invalid_record",
                        field=str(error["loc"][0]) if error["loc"] else None,
                    )
                    for error in e.errors()
                )
            )

    # =========================================================================
    # Store access
    # =========================================================================

    async def load_legacy_records(self) -> list[Any]:
        return await self._load_list(LEGACY_RECORDS_KEY)

    async def load_migrated_records(self) -> list[Any]:
        return await self._load_list(MIGRATED_RECORDS_KEY)

    async def _load_list(self, key: str) -> list[Any]:
        stored = await self._store.get_json(key)
        if stored is None:
            return []
        if not isinstance(stored, list):
            logger.warning("Expected a list under %s, got %s", key, type(stored).__name__)
            return []
        return stored

    async def create_backup(self, records: Sequence[Any]) -> dict[str, Any]:
        """
        Write a full snapshot of the given legacy records to migration.backup.

        Returns:
            The snapshot: {timestamp, version, data}.
        """
        backup = {
            "timestamp": datetime.now(UTC).isoformat(),
            "version": await self._history.get_current_version(),
            "data": list(records),
        }
        await self._store.set_json(MIGRATION_BACKUP_KEY, backup)
        logger.info("Backed up %d legacy records", len(records))
        return backup

    async def get_backup(self) -> dict[str, Any] | None:
        backup = await self._store.get_json(MIGRATION_BACKUP_KEY)
        return backup if isinstance(backup, dict) else None

    # =========================================================================
    # Batch migration
    # =========================================================================

    async def migrate_many(
        self,
        records: Sequence[Any],
        *,
        create_backup: bool | None = None,
        validate_after: bool | None = None,
        record_version: bool = True,
    ) -> MigrationResult:
        """
        Migrate legacy records in sequential batches and persist them.

        Args:
            records: Legacy records to migrate.
            create_backup: Override config.backup_before_migration.
            validate_after: Override config.validate_after_migration.
            record_version: Append the target version to the history on
                success. Callers that record the version themselves once a
                larger unit of work succeeds pass False.

        Returns:
            MigrationResult. Records that fail validation are counted as
            failed and not written, unless skip_validation_errors is set, in
            which case they are written and reported as warnings. Records
            that cannot be decoded are always failed. A store failure while
            writing a batch stops the run and marks the result unsuccessful.
        """
        config = self._config
        target = config.target_version
        result = MigrationResult(success=True, version=target)
        records = list(records)
        do_backup = config.backup_before_migration if create_backup is None else create_backup
        do_validate = (
            config.validate_after_migration if validate_after is None else validate_after
        )

        with self._tracer.span(
            "journalmigrate.migration.migrate_many",
            {
                ATTR_TARGET_VERSION: target,
                ATTR_RECORD_COUNT: len(records),
                ATTR_BATCH_SIZE: config.batch_size,
            },
        ):
            if do_backup:
                try:
                    result.rollback_data = await self.create_backup(records)
                except StorageError as e:
                    logger.error("Backup failed, no records migrated: %s", e)
                    result.success = False
                    result.add_error("backup_error", f"Backup failed: {e}")
                    return result

            try:
                written = await self._load_written()
            except StorageError as e:
                result.success = False
                result.add_error("batch_error", f"Could not read migrated records: {e}")
                return result

            now = datetime.now(UTC)
            for index, batch in enumerate(_batches(records, config.batch_size)):
                with self._tracer.span(
                    "journalmigrate.migration.batch",
                    {ATTR_BATCH_INDEX: index, ATTR_RECORD_COUNT: len(batch)},
                ):
                    accepted = self._migrate_batch(batch, now, result)
                    if not accepted:
                        continue
                    for wire in accepted:
                        written[_record_key(wire, len(written))] = wire
                    try:
                        await self._store.set_json(MIGRATED_RECORDS_KEY, list(written.values()))
                    except StorageError as e:
                        logger.error("Batch %d write failed: %s", index, e)
                        result.success = False
                        result.migrated_count -= len(accepted)
                        result.failed_count += len(accepted)
                        result.add_error("batch_error", f"Batch migration failed: {e}")
                        break
                    logger.debug("Batch %d persisted (%d records)", index, len(accepted))

            if result.success and do_validate:
                issues = await self.validate_migrated_data()
                if issues:
                    result.warnings.append("Post-migration validation found issues")
                    result.warnings.extend(issues)

            if result.success and record_version:
                await self._history.record(target, rollback_available=config.enable_rollback)

        logger.info(
            "Migration to %s finished: success=%s migrated=%d failed=%d",
            target,
            result.success,
            result.migrated_count,
            result.failed_count,
        )
        return result

    def _migrate_batch(
        self,
        batch: Sequence[Any],
        now: datetime,
        result: MigrationResult,
    ) -> list[dict[str, Any]]:
        """Transform and validate one batch; return the wire records to write."""
        accepted: list[dict[str, Any]] = []
        for legacy in batch:
            record_id = _safe_id(legacy)
            transformed = self._transform(legacy, now)
            if isinstance(transformed, Err):
                result.failed_count += 1
                result.add_error(
                    record_id,
                    f"Migration failed: {'; '.join(transformed.messages())}",
                    field=transformed.first_field,
                )
                continue

            validation = validate_enhanced(transformed.value)
            if isinstance(validation, Err):
                if not self._config.skip_validation_errors:
                    result.failed_count += 1
                    result.add_error(
                        record_id,
                        f"Validation failed: {', '.join(validation.messages())}",
                        field=validation.first_field,
                    )
                    continue
                result.warnings.append(f"Trade {record_id} has validation warnings")
                result.add_error(
                    record_id,
                    ", ".join(validation.messages()),
                    field=validation.first_field,
                    severity="warning",
                )

            result.migrated_count += 1
            accepted.append(transformed.value.to_wire())
        return accepted

    async def _load_written(self) -> dict[str, dict[str, Any]]:
        existing = await self.load_migrated_records()
        written: dict[str, dict[str, Any]] = {}
        for position, item in enumerate(existing):
            if isinstance(item, dict):
                written[_record_key(item, position)] = item
        return written

    async def validate_migrated_data(self) -> list[str]:
        """
        Re-validate every record under records.migrated.

        Returns:
            One message per invalid record; empty when everything is valid.
        """
        issues: list[str] = []
        for item in await self.load_migrated_records():
            outcome = validate_stored(item)
            if isinstance(outcome, Err):
                record_id = _safe_id(item)
                issues.append(f"Trade {record_id}: {', '.join(outcome.messages())}")
        return issues

    # =========================================================================
    # Rollback
    # =========================================================================

    async def rollback(self, snapshot: Mapping[str, Any] | Sequence[Any] | None) -> MigrationResult:
        """
        Restore the legacy collection from a snapshot.

        records.legacy is overwritten (not merged) with the snapshot data,
        records.migrated is removed and the version is reset to "0.0.0".

        Args:
            snapshot: A backup dict ({timestamp, version, data}) or the bare
                list of legacy records.

        Returns:
            MigrationResult; a missing or malformed snapshot yields an
            unsuccessful result with exactly one error.
        """
        result = MigrationResult(success=True, version=SENTINEL_VERSION)
        try:
            data = _snapshot_records(snapshot)
        except RollbackError as e:
            logger.error("Rollback refused: %s", e)
            return MigrationResult(
                success=False,
                version=await self._safe_current_version(),
                errors=[MigrationError("rollback_error", str(e))],
            )

        with self._tracer.span(
            "journalmigrate.migration.rollback",
            {ATTR_RECORD_COUNT: len(data)},
        ):
            try:
                await self._store.set_json(LEGACY_RECORDS_KEY, data)
                await self._store.delete(MIGRATED_RECORDS_KEY)
                await self._history.reset()
            except StorageError as e:
                logger.error("Rollback failed: %s", e)
                return MigrationResult(
                    success=False,
                    version=await self._safe_current_version(),
                    errors=[MigrationError("rollback_error", f"Rollback failed: {e}")],
                )

        result.migrated_count = len(data)
        result.warnings.append("Migration rolled back successfully")
        logger.info("Rolled back migration, restored %d legacy records", len(data))
        return result

    async def _safe_current_version(self) -> str:
        try:
            return await self._history.get_current_version()
        except StorageError:
            return SENTINEL_VERSION

    # =========================================================================
    # Version queries
    # =========================================================================

    async def get_current_version(self) -> str:
        return await self._history.get_current_version()

    async def get_history(self) -> list[MigrationVersion]:
        return await self._history.get_history()

    async def is_migration_needed(self) -> bool:
        """True while the stored version differs from the target version."""
        return await self.get_current_version() != self._config.target_version

    def __repr__(self) -> str:
        return (
            f"SchemaMigrator(target_version={self._config.target_version!r}, "
            f"batch_size={self._config.batch_size})"
        )


def _snapshot_records(snapshot: Mapping[str, Any] | Sequence[Any] | None) -> list[Any]:
    if snapshot is None:
        raise RollbackError("No rollback snapshot provided")
    if isinstance(snapshot, Mapping):
        data = snapshot.get("data")
        if not isinstance(data, list):
            raise RollbackError("Rollback snapshot has no record data")
        return list(data)
    if isinstance(snapshot, str | bytes) or not isinstance(snapshot, Sequence):
        raise RollbackError(f"Unsupported rollback snapshot type {type(snapshot).__name__}")
    return list(snapshot)


def _safe_id(record: Any) -> str:
    if isinstance(record, Mapping):
        record_id = record.get("id")
        if record_id not in (None, ""):
            return str(record_id)
    return "unknown"


__all__ = ["SchemaMigrator", "LEGACY_FIELDS"]
