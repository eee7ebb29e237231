"""Record-level operations on a Njalla zone.

Njalla addresses records only by their opaque ID. :class:`Provider`
lets callers work with record values instead: records that carry an
identity are addressed directly, records without one are matched against
a fresh listing of the zone by relative name and type.

Safety rules:
- Batch operations stop at the first failure and report the records
  processed so far on the raised :class:`ProviderError`
- A name/type key is never sent to the API in place of a record ID
- Nothing is cached between calls; every lookup re-lists the zone
"""

from __future__ import annotations

from typing import Dict, List, Optional

from loguru import logger

from njalladns.app.codec import (
    NjallaRecord,
    add_params,
    edit_params,
    from_provider,
    list_params,
    parse_record_list,
    remove_params,
    to_provider,
)
from njalladns.app.context import Context
from njalladns.app.exceptions import (
    ConfigurationError,
    ConsistencyError,
    ConversionError,
    NjallaError,
    ProviderError,
)
from njalladns.app.records import RECORD_TYPES, record_identity
from njalladns.app.rpc import JSONRPCClient, RetryPolicy
from njalladns.app.utils.names import normalize_zone, relative_name

# Seconds
DEFAULT_OPERATION_TIMEOUT = 60
DEFAULT_LIST_TIMEOUT = 20
DEFAULT_CALL_TIMEOUT = 10

KEY_SEPARATOR = "|"


def reconciliation_key(record, zone: str) -> str:
    """Return the ``name|type`` key used to match a record without ID."""
    if not isinstance(record, RECORD_TYPES):
        raise ConversionError(f"unsupported record type: {type(record).__name__}")
    return f"{relative_name(record.name, zone)}{KEY_SEPARATOR}{record.type}"


def is_record_id(token: str) -> bool:
    """Njalla IDs never contain the key separator; keys always do."""
    return bool(token) and KEY_SEPARATOR not in token


class Provider:
    """Lists, appends, sets and deletes records in a Njalla zone.

    The RPC client is built once by the caller and shared; the provider
    keeps no other state, so one instance can serve concurrent callers.

    Usage::

        provider = Provider.from_token("s3cr3t-token")
        ctx = Context.background().with_timeout(30)
        records = provider.list_records(ctx, "example.com.")
        provider.set_records(ctx, "example.com", [TXT(name="_acme", text="...")])
    """

    def __init__(
        self,
        client: JSONRPCClient,
        operation_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        list_timeout: float = DEFAULT_LIST_TIMEOUT,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
    ) -> None:
        if client is None:
            raise ConfigurationError("API client not initialized")
        self.client = client
        self.operation_timeout = operation_timeout
        self.list_timeout = list_timeout
        self.call_timeout = call_timeout

    @classmethod
    def from_token(
        cls, api_token: str, retry_policy: Optional[RetryPolicy] = None, **kwargs
    ) -> "Provider":
        return cls(JSONRPCClient(api_token, retry_policy=retry_policy), **kwargs)

    @classmethod
    def from_config(cls, cfg) -> "Provider":
        client = JSONRPCClient(
            cfg.get_string("api_token"),
            endpoint=cfg.get_string("api.endpoint"),
            timeout=cfg.get_float("api.timeout_seconds"),
            retry_policy=RetryPolicy.from_config(cfg),
        )
        return cls(
            client,
            operation_timeout=cfg.get_float("timeouts.operation_seconds"),
            list_timeout=cfg.get_float("timeouts.list_seconds"),
            call_timeout=cfg.get_float("timeouts.call_seconds"),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_records(self, ctx: Optional[Context], zone: str) -> List:
        """Return every record in zone. All or nothing."""
        ctx = ctx or Context.background()
        zone = normalize_zone(zone)

        try:
            remote = self.client.call(
                ctx, "list-records", list_params(zone), result=parse_record_list
            )
        except NjallaError as exc:
            raise ProviderError(f"failed to list records: {exc}", phase="list") from exc

        records = []
        for item in remote:
            try:
                records.append(from_provider(item))
            except ConversionError as exc:
                raise ProviderError(
                    f"failed to convert record: {exc}", phase="convert"
                ) from exc

        logger.debug(f"[provider] {zone}: listed {len(records)} record(s)")
        return records

    def append_records(self, ctx: Optional[Context], zone: str, records: List) -> List:
        """Create every record in input order and return them with their new IDs."""
        ctx = ctx or Context.background()
        zone = normalize_zone(zone)

        appended: List = []
        for record in records:
            njalla = self._encode(record, zone, appended)
            appended.append(self._create(ctx, zone, njalla, appended))

        logger.info(f"[provider] {zone}: appended {len(appended)} record(s)")
        return appended

    def set_records(self, ctx: Optional[Context], zone: str, records: List) -> List:
        """Update records that exist (by ID, else by name and type) and
        create the rest. Returns the records as stored by Njalla."""
        ctx = ctx or Context.background()
        zone = normalize_zone(zone)

        with self._operation_context(ctx) as op_ctx:
            identified = []
            unidentified = []
            for record in records:
                identity = self._usable_identity(record, zone)
                if identity:
                    identified.append((identity, record))
                else:
                    unidentified.append(record)

            existing: Dict[str, object] = {}
            if unidentified:
                existing = self._existing_by_key(op_ctx, zone)

            results: List = []
            for identity, record in identified:
                njalla = self._encode(record, zone, results)
                results.append(self._update(op_ctx, njalla, identity, results))
                self._check_done(op_ctx, results)

            for record in unidentified:
                njalla = self._encode(record, zone, results)
                key = reconciliation_key(record, zone)
                match = existing.get(key)
                if match is None:
                    logger.debug(f"[provider] {zone}: no record matches {key}; creating")
                    results.append(self._create(op_ctx, zone, njalla, results))
                else:
                    identity = record_identity(match)
                    if not is_record_id(identity):
                        raise ProviderError(
                            f"missing ID for existing record {key}",
                            phase="consistency",
                            records=results,
                        ) from ConsistencyError(
                            f"listed record {key} has no usable ID ({identity!r})"
                        )
                    logger.debug(f"[provider] {zone}: {key} matches {identity}; updating")
                    results.append(self._update(op_ctx, njalla, identity, results))
                self._check_done(op_ctx, results)

        logger.info(
            f"[provider] {zone}: set {len(results)} record(s) "
            f"({len(identified)} by ID, {len(unidentified)} by name/type)"
        )
        return results

    def delete_records(self, ctx: Optional[Context], zone: str, records: List) -> List:
        """Delete records and return the ones that were removed.

        Records without an ID that match nothing in the zone are skipped;
        deleting something that is already gone is not an error.
        """
        ctx = ctx or Context.background()
        zone = normalize_zone(zone)

        with self._operation_context(ctx) as op_ctx:
            # ID -> record, or name|type key -> record until resolved
            targets: Dict[str, object] = {}
            for record in records:
                identity = self._usable_identity(record, zone)
                if identity:
                    targets[identity] = record
                    continue
                try:
                    targets[reconciliation_key(record, zone)] = record
                except ConversionError as exc:
                    raise ProviderError(
                        f"failed to convert record: {exc}", phase="convert"
                    ) from exc

            pending = [key for key in targets if not is_record_id(key)]
            if pending:
                existing = self._existing_by_key(op_ctx, zone)
                for key in pending:
                    match = existing.get(key)
                    identity = record_identity(match) if match is not None else ""
                    if is_record_id(identity):
                        targets[identity] = targets.pop(key)
                    else:
                        logger.debug(f"[provider] {zone}: {key} not found; skipping")

            deleted: List = []
            for identity, record in targets.items():
                if not is_record_id(identity):
                    continue
                with op_ctx.with_timeout(self.call_timeout) as call_ctx:
                    try:
                        self.client.call(
                            call_ctx, "remove-record", remove_params(zone, identity)
                        )
                    except NjallaError as exc:
                        raise ProviderError(
                            f"failed to delete record {identity}: {exc}",
                            phase="delete",
                            records=deleted,
                        ) from exc
                deleted.append(record)
                self._check_done(op_ctx, deleted)

        logger.info(f"[provider] {zone}: deleted {len(deleted)} record(s)")
        return deleted

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _operation_context(self, ctx: Context) -> Context:
        if ctx.deadline is None:
            return ctx.with_timeout(self.operation_timeout)
        return ctx.with_cancel()

    def _existing_by_key(self, ctx: Context, zone: str) -> Dict[str, object]:
        with ctx.with_timeout(self.list_timeout) as fetch_ctx:
            try:
                existing = self.list_records(fetch_ctx, zone)
            except ProviderError as exc:
                raise ProviderError(
                    f"failed to get existing records: {exc}", phase=exc.phase
                ) from exc

        # First listed record wins when several share a name and type
        lookup: Dict[str, object] = {}
        for record in existing:
            lookup.setdefault(reconciliation_key(record, zone), record)
        return lookup

    @staticmethod
    def _usable_identity(record, zone: str) -> str:
        identity = record_identity(record)
        if identity and not is_record_id(identity):
            logger.warning(
                f"[provider] {zone}: ignoring identity {identity!r}, "
                f"it is a name/type key, not a record ID"
            )
            return ""
        return identity

    def _check_done(self, ctx: Context, done: List) -> None:
        err = ctx.err()
        if err is not None:
            raise ProviderError(
                f"stopped after {len(done)} record(s): {err}",
                phase="cancelled",
                records=done,
            ) from err

    @staticmethod
    def _encode(record, zone: str, done: List) -> NjallaRecord:
        try:
            return to_provider(record, zone)
        except ConversionError as exc:
            raise ProviderError(
                f"failed to convert record: {exc}", phase="convert", records=done
            ) from exc

    @staticmethod
    def _decode(remote: NjallaRecord, done: List):
        try:
            return from_provider(remote)
        except ConversionError as exc:
            raise ProviderError(
                f"failed to convert response record: {exc}",
                phase="convert",
                records=done,
            ) from exc

    def _create(self, ctx: Context, zone: str, njalla: NjallaRecord, done: List):
        with ctx.with_timeout(self.call_timeout) as call_ctx:
            try:
                created = self.client.call(
                    call_ctx, "add-record", add_params(njalla), result=NjallaRecord.from_dict
                )
            except NjallaError as exc:
                raise ProviderError(
                    f"failed to add record: {exc}", phase="add", records=done
                ) from exc
        logger.debug(f"[provider] {zone}: created {created.name}|{created.type} as {created.id}")
        return self._decode(created, done)

    def _update(self, ctx: Context, njalla: NjallaRecord, identity: str, done: List):
        with ctx.with_timeout(self.call_timeout) as call_ctx:
            try:
                updated = self.client.call(
                    call_ctx,
                    "edit-record",
                    edit_params(njalla, identity),
                    result=NjallaRecord.from_dict,
                )
            except NjallaError as exc:
                raise ProviderError(
                    f"failed to update record {identity}: {exc}",
                    phase="update",
                    records=done,
                ) from exc
        if not updated.id:
            updated.id = identity
        return self._decode(updated, done)
