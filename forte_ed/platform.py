"""PEcAn platform access.

The run builder talks to PEcAn through the small ``Platform`` protocol:

  lookup_model     resolve a model id by name and revision (BETY ``models``)
  insert_workflow  create a row in BETY ``workflows``
  submit           publish the settings document on the PEcAn queue

``PecanPlatform`` implements it with a DB-API 2.0 connection to BETY
(psycopg2 by default) and the RabbitMQ management HTTP API. Any other
object with the same three methods can be injected instead, e.g. a stub
in tests.

All calls are one-shot: no retries, no rollback.
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import posixpath
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import requests

from forte_ed.config import DatabaseSection, ForteConfig, default_config
from forte_ed.errors import ConnectionFailure, ExternalServiceFailure
from forte_ed.settings import settings_to_xml
from forte_ed.types import WorkflowRecord
from forte_ed.utils import settings_digest

logger = logging.getLogger(__name__)


@runtime_checkable
class Platform(Protocol):
    """Operations the run builder needs from PEcAn."""

    def lookup_model(self, name: str, revision: str) -> int:
        ...

    def insert_workflow(self, site_id: int, model_id: int,
                        start_date: _dt.date, end_date: _dt.date,
                        notes: str) -> WorkflowRecord:
        ...

    def submit(self, settings: Mapping[str, Any]) -> None:
        ...


# ═══════════════════════════════════════════════════════════════════════
# CONNECTION
# ═══════════════════════════════════════════════════════════════════════

def default_connection(database: Optional[DatabaseSection] = None):
    """Open a psycopg2 connection to BETY with the configured settings.

    Raises:
        ConnectionFailure: If the database cannot be reached.
    """
    import psycopg2

    database = database or DatabaseSection()
    try:
        con = psycopg2.connect(
            host=database.host,
            port=database.port,
            user=database.user,
            password=database.password,
            dbname=database.dbname,
        )
    except psycopg2.OperationalError as exc:
        raise ConnectionFailure(
            f"Could not connect to database '{database.dbname}' at "
            f"{database.host}:{database.port}: {exc}"
        ) from exc
    logger.debug("Connected to %s@%s:%s", database.dbname, database.host, database.port)
    return con


# ═══════════════════════════════════════════════════════════════════════
# PECAN PLATFORM
# ═══════════════════════════════════════════════════════════════════════

class PecanPlatform:
    """PEcAn access through BETY (DB-API, ``%s`` params) and RabbitMQ HTTP."""

    def __init__(self, connection, config: Optional[ForteConfig] = None):
        self.connection = connection
        self.config = config or default_config()

    @classmethod
    def connect(cls, config: Optional[ForteConfig] = None) -> 'PecanPlatform':
        """Create a platform with a fresh default connection."""
        config = config or default_config()
        return cls(default_connection(config.database), config)

    @property
    def _db_error(self):
        # DB-API 2.0 drivers expose their base exception on the connection
        return getattr(self.connection, 'Error', Exception)

    def _rollback(self) -> None:
        # leave the connection usable after a failed statement
        try:
            self.connection.rollback()
        except self._db_error as exc:
            logger.warning("Rollback failed: %s", exc)

    def _query(self, sql: str, params: tuple) -> list:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, params)
            return cursor.fetchall()
        finally:
            cursor.close()

    def lookup_model(self, name: str, revision: str) -> int:
        try:
            rows = self._query(
                "SELECT id FROM models WHERE model_name = %s AND revision = %s",
                (name, revision),
            )
        except self._db_error as exc:
            self._rollback()
            raise ExternalServiceFailure(
                f"Model lookup for {name} ({revision}) failed: {exc}"
            ) from exc
        if len(rows) != 1:
            raise ExternalServiceFailure(
                f"Expected exactly one model named {name} ({revision}), "
                f"found {len(rows)}"
            )
        model_id = int(rows[0][0])
        logger.info("Resolved model %s (%s) to id %d", name, revision, model_id)
        return model_id

    def insert_workflow(self, site_id: int, model_id: int,
                        start_date: _dt.date, end_date: _dt.date,
                        notes: str) -> WorkflowRecord:
        wf = self.config.workflow
        try:
            rows = self._query(
                "INSERT INTO workflows (site_id, model_id, folder, hostname, "
                "start_date, end_date, notes, user_id, advanced_edit) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s) RETURNING id",
                (site_id, model_id, wf.folder_prefix, wf.hostname,
                 start_date, end_date, notes, wf.user_id, False),
            )
            workflow_id = int(rows[0][0])
            folder = posixpath.join(wf.folder_prefix, f"PEcAn_{workflow_id}")
            cursor = self.connection.cursor()
            try:
                cursor.execute(
                    "UPDATE workflows SET folder = %s WHERE id = %s",
                    (folder, workflow_id),
                )
            finally:
                cursor.close()
            self.connection.commit()
        except self._db_error as exc:
            self._rollback()
            raise ExternalServiceFailure(f"Workflow insertion failed: {exc}") from exc

        logger.info("Inserted workflow %d for site %d", workflow_id, site_id)
        return WorkflowRecord(
            id=workflow_id,
            site_id=site_id,
            model_id=model_id,
            start_date=start_date,
            end_date=end_date,
            notes=notes,
            folder=folder,
        )

    def publish_url(self) -> str:
        rmq = self.config.rabbitmq
        scheme = "https" if rmq.https else "http"
        prefix = rmq.prefix.strip("/")
        prefix = f"/{prefix}" if prefix else ""
        # Default exchange (empty name) on vhost "/"
        return f"{scheme}://{rmq.hostname}:{rmq.port}{prefix}/api/exchanges/%2F//publish"

    def submit(self, settings: Mapping[str, Any]) -> None:
        rmq = self.config.rabbitmq
        payload = {
            'pecan_xml': settings_to_xml(settings),
            'folder': settings.get('outdir'),
        }
        body: Dict[str, Any] = {
            'properties': {'delivery_mode': 2},
            'routing_key': rmq.routing_key,
            'payload': json.dumps(payload),
            'payload_encoding': "string",
        }
        url = self.publish_url()
        logger.debug("Publishing settings sha256=%s to %s", settings_digest(settings), url)
        try:
            response = requests.post(
                url, json=body, auth=(rmq.user, rmq.password), timeout=rmq.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise ExternalServiceFailure(f"Workflow submission to {url} failed: {exc}") from exc

        if not isinstance(result, dict) or not result.get('routed', False):
            raise ExternalServiceFailure(
                f"Workflow submission was not routed to queue '{rmq.routing_key}'"
            )
        logger.info("Submitted workflow %s to queue '%s'",
                    settings.get('workflow', {}).get('id'), rmq.routing_key)
