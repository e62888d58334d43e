"""Logical dump of a single tenant schema.

The schema is checked against the catalog before any extraction starts and
the tenant identifier is validated before it reaches SQL or an argv list.
Two runners are available: ``PgDumpRunner`` executes a local ``pg_dump``
binary, ``DockerExecPgDumpRunner`` executes ``pg_dump`` inside the database
container through the Docker API and streams its output to disk.
"""

import logging
import os
import subprocess
from pathlib import Path

import docker
from docker.errors import DockerException
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from .db import tenant_scope
from .deadline import Deadline
from .errors import DumpExecutionError, SchemaNotFoundError
from .identifiers import quote_identifier, validate_tenant_id

logger = logging.getLogger(__name__)


class SchemaCatalog:
    """Catalog lookups against the shared database."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def schema_exists(self, tenant_id: str) -> bool:
        with self.session_factory() as session:
            row = session.execute(
                text("SELECT 1 FROM information_schema.schemata WHERE schema_name = :schema"),
                {"schema": tenant_id},
            ).first()
        return row is not None

    def table_count(self, tenant_id: str) -> int:
        with tenant_scope(self.session_factory, tenant_id) as session:
            return session.execute(
                text(
                    "SELECT count(*) FROM information_schema.tables "
                    "WHERE table_schema = current_schema()"
                )
            ).scalar_one()


def pg_dump_arguments(tenant_id: str, output_path=None) -> list[str]:
    args = [
        f"--schema={quote_identifier(tenant_id)}",
        "--no-owner",
        "--no-privileges",
        "--format=plain",
    ]
    if output_path is not None:
        args.append(f"--file={output_path}")
    return args


def check_stderr(tenant_id: str, stderr: str) -> None:
    """Log pg_dump warnings; raise on anything that reports an error."""
    errors = []
    for line in stderr.splitlines():
        line = line.strip()
        if not line:
            continue
        if "warning" in line.lower():
            logger.warning("pg_dump for tenant %s: %s", tenant_id, line)
        elif "error" in line.lower():
            errors.append(line)
        else:
            logger.info("pg_dump for tenant %s: %s", tenant_id, line)
    if errors:
        raise DumpExecutionError(f"pg_dump error for tenant {tenant_id}: {'; '.join(errors)}")


class PgDumpRunner:
    def __init__(self, database_url: str, pg_dump_path: str = "pg_dump"):
        self.url = make_url(database_url)
        self.pg_dump_path = pg_dump_path

    def command(self, tenant_id: str, output_path) -> list[str]:
        cmd = [self.pg_dump_path]
        if self.url.host:
            cmd += ["--host", self.url.host]
        if self.url.port:
            cmd += ["--port", str(self.url.port)]
        if self.url.username:
            cmd += ["--username", self.url.username]
        cmd += ["--dbname", self.url.database, "--no-password"]
        return cmd + pg_dump_arguments(tenant_id, output_path)

    def run(self, tenant_id: str, output_path, deadline: Deadline) -> None:
        env = os.environ.copy()
        if self.url.password:
            env["PGPASSWORD"] = self.url.password
        try:
            result = subprocess.run(
                self.command(tenant_id, output_path),
                env=env,
                capture_output=True,
                text=True,
                timeout=deadline.remaining(),
            )
        except subprocess.TimeoutExpired as exc:
            raise deadline.timeout() from exc
        except OSError as exc:
            raise DumpExecutionError(f"could not start pg_dump: {exc}") from exc

        if result.returncode != 0:
            raise DumpExecutionError(
                f"pg_dump exited with {result.returncode} for tenant {tenant_id}: {result.stderr.strip()}"
            )
        check_stderr(tenant_id, result.stderr)


class DockerExecPgDumpRunner:
    def __init__(self, container: str, database_url: str, docker_base_url: str, client=None):
        self.container = container
        self.url = make_url(database_url)
        self.client = client or docker.DockerClient(base_url=docker_base_url)

    def command(self, tenant_id: str) -> list[str]:
        cmd = ["pg_dump"]
        if self.url.username:
            cmd += ["--username", self.url.username]
        cmd += ["--dbname", self.url.database]
        # no --file: the dump is streamed out of the container on stdout
        return cmd + pg_dump_arguments(tenant_id)

    def run(self, tenant_id: str, output_path, deadline: Deadline) -> None:
        api = self.client.api
        try:
            exec_id = api.exec_create(self.container, self.command(tenant_id), stdout=True, stderr=True)
            stream = api.exec_start(exec_id, stream=True, demux=True)
            stderr_chunks = []
            with open(output_path, "wb") as handle:
                for stdout, stderr in stream:
                    deadline.check()
                    if stdout:
                        handle.write(stdout)
                    if stderr:
                        stderr_chunks.append(stderr)
            exit_code = api.exec_inspect(exec_id)["ExitCode"]
        except DockerException as exc:
            raise DumpExecutionError(f"docker exec pg_dump failed for tenant {tenant_id}: {exc}") from exc

        stderr_text = b"".join(stderr_chunks).decode("utf-8", errors="replace")
        if exit_code != 0:
            raise DumpExecutionError(
                f"pg_dump exited with {exit_code} for tenant {tenant_id}: {stderr_text.strip()}"
            )
        check_stderr(tenant_id, stderr_text)


class SchemaDumpEngine:
    def __init__(self, catalog: SchemaCatalog, runner):
        self.catalog = catalog
        self.runner = runner

    def dump(self, tenant_id: str, output_path, deadline: Deadline) -> Path:
        validate_tenant_id(tenant_id)
        if not self.catalog.schema_exists(tenant_id):
            raise SchemaNotFoundError(f"tenant schema '{tenant_id}' does not exist")

        tables = self.catalog.table_count(tenant_id)
        logger.info("Dumping schema %s (%d tables)", tenant_id, tables)
        self.runner.run(tenant_id, output_path, deadline)

        path = Path(output_path)
        if not path.exists():
            raise DumpExecutionError(f"pg_dump produced no output for tenant {tenant_id}")
        logger.info("Schema %s dumped to %s (%d bytes)", tenant_id, path.name, path.stat().st_size)
        return path


def build_runner(settings):
    if settings.pg_dump_container:
        return DockerExecPgDumpRunner(
            settings.pg_dump_container, settings.database_url, settings.docker_base_url
        )
    return PgDumpRunner(settings.database_url, settings.pg_dump_path)
