class BackupError(Exception):
    """Base error for the backup subsystem.

    ``kind`` is the short name written in front of the message when the
    error is recorded on a job row, e.g. ``"SchemaNotFound: ..."``.
    """

    kind = "BackupError"

    def job_message(self) -> str:
        return f"{self.kind}: {self}"


class InvalidTenantIdentifier(BackupError):
    kind = "InvalidTenantIdentifier"


class InvalidStorageTier(BackupError):
    kind = "InvalidStorageTier"


class UnsupportedBackupKind(BackupError):
    kind = "UnsupportedBackupKind"


class TenantNotFoundError(BackupError):
    kind = "TenantNotFound"


class SchemaNotFoundError(BackupError):
    kind = "SchemaNotFound"


class DumpExecutionError(BackupError):
    kind = "DumpExecutionError"


class CompressionError(BackupError):
    kind = "CompressionError"


class UploadError(BackupError):
    kind = "UploadError"


class StageTimeout(BackupError):
    kind = "Timeout"


class PolicyNotFoundError(BackupError):
    kind = "PolicyNotFound"


class JobNotFoundError(BackupError):
    kind = "JobNotFound"


class InvalidJobTransition(BackupError):
    kind = "InvalidJobTransition"


class DispatchError(BackupError):
    """The job row was committed but could not be handed to the task queue.

    ``job`` is the pending job; it is re-dispatched by the reaper.
    """

    kind = "DispatchError"

    def __init__(self, message: str, job: dict):
        super().__init__(message)
        self.job = job
