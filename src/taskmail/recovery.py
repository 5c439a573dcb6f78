class TaskMailError(Exception):
    """Base exception for all taskmail errors."""
    pass

class RecoverableError(TaskMailError):
    """An error the caller can report and carry on from."""
    pass

class FatalError(TaskMailError):
    """An error that requires the current command to stop."""
    pass

class CorruptionError(FatalError):
    """Stored data is undecodable or does not match the blob schema."""
    pass

class ConfigError(FatalError):
    """Configuration file or environment value cannot be used."""
    pass

class FileOperationError(RecoverableError):
    """Blob store I/O failed but can be retried."""
    pass

class InvalidTitleError(RecoverableError, ValueError):
    """A task title was empty or whitespace only."""
    pass

class TaskIndexError(RecoverableError, IndexError):
    """A list position does not refer to a task."""
    pass

class MailEncodingError(RecoverableError):
    """Report text could not be percent-encoded into a mail URL."""
    pass
