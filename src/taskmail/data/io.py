import abc, os, re, tempfile
from typing import Dict, List, Optional, Union
from pathlib import Path
from taskmail.recovery import FileOperationError
from taskmail.logs import get_logger

log = get_logger("io")

BLOB_SUFFIX = ".json"
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")

def _cleanup(temp_path: Optional[str]):
    if temp_path is None or not os.path.exists(temp_path):
        return
    try:
        os.unlink(temp_path)
        log.debug(f"Cleaned up temporary file: {temp_path}")
    except OSError as cleanup_error:
        log.warning(f"Could not clean up temp file {temp_path}: {cleanup_error}")

def _create_dirs(file_path : Path):
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, PermissionError) as e:
        error_msg = f"Cannot create directory {file_path.parent}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def atomic_write(file_path : Union[Path, str], payload : bytes, create_dirs : bool = False) -> bool:
    """
    Write bytes to a file using atomic updates.

    The payload goes to a temporary file in the target directory, is fsynced,
    then replaces the target in one step, so readers see either the old or the
    new content and never a partial write.
    """
    file_path = Path(file_path)
    temp_path = None

    try:
        if create_dirs:
            _create_dirs(file_path)

        with tempfile.NamedTemporaryFile(mode='wb', dir=file_path.parent, prefix=f".{file_path.name}.", suffix='.tmp', delete=False) as temp_file:
            temp_path = temp_file.name
            temp_file.write(payload)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        os.replace(temp_path, file_path)
        log.debug(f"Successfully saved file: {file_path}")
        return True

    except (IOError, OSError, PermissionError) as e:
        _cleanup(temp_path)
        error_msg = f"I/O error saving file {file_path}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def sanitize_key(key: str) -> str:
    """Map a store key onto a safe file name stem."""
    safe = _UNSAFE_KEY_CHARS.sub("_", key).strip(".")
    if not safe:
        raise ValueError(f"Invalid blob key: {key!r}")
    return safe

class BlobStore(abc.ABC):
    """Opaque key-value storage for serialized blobs."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the blob stored under ``key`` or None when absent."""

    @abc.abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """Store ``data`` under ``key``, replacing any previous value."""

    @abc.abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns False if it was not present."""

    @abc.abstractmethod
    def keys(self) -> List[str]:
        pass

class MemoryBlobStore(BlobStore):
    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._blobs: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._blobs.get(key)

    def put(self, key: str, data: bytes) -> None:
        self._blobs[key] = bytes(data)

    def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None

    def keys(self) -> List[str]:
        return sorted(self._blobs)

class FileBlobStore(BlobStore):
    """One file per key under ``directory``, written atomically."""

    def __init__(self, directory: Union[Path, str]):
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        return self.directory / f"{sanitize_key(key)}{BLOB_SUFFIX}"

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except (IOError, OSError, PermissionError) as e:
            raise FileOperationError(f"Failed to read file {path}: {e}") from e

    def put(self, key: str, data: bytes) -> None:
        atomic_write(self.path_for(key), data, create_dirs=True)

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise FileOperationError(f"Failed to delete file {path}: {e}") from e

    def keys(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(p.name[:-len(BLOB_SUFFIX)] for p in self.directory.glob(f"*{BLOB_SUFFIX}"))
