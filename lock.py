# lock.py
import fcntl
import logging
import os
import tempfile
import time

logger = logging.getLogger(__name__)

DEFAULT_LOCK_PATH = os.path.join(tempfile.gettempdir(), "form_to_sheet.lock")
DEFAULT_TIMEOUT_MS = 10000

# как часто пробуем взять блокировку, пока ждём
POLL_INTERVAL = 0.05


class LockTimeout(Exception):
    pass


class ScriptLock:
    """
    Эксклюзивная advisory-блокировка на файле (flock, Linux/macOS).
    Работает между процессами и потоками: каждый экземпляр открывает файл заново.
    """

    def __init__(self, path: str, timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self.path = path
        self.timeout_ms = timeout_ms
        self._file = None

    def has_lock(self) -> bool:
        return self._file is not None

    def try_lock(self, timeout_ms: int) -> bool:
        if self._file is not None:
            return True

        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        f = open(self.path, "a+", encoding="utf-8")

        deadline = time.monotonic() + max(timeout_ms, 0) / 1000.0
        try:
            while True:
                try:
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                except BlockingIOError:
                    if time.monotonic() >= deadline:
                        f.close()
                        logger.warning("Не удалось взять блокировку %s за %d мс", self.path, timeout_ms)
                        return False
                    time.sleep(POLL_INTERVAL)
                    continue
                self._file = f
                return True
        except BaseException:
            # например ENOLCK на NFS: файл не должен остаться открытым
            f.close()
            raise

    def wait_lock(self, timeout_ms: int):
        if not self.try_lock(timeout_ms):
            raise LockTimeout(f"Не удалось дождаться блокировки за {timeout_ms} мс")

    def release_lock(self):
        f, self._file = self._file, None
        if f is None:
            return
        try:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        finally:
            f.close()

    def __enter__(self):
        self.wait_lock(self.timeout_ms)
        return self

    def __exit__(self, *exc):
        self.release_lock()
        return False


def get_script_lock() -> ScriptLock:
    return ScriptLock(
        os.getenv("LOCK_PATH") or DEFAULT_LOCK_PATH,
        int(os.getenv("LOCK_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))),
    )
