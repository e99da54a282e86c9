from contextlib import contextmanager
from threading import Lock
from weakref import WeakValueDictionary


class DoctorLockRegistry:
    """One lock per doctor, held across the conflict check and the insert.

    Locks are kept only while someone references them, so the registry does
    not grow with every doctor id it has ever seen.
    """

    def __init__(self):
        self._guard = Lock()
        self._locks: WeakValueDictionary[int, Lock] = WeakValueDictionary()

    def lock_for(self, doctor_id: int) -> Lock:
        with self._guard:
            lock = self._locks.get(doctor_id)
            if lock is None:
                lock = Lock()
                self._locks[doctor_id] = lock
            return lock

    @contextmanager
    def hold(self, doctor_id: int):
        lock = self.lock_for(doctor_id)
        with lock:
            yield


doctor_locks = DoctorLockRegistry()
