"""Simple descriptor for attributes setting the number of worker threads."""


import os
import warnings

MAX_NUM_THREADS = os.cpu_count() or 1

if os.getenv("FCSYM_NUM_THREADS") is not None:
    DEFAULT_NUM_THREADS = max(
        1, min(int(os.getenv("FCSYM_NUM_THREADS")), MAX_NUM_THREADS)
    )
else:
    DEFAULT_NUM_THREADS = min(2, MAX_NUM_THREADS)


class SetNumThreads:
    """
    A descriptor used to set the threads of an object that has multi-threading.

    Used by ConstraintDeriver and ForceConstants.
    """

    def __init__(self, thread_attr_name: str = "_num_threads"):
        """Define the name of the private attribute holding the thread count."""
        self._attr_name = thread_attr_name

    def __get__(self, instance, objtype=None):
        """Get the number of threads used to derive constraints."""
        if instance is None:
            return self
        return getattr(instance, self._attr_name, DEFAULT_NUM_THREADS)

    def __set__(self, instance, value):
        """Set the number of threads used to derive constraints."""
        if value is None:
            value = DEFAULT_NUM_THREADS

        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("num_threads must be an integer")

        if value < 1:
            raise ValueError("num_threads must be at least 1")

        if value > MAX_NUM_THREADS:
            warnings.warn(
                f"num_threads cannot be greater than {MAX_NUM_THREADS}. "
                f"Setting to {MAX_NUM_THREADS}."
            )
            value = MAX_NUM_THREADS

        setattr(instance, self._attr_name, value)
