"""
Diagnostics sink for mesh conversion.

Data problems in the source mesh never abort a conversion; they are recorded
here and reported at the end. The sink may be shared by several worker
threads converting different meshes.
"""

import threading

ZERO_WEIGHTS = "zero-weights"
NO_POLY_PART = "no-poly-part"
BONES_OVERFLOW = "bones-overflow"


class Diagnostic:
    def __init__(self, code, message, mesh=None, polygon=None):
        self.code = code
        self.message = message
        self.mesh = mesh
        self.polygon = polygon

    def __str__(self):
        where = ""
        if self.mesh is not None:
            where = f" [{self.mesh}"
            if self.polygon is not None:
                where += f" poly {self.polygon}"
            where += "]"
        return f"{self.message}{where}"

    def __repr__(self):
        return f"Diagnostic({self.code}, {self.message!r}, mesh={self.mesh!r}, polygon={self.polygon!r})"


class Diagnostics:
    """Thread-safe collection of conversion warnings.

    With echo=True every warning is printed as it arrives.
    """

    def __init__(self, echo=False):
        self.echo = echo
        self._entries = []
        self._lock = threading.Lock()

    def warning(self, code, message, mesh=None, polygon=None):
        entry = Diagnostic(code, message, mesh, polygon)
        with self._lock:
            self._entries.append(entry)
            if self.echo:
                print(f"  WARNING: {entry}")
        return entry

    @property
    def entries(self):
        with self._lock:
            return list(self._entries)

    def count(self, code=None):
        with self._lock:
            if code is None:
                return len(self._entries)
            return sum(1 for e in self._entries if e.code == code)

    def has(self, code):
        return self.count(code) > 0

    def clear(self):
        with self._lock:
            self._entries = []

    def report(self):
        """Print one line per diagnostic code with its count."""
        counts = {}
        for e in self.entries:
            counts[e.code] = counts.get(e.code, 0) + 1
        if not counts:
            print("  No warnings")
            return
        for code in sorted(counts):
            print(f"  {code}: {counts[code]} warning(s)")

    def __len__(self):
        return self.count()
