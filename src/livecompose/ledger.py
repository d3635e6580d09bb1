"""Job-scoped record of every local file a pipeline run creates.

The ledger is the only deletion path for intermediate files. Stages
register an output *before* the tool that writes it runs, so a tool that
dies halfway still leaves nothing behind after the sweep.
"""

import sys
from pathlib import Path


class TempLedger:
    """Ordered, de-duplicated set of (path, stage) entries.

    Usage:
        ledger = TempLedger()
        try:
            ...  # stages call ledger.register(path, "cut")
        finally:
            ledger.sweep()
    """

    def __init__(self):
        self._entries: dict[Path, str] = {}
        self._swept = False

    def register(self, path: str | Path, stage: str = "") -> Path:
        """Record a file for cleanup. Registering the same path twice is a no-op."""
        p = Path(path)
        self._entries.setdefault(p, stage)
        return p

    @property
    def entries(self) -> list[tuple[Path, str]]:
        return list(self._entries.items())

    @property
    def paths(self) -> list[Path]:
        return list(self._entries)

    def __contains__(self, path) -> bool:
        return Path(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def sweep(self) -> list[Path]:
        """Delete every registered file, best-effort.

        Each path is handled independently: a failure is reported on
        stderr and the sweep moves on. Missing files are skipped.

        Returns:
            The paths that were actually removed.

        Raises:
            RuntimeError: If the ledger has already been swept.
        """
        if self._swept:
            raise RuntimeError("Ledger already swept")
        self._swept = True

        print("Cleaning up temporary files...", flush=True)
        removed = []
        for path in self._entries:
            if not path.exists():
                continue
            try:
                path.unlink()
            except OSError as exc:
                print(f"  WARN   could not remove {path}: {exc}", file=sys.stderr, flush=True)
                continue
            print(f"  CLEAN  {path}", flush=True)
            removed.append(path)
        return removed
