from __future__ import annotations

from league_integrity.cli.main import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
