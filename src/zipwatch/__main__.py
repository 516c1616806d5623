"""Allow ``python -m zipwatch``."""

from zipwatch.cli.main import main

raise SystemExit(main())
