"""Allow ``python -m lexis``."""

from lexis.cli import main

main()
