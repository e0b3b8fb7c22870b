"""Allow ``python -m filedrop``."""

from .cli import main

main()
