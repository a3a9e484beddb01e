"""Allow ``python -m mcptool_cli``."""

from .main import main

main()
