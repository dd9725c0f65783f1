"""Allow `python -m tag_snipe`."""

from .cli import main

main()
