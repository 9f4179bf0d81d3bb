"""Allow running rimpub with ``python -m rimpub``."""

from .cli import main

if __name__ == "__main__":
    main()
