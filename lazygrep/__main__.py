"""Module entrypoint for ``python -m lazygrep``."""

from .cli import main


if __name__ == "__main__":
    main()
