"""Run the local reader with ``python -m speedread``."""

from .web import main

if __name__ == "__main__":
    main()
