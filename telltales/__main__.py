"""Allow ``python -m telltales``."""

from .cli import main

if __name__ == "__main__":
    main()
