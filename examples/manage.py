#!/usr/bin/env python
"""Django management entrypoint for the standalone checkout relay."""

import os
import sys


def main() -> None:
    """Run administrative tasks.

    ``runserver`` without an address listens on ``0.0.0.0:$PORT`` (default 3000).
    """
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "settings")
    from django.core.management import execute_from_command_line

    argv = list(sys.argv)
    if argv[1:2] == ["runserver"] and not any(not arg.startswith("-") for arg in argv[2:]):
        argv.append(f"0.0.0.0:{os.environ.get('PORT', '3000')}")
    execute_from_command_line(argv)


if __name__ == "__main__":
    main()
