"""``python -m phpsniff_shims`` — same as the ``phpsniff`` command."""

from phpsniff_shims.main import main

if __name__ == "__main__":
    raise SystemExit(main())
