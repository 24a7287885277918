"""Allow running logtail as `python -m logtail logs ...`."""

from logtail.app import main

if __name__ == "__main__":
    raise SystemExit(main())
