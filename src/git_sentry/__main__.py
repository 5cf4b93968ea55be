"""
git-sentry package runner.
`python -m git_sentry` dispatches to cli.main().
"""

import sys

from git_sentry.cli import main

if __name__ == "__main__":
    sys.exit(main())
