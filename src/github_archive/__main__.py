"""Allow ``python -m github_archive``."""

import sys

from github_archive.cli import main

sys.exit(main())
