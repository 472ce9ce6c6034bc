"""Run the smartsend CLI."""

import sys

from smartsend.main import main

sys.exit(main())
