"""Allow ``python -m spacecoast_reader``."""

import sys

from spacecoast_reader.app import main

sys.exit(main())
