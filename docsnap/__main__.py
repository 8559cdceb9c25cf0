"""Allow `python -m docsnap`."""

import sys

from docsnap.main import main

sys.exit(main())
