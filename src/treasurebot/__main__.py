"""Allow `python -m treasurebot`."""

import sys

from treasurebot.cli.__main__ import main

sys.exit(main())
