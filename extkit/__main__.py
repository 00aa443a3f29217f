import sys

from extkit.cli import main

sys.exit(main())
