import sys

from torplace.cli import main

sys.exit(main())
