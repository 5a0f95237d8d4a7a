import sys

from rivalwatch.cli import main

sys.exit(main())
