import sys

from brandsplit.cli import main

sys.exit(main())
