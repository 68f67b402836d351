import sys

from cutscene.cli import main

sys.exit(main())
