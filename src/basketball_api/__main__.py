import sys

from basketball_api.cli import main

sys.exit(main())
