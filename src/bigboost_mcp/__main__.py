import sys

from bigboost_mcp.cli import main

sys.exit(main())
