import sys

from slack_bridge.cli import main

sys.exit(main())
