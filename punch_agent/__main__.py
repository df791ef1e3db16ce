import sys

from punch_agent.main import main

sys.exit(main())
