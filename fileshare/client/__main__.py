import sys

from fileshare.client.cli import main

sys.exit(main())
