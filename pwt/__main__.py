import sys

from pwt.cli.main import main

sys.exit(main())
