import sys

from spellcaster.cli.main import main

sys.exit(main())
