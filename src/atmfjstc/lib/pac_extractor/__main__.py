import sys

from atmfjstc.lib.pac_extractor.cli import main


sys.exit(main())
