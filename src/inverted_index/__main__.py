import sys

from inverted_index.cli import main


sys.exit(main())
