# main.py - run the interactive demo from a source checkout

import sys

from bilingual_autocompleter.cli import main

if __name__ == "__main__":
    sys.exit(main())
