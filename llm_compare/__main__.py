import sys

from llm_compare.cli import main

sys.exit(main())
