import sys

from okta_assume.cli import main

sys.exit(main())
