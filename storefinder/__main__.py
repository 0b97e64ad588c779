import sys

from storefinder.runner import main

sys.exit(main())
